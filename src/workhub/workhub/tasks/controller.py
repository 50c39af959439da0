from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import auth_guard, current_actor, int_list, json_body, json_error
from ..common.validators import require_enum
from ..container import Container
from ..core.enums import Priority, ProjectStatus, TaskStatus


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    tasks = container.task_service

    @app.route("/api/projects", methods=["GET", "POST"], endpoint="api_projects")
    @login_required
    def api_projects():
        try:
            if request.method == "GET":
                status = request.args.get("status")
                projects = tasks.list_projects(
                    current_actor(),
                    status=require_enum(ProjectStatus, status, "Status") if status else None,
                )
                return jsonify({"projects": [p.to_dict() for p in projects]}), 200

            data = json_body()
            project = tasks.create_project(
                current_actor(),
                name=data.get("name", ""),
                description=data.get("description"),
                status=require_enum(ProjectStatus, data.get("status") or ProjectStatus.ACTIVE.value, "Status"),
            )
            return jsonify({"success": True, "project": project.to_dict()}), 201
        except Exception as e:
            return json_error(e)

    @app.route("/api/projects/<int:project_id>/tasks", methods=["GET", "POST"], endpoint="api_project_tasks")
    @login_required
    def api_project_tasks(project_id: int):
        try:
            if request.method == "GET":
                status = request.args.get("status")
                items = tasks.list_tasks(
                    current_actor(),
                    project_id=project_id,
                    status=require_enum(TaskStatus, status, "Status") if status else None,
                )
                return jsonify({"tasks": [t.to_dict() for t in items]}), 200

            data = json_body()
            due = data.get("dueDate")
            task = tasks.create_task(
                current_actor(),
                project_id=project_id,
                title=data.get("title", ""),
                description=data.get("description"),
                priority=require_enum(Priority, data.get("priority") or Priority.MEDIUM.value, "Priority"),
                due_date=parse_iso_date(due) if due else None,
                assignee_ids=int_list(data.get("assigneeIds"), "assigneeIds"),
            )
            return jsonify({"success": True, "task": task.to_dict()}), 201
        except Exception as e:
            return json_error(e)

    @app.route("/api/tasks/<int:task_id>/move", methods=["POST"], endpoint="api_task_move")
    @login_required
    def api_task_move(task_id: int):
        try:
            status = require_enum(TaskStatus, json_body().get("status"), "Status")
            task = tasks.move_task(current_actor(), task_id=task_id, status=status)
            return jsonify({"success": True, "task": task.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/tasks/<int:task_id>/cancel", methods=["POST"], endpoint="api_task_cancel")
    @login_required
    def api_task_cancel(task_id: int):
        try:
            task = tasks.cancel_task(current_actor(), task_id=task_id)
            return jsonify({"success": True, "task": task.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/tasks/<int:task_id>/reopen", methods=["POST"], endpoint="api_task_reopen")
    @login_required
    def api_task_reopen(task_id: int):
        try:
            task = tasks.reopen_task(current_actor(), task_id=task_id)
            return jsonify({"success": True, "task": task.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/tasks/<int:task_id>/assign", methods=["POST"], endpoint="api_task_assign")
    @login_required
    def api_task_assign(task_id: int):
        try:
            ids = int_list(json_body().get("assigneeIds"), "assigneeIds")
            task = tasks.assign(current_actor(), task_id=task_id, assignee_ids=ids)
            return jsonify({"success": True, "task": task.to_dict()}), 200
        except Exception as e:
            return json_error(e)
