from __future__ import annotations

import logging

from flask import Flask, jsonify, session

from ..common.http import SESSION_KEY, auth_guard, current_actor, json_body, json_error
from ..common.validators import require_enum
from ..container import Container
from ..core.enums import Role, UserStatus

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)

    @app.route("/api/auth/register", methods=["POST"], endpoint="api_register")
    def api_register():
        try:
            data = json_body()
            user = container.registration_service.register(
                email=data.get("email", ""),
                password=data.get("password", ""),
                first_name=data.get("firstName", ""),
                last_name=data.get("lastName", ""),
                organization_name=data.get("organizationName"),
            )
            return jsonify({"success": True, "message": "Account created successfully", "user": user.public_view()}), 201
        except Exception as e:
            return json_error(e)

    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def api_login():
        try:
            data = json_body()
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

            session.clear()
            session.permanent = True
            session[SESSION_KEY] = s_user.to_claims()
            return jsonify({"success": True, "user": s_user.public_view()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return jsonify({"success": True}), 200

    @app.route("/api/auth/session", methods=["GET"], endpoint="api_session")
    @login_required
    def api_session():
        return jsonify({"user": current_actor().public_view()}), 200

    @app.route("/api/users", methods=["GET"], endpoint="api_users")
    @login_required
    def api_users():
        try:
            members = container.user_service.list_members(current_actor())
            return jsonify({"users": [u.public_view() for u in members]}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/users/<int:user_id>/role", methods=["PATCH"], endpoint="api_user_role")
    @login_required
    def api_user_role(user_id: int):
        try:
            data = json_body()
            role = require_enum(Role, data.get("role"), "Role")
            user = container.user_service.change_role(current_actor(), user_id=user_id, role=role)
            return jsonify({"success": True, "user": user.public_view()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/users/<int:user_id>/status", methods=["PATCH"], endpoint="api_user_status")
    @login_required
    def api_user_status(user_id: int):
        try:
            data = json_body()
            status = require_enum(UserStatus, data.get("status"), "Status")
            user = container.user_service.set_status(current_actor(), user_id=user_id, status=status)
            return jsonify({"success": True, "user": user.public_view()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/audit/<entity>/<int:entity_id>", methods=["GET"], endpoint="api_audit_history")
    @login_required
    def api_audit_history(entity: str, entity_id: int):
        try:
            entries = container.audit_service.history(current_actor(), entity=entity, entity_id=entity_id)
            return jsonify({"entries": [e.to_dict() for e in entries]}), 200
        except Exception as e:
            return json_error(e)
