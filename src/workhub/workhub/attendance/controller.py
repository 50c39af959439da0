from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.http import auth_guard, current_actor, json_body, json_error, query_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    attendance = container.attendance_service

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="api_clock_in")
    @login_required
    def api_clock_in():
        try:
            record = attendance.clock_in(current_actor(), notes=json_body().get("notes"))
            return jsonify({"success": True, "record": record.to_dict()}), 201
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="api_clock_out")
    @login_required
    def api_clock_out():
        try:
            record = attendance.clock_out(current_actor())
            return jsonify({"success": True, "record": record.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="api_break_start")
    @login_required
    def api_break_start():
        try:
            record = attendance.start_break(current_actor())
            return jsonify({"success": True, "record": record.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="api_break_end")
    @login_required
    def api_break_end():
        try:
            record = attendance.end_break(current_actor())
            return jsonify({"success": True, "record": record.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    @login_required
    def api_attendance_today():
        try:
            record = attendance.today(current_actor())
            return jsonify({"record": record.to_dict() if record else None}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    @login_required
    def api_attendance_history():
        try:
            records = attendance.history(current_actor(), limit=query_int("limit", DEFAULT_HISTORY_LIMIT))
            return jsonify({"records": [r.to_dict() for r in records]}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/finalize", methods=["POST"], endpoint="api_attendance_finalize")
    @login_required
    def api_attendance_finalize():
        try:
            locked = attendance.finalize_day(current_actor(), day=parse_iso_date(json_body().get("date")))
            return jsonify({"success": True, "locked": locked}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/attendance/<int:attendance_id>/override", methods=["POST"], endpoint="api_attendance_override")
    @login_required
    def api_attendance_override(attendance_id: int):
        try:
            data = json_body()
            changes = data.get("changes") or {}
            if not isinstance(changes, dict):
                raise ValidationError("changes must be an object")
            record = attendance.admin_override(
                current_actor(),
                attendance_id=attendance_id,
                changes=changes,
                reason=data.get("reason", ""),
            )
            return jsonify({"success": True, "record": record.to_dict()}), 200
        except Exception as e:
            return json_error(e)
