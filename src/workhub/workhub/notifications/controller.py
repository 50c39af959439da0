from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import auth_guard, current_actor, json_body, json_error, query_int
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    notifications = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="api_notifications")
    @login_required
    def api_notifications():
        try:
            actor = current_actor()
            items = notifications.list_for_user(
                actor,
                unread_only=request.args.get("unread") in ("1", "true"),
                limit=query_int("limit", 50),
            )
            return jsonify(
                {
                    "notifications": [n.to_dict() for n in items],
                    "unreadCount": notifications.unread_count(actor),
                }
            ), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/notifications/read", methods=["POST"], endpoint="api_notifications_read")
    @login_required
    def api_notifications_read():
        try:
            ids = json_body().get("ids")
            if ids is not None and not isinstance(ids, list):
                raise ValidationError("ids must be a list")
            updated = notifications.mark_read(current_actor(), ids)
            return jsonify({"success": True, "updated": updated}), 200
        except Exception as e:
            return json_error(e)
