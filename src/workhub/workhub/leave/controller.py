from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import auth_guard, current_actor, json_body, json_error, query_int
from ..common.validators import require_enum, require_int
from ..container import Container
from ..core.enums import LeaveStatus


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    ledger = container.leave_ledger

    @app.route("/api/leave/types", methods=["GET"], endpoint="api_leave_types")
    @login_required
    def api_leave_types():
        try:
            return jsonify({"leaveTypes": [lt.to_dict() for lt in ledger.list_leave_types(current_actor())]}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/balances", methods=["GET"], endpoint="api_leave_balances")
    @login_required
    def api_leave_balances():
        try:
            balances = ledger.list_balances(current_actor(), year=query_int("year"))
            return jsonify({"balances": [b.to_dict() for b in balances]}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/requests", methods=["GET", "POST"], endpoint="api_leave_requests")
    @login_required
    def api_leave_requests():
        try:
            if request.method == "GET":
                if request.args.get("scope") == "approvals":
                    rows = ledger.list_pending_for_approval(current_actor())
                else:
                    status = request.args.get("status")
                    rows = ledger.list_requests(
                        current_actor(),
                        user_id=query_int("userId"),
                        status=require_enum(LeaveStatus, status, "Status") if status else None,
                    )
                return jsonify({"requests": rows}), 200

            data = json_body()
            created = ledger.apply_for_leave(
                current_actor(),
                leave_type_id=require_int(data.get("leaveTypeId"), "Leave type"),
                start_date=parse_iso_date(data.get("startDate")),
                end_date=parse_iso_date(data.get("endDate")),
                half_day=bool(data.get("halfDay", False)),
                reason=data.get("reason"),
            )
            return jsonify({"success": True, "request": created.to_dict()}), 201
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/requests/<int:request_id>/approve", methods=["POST"], endpoint="api_leave_approve")
    @login_required
    def api_leave_approve(request_id: int):
        try:
            decided = ledger.approve(current_actor(), request_id=request_id)
            return jsonify({"success": True, "request": decided.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/requests/<int:request_id>/reject", methods=["POST"], endpoint="api_leave_reject")
    @login_required
    def api_leave_reject(request_id: int):
        try:
            decided = ledger.reject(current_actor(), request_id=request_id, reason=json_body().get("reason"))
            return jsonify({"success": True, "request": decided.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/requests/<int:request_id>/cancel", methods=["POST"], endpoint="api_leave_cancel")
    @login_required
    def api_leave_cancel(request_id: int):
        try:
            cancelled = ledger.cancel(current_actor(), request_id=request_id)
            return jsonify({"success": True, "request": cancelled.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/requests/<int:request_id>/revoke", methods=["POST"], endpoint="api_leave_revoke")
    @login_required
    def api_leave_revoke(request_id: int):
        try:
            revoked = ledger.revoke(current_actor(), request_id=request_id, reason=json_body().get("reason"))
            return jsonify({"success": True, "request": revoked.to_dict()}), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/leave/rollover", methods=["POST"], endpoint="api_leave_rollover")
    @login_required
    def api_leave_rollover():
        try:
            data = json_body()
            actor = current_actor()
            written = ledger.roll_over_year(
                actor,
                organization_id=require_int(data.get("organizationId", actor.organization_id), "Organization"),
                from_year=require_int(data.get("fromYear"), "Year"),
            )
            return jsonify({"success": True, "balances": written}), 200
        except Exception as e:
            return json_error(e)
