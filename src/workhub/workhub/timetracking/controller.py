from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.http import auth_guard, current_actor, json_body, json_error
from ..common.validators import require_int
from ..container import Container
from ..core.exceptions import NotFoundError
from .model import TimerState

TIMER_SESSION_KEY = "timer"


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    tracking = container.time_tracking_service

    def _timer() -> TimerState:
        return TimerState.from_session(session.get(TIMER_SESSION_KEY))

    def _store(state: TimerState) -> None:
        session[TIMER_SESSION_KEY] = state.to_session()

    @app.route("/api/time/timer", methods=["GET"], endpoint="api_timer")
    @login_required
    def api_timer():
        return jsonify({"timer": tracking.describe(_timer())}), 200

    @app.route("/api/time/timer/<action>", methods=["POST"], endpoint="api_timer_action")
    @login_required
    def api_timer_action(action: str):
        try:
            state = _timer()
            entry = None
            if action == "start":
                state = tracking.start(current_actor(), state, task_id=require_int(json_body().get("taskId"), "taskId"))
            elif action == "pause":
                state = tracking.pause(state)
            elif action == "resume":
                state = tracking.resume(state)
            elif action == "stop":
                data = json_body()
                entry, state = tracking.stop(
                    current_actor(),
                    state,
                    description=data.get("description"),
                    billable=bool(data.get("billable", False)),
                )
            else:
                raise NotFoundError(f"Unknown timer action: {action}")

            _store(state)
            body = {"success": True, "timer": tracking.describe(state)}
            if entry is not None:
                body["entry"] = entry.to_dict()
            return jsonify(body), 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/time/entries", methods=["GET"], endpoint="api_time_entries")
    @login_required
    def api_time_entries():
        try:
            start = request.args.get("start")
            end = request.args.get("end")
            entries = tracking.list_entries(
                current_actor(),
                start_date=parse_iso_date(start) if start else None,
                end_date=parse_iso_date(end) if end else None,
            )
            return jsonify({"entries": [e.to_dict() for e in entries]}), 200
        except Exception as e:
            return json_error(e)
