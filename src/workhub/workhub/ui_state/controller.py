from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.http import auth_guard, json_body, json_error
from ..container import Container
from .stores import FilterState, UIState, decode_cookie, encode_cookie

UI_COOKIE = "workhub_ui"
UI_COOKIE_MAX_AGE = timedelta(days=365)
UI_SESSION_KEY = "ui"
FILTERS_SESSION_KEY = "filters"


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)

    def _load_ui() -> UIState:
        return UIState.load(decode_cookie(request.cookies.get(UI_COOKIE)), session.get(UI_SESSION_KEY))

    @app.route("/api/ui/state", methods=["GET", "PATCH"], endpoint="api_ui_state")
    @login_required
    def api_ui_state():
        try:
            state = _load_ui()
            if request.method == "GET":
                return jsonify({"state": state.to_dict()}), 200

            state = state.apply(json_body())
            session[UI_SESSION_KEY] = state.session_part()
            resp = jsonify({"success": True, "state": state.to_dict()})
            resp.set_cookie(
                UI_COOKIE,
                encode_cookie(state.persisted()),
                max_age=int(UI_COOKIE_MAX_AGE.total_seconds()),
                httponly=True,
                samesite="Lax",
            )
            return resp, 200
        except Exception as e:
            return json_error(e)

    @app.route("/api/ui/filters", methods=["GET", "PATCH", "DELETE"], endpoint="api_ui_filters")
    @login_required
    def api_ui_filters():
        try:
            filters = FilterState.load(session.get(FILTERS_SESSION_KEY))
            if request.method == "PATCH":
                filters = filters.update(json_body())
            elif request.method == "DELETE":
                filters = filters.reset(request.args.get("section"))
            session[FILTERS_SESSION_KEY] = filters.to_session()
            return jsonify({"filters": filters.to_dict()}), 200
        except Exception as e:
            return json_error(e)
