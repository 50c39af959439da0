from __future__ import annotations

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_iso_date
from ..common.http import auth_guard, current_actor, json_error, query_int
from ..container import Container
from .service import export_report


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    reports = container.report_service

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="api_report_attendance")
    @login_required
    def api_report_attendance():
        try:
            start = request.args.get("start")
            end = request.args.get("end")
            report = reports.build_attendance_report(
                current_actor(),
                start=parse_iso_date(start) if start else None,
                end=parse_iso_date(end) if end else None,
                user_id=query_int("userId"),
            )

            fmt = request.args.get("format")
            if not fmt or fmt == "json":
                return jsonify(report.to_dict()), 200

            output, mimetype, filename = export_report(report, fmt)
            return send_file(output, download_name=filename, as_attachment=True, mimetype=mimetype)
        except Exception as e:
            return json_error(e)
