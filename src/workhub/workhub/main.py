from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .chat.controller import register as register_chat
from .container import Container, build_container
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, SESSION_DAYS
from .database.bootstrap import apply_schema, list_tables, seed_demo_data
from .leave.controller import register as register_leave
from .notifications.controller import register as register_notifications
from .reports.controller import register as register_reports
from .tasks.controller import register as register_tasks
from .timetracking.controller import register as register_timetracking
from .ui_state.controller import register as register_ui_state
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Without ``container`` the services are wired over MySQL using the settings
    module selected by ``APP_ENV``.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    session_days = int(getattr(settings, "SESSION_DAYS", SESSION_DAYS))
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    # Fixed lifetime from sign-in; never slide the expiry forward.
    app.config["SESSION_REFRESH_EACH_REQUEST"] = False
    app.permanent_session_lifetime = timedelta(days=session_days)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            session_days=session_days,
            grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
        )

        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            seed_demo_data(container.uow, container.registration_service)

    app.extensions["workhub"] = container

    register_users(app, container)
    register_leave(app, container)
    register_attendance(app, container)
    register_tasks(app, container)
    register_chat(app, container)
    register_notifications(app, container)
    register_timetracking(app, container)
    register_reports(app, container)
    register_ui_state(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="api_health")
    def api_health():
        return jsonify({"status": "ok"}), 200

    return app
