from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import bootstrap, build_container
from .courses.controller import register as register_courses
from .database.bootstrap import apply_schema, list_tables
from .semesters.controller import register as register_semesters

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    backend = getattr(settings, "STORE_BACKEND", "mysql")
    db_config = getattr(settings, "DB_CONFIG", None)

    if backend == "mysql":
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(
        backend=backend,
        db_config=db_config,
        debounce_seconds=float(getattr(settings, "DEBOUNCE_SECONDS", 0.1)),
        notifications_enabled=bool(getattr(settings, "NOTIFICATIONS_ENABLED", True)),
        absence_limit_notification=bool(getattr(settings, "ABSENCE_LIMIT_NOTIFICATION", True)),
        timetable_days=int(getattr(settings, "TIMETABLE_DAYS", 5)),
        timetable_periods=int(getattr(settings, "TIMETABLE_PERIODS", 5)),
    )
    bootstrap(container)
    app.extensions["semester_attendance"] = container

    register_semesters(app, container)
    register_courses(app, container)
    register_attendance(app, container)

    return app
