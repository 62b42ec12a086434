from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import fail
from .container import Container, build_container
from .core.constants import DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS
from .database.bootstrap import apply_schema, list_tables
from .attendance.controller import register as register_attendance
from .reports.controller import register as register_reports
from .settings.controller import register as register_settings
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    `container` lets callers (tests) supply pre-wired services; otherwise the
    MySQL-backed container is built from the active settings module.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

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
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            token_max_age=int(getattr(settings, "SLOT_TOKEN_MAX_AGE_SECONDS", DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS)),
        )

    app.extensions["university_attendance"] = container

    register_users(app, container)
    register_settings(app, container)
    register_attendance(app, container)
    register_reports(app, container)

    @app.errorhandler(404)
    def not_found(_e):
        return fail("Resource not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return fail("Method not allowed", 405)

    return app
