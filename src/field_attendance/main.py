from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .cli import register as register_cli
from .common.http import fail
from .common.logging import configure_logging
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import ensure_indexes
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 5 * 1024 * 1024))
    app.config["TIMEZONE"] = getattr(settings, "TIMEZONE", "Asia/Kolkata")

    if container is None:
        container = build_container(settings=settings)
        if bool(getattr(settings, "AUTO_INIT_DB", False)) and container.conn is not None:
            try:
                ensure_indexes(container.conn)
            except Exception:
                logger.exception("Index creation failed")

    logger.info("field-attendance starting with settings=%s", settings_module)
    app.extensions["field_attendance"] = container

    register_attendance(app, container)
    register_reports(app, container)
    register_cli(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return {"status": "ok", "service": "field-attendance"}

    @app.errorhandler(404)
    def not_found(_e):
        return fail("Route not found", 404)

    @app.errorhandler(413)
    def too_large(_e):
        return fail("Selfie image is too large", 413, error="ValidationError")

    return app
