from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from .applications.controller import register as register_applications
from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .payments.controller import register as register_payments

logger = logging.getLogger(__name__)


def create_app(settings: Any = None, *, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    if settings is None:
        settings = importlib.import_module(get_settings_module())

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    container = container or build_container(settings)
    app.extensions["rozgar_container"] = container

    if container.conn is not None and bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(container.conn)
        logger.info("schema ready (tables=%d)", len(list_tables(container.conn)))

    logger.info(
        "rozgar payroll started (store=%s, gateways=%s)",
        getattr(settings, "STORE_BACKEND", "mysql"),
        ", ".join(m.value for m in container.gateways) or "none",
    )

    register_error_handlers(app)
    register_attendance(app, container)
    register_payments(app, container)
    register_applications(app, container)

    return app
