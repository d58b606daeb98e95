from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.errors import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_CHECK_IN, DEFAULT_CHECK_OUT, DEFAULT_UPLOAD_FOLDER, MAX_DOCUMENT_SIZE, MAX_DOCUMENTS
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .notifications.controller import register as register_notifications
from .regularization.controller import register as register_regularizations
from .users.controller import register as register_users

log = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """App factory. Pass a prebuilt ``container`` to skip database wiring (tests)."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    # Room for every attachment plus the form fields.
    app.config["MAX_CONTENT_LENGTH"] = MAX_DOCUMENTS * MAX_DOCUMENT_SIZE + 1024 * 1024

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        log.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            log.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            upload_folder=getattr(settings, "UPLOAD_FOLDER", DEFAULT_UPLOAD_FOLDER),
            work_check_in=getattr(settings, "WORK_CHECK_IN", DEFAULT_CHECK_IN),
            work_check_out=getattr(settings, "WORK_CHECK_OUT", DEFAULT_CHECK_OUT),
            first_levels=getattr(settings, "REGULARIZATION_FIRST_LEVELS", None),
        )

    register_error_handlers(app)
    register_users(app, container)
    register_regularizations(app, container)
    register_notifications(app, container)

    return app
