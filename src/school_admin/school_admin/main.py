from __future__ import annotations

import importlib
import logging
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.responses import internal_error, json_response
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_admin, list_tables
from .fees.controller import register as register_fees
from .identity.controller import register as register_auth
from .library.controller import register as register_library
from .teachers.controller import register as register_teachers
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Container | None = None) -> Flask:
    """Build the Flask app.

    Passing a container skips the database bootstrap; tests use this to run the
    controllers against in-memory services.
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

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_admin(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            daily_fine_rate=Decimal(str(getattr(settings, "DAILY_FINE_RATE", "0.50"))),
        )

    register_auth(app, container)
    register_users(app, container)
    register_teachers(app, container)
    register_library(app, container)
    register_fees(app, container)

    @app.errorhandler(404)
    def not_found(_e):
        return json_response({"error": "Not found"}, 404)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return json_response({"error": "Method not allowed"}, 405)

    @app.errorhandler(500)
    def server_error(_e):
        return internal_error()

    return app
