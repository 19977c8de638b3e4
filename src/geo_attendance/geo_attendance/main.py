from __future__ import annotations

import importlib
import logging
from pathlib import Path
from types import ModuleType

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.errors import register_error_handlers
from .common.http import ok
from .container import Container, build_container
from .core.constants import DEFAULT_GEOFENCE_RADIUS_KM
from .corrections.controller import register as register_corrections
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables, seed_memory_demo
from .users.controller import register as register_users

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings_module: str | ModuleType | None = None, *, container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    if isinstance(settings_module, ModuleType):
        settings = settings_module
    else:
        settings = importlib.import_module(settings_module or get_settings_module())

    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    db_config = dict(getattr(settings, "DB_CONFIG", {}))
    backend = getattr(settings, "DB_BACKEND", "mysql")
    auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
    auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))

    app.logger.info(
        "settings=%s backend=%s db=%s@%s:%s/%s",
        settings.__name__,
        backend,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None and backend == "mysql":
        if auto_init_db:
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            app.logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if auto_seed_db:
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_users(db_config)
            app.logger.info("demo seed ready")

    if container is None:
        container = build_container(
            db_config=db_config,
            backend=backend,
            default_radius_km=float(getattr(settings, "DEFAULT_GEOFENCE_RADIUS_KM", DEFAULT_GEOFENCE_RADIUS_KM)),
        )
        if backend == "memory" and auto_seed_db:
            seed_memory_demo(container.users_repo, container.companies_repo)

    app.extensions["geo_attendance"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_attendance(app, container)
    register_corrections(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "ok", "backend": backend})

    return app
