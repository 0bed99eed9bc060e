# payproof/__init__.py
# PayProof Flask app factory
# - payment-confirmation intake (form → DB → operator mail)
# - spreadsheet export of stored payments
# - JSON error shape everywhere (the only client is a static form page)

from __future__ import annotations

import logging
import os
import secrets
import time
from importlib import import_module
from typing import Any, List, Optional, Tuple, Type, Union
from uuid import uuid4

import sentry_sdk
from dotenv import load_dotenv
from flask import Flask, g, request
from flask_talisman import Talisman
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix

# IMPORTANT: never override real env vars in prod
load_dotenv(override=False)

ConfigLike = Union[str, Type[Any]]

from payproof.errors import error_response  # noqa: E402
from payproof.extensions import db, init_all_extensions  # noqa: E402

__version__ = "1.0.0"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _env_mode(app: Optional[Flask] = None) -> str:
    """
    Determine environment mode deterministically.
    Priority:
      1) app.config["ENV"] (if present and meaningful)
      2) PAYPROOF_ENV / ENV / FLASK_ENV env vars
      3) default "development"
    """
    if app is not None:
        v = app.config.get("ENV")
        if v and str(v).strip() and str(v).strip() not in {"?", "base"}:
            return str(v).strip().lower()

    for key in ("PAYPROOF_ENV", "ENV", "FLASK_ENV"):
        val = (os.getenv(key) or "").strip().lower()
        if val:
            if val in {"prod"}:
                return "production"
            if val in {"dev"}:
                return "development"
            return val

    return "development"


def _resolve_config(target: Optional[ConfigLike]) -> ConfigLike:
    """
    Choose config class/module path.
    - If explicitly provided, respect it.
    - Else if FLASK_CONFIG is set, use it.
    - Else choose by env mode.
    """
    if target is not None:
        return target

    explicit = (os.getenv("FLASK_CONFIG") or "").strip()
    if explicit:
        return explicit

    env = _env_mode(None)
    if env == "production":
        return "payproof.config.ProductionConfig"
    if env == "testing":
        return "payproof.config.TestingConfig"
    return "payproof.config.DevelopmentConfig"


def _is_prod(app: Flask) -> bool:
    return _env_mode(app) == "production"


def _parse_cors_origins(app: Flask) -> Union[str, List[str]]:
    raw = str(app.config.get("CORS_ORIGINS") or "*").strip()
    if raw in {"", "*"}:
        return "*"
    if "," in raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return raw


# -----------------------------------------------------------------------------
# Logging with request_id
# -----------------------------------------------------------------------------
class _RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        try:
            record.request_id = getattr(g, "request_id", "-")
        except RuntimeError:
            # outside an app/request context
            record.request_id = "-"
        return True


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [rid=%(request_id)s]: %(message)s"


def _configure_logging(app: Flask) -> None:
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(_RequestIDFilter())
        root.addHandler(handler)
    else:
        for h in root.handlers:
            if not any(isinstance(f, _RequestIDFilter) for f in h.filters):
                h.addFilter(_RequestIDFilter())
            if not getattr(h, "formatter", None) or "%(request_id)s" not in getattr(h.formatter, "_fmt", ""):
                h.setFormatter(logging.Formatter(LOG_FORMAT))

    root.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    logging.getLogger("werkzeug").setLevel(str(app.config.get("WERKZEUG_LOG_LEVEL", "WARNING")).upper())
    app.logger.info("Loaded config: ENV=%s DEBUG=%s", app.config.get("ENV", "?"), app.debug)


# -----------------------------------------------------------------------------
# ProxyFix (reverse proxy)
# -----------------------------------------------------------------------------
def _apply_proxyfix(app: Flask) -> None:
    if not app.config.get("TRUST_PROXY"):
        return

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)
    app.logger.info("ProxyFix enabled (trusting X-Forwarded-* headers).")
    app.config["PREFERRED_URL_SCHEME"] = "https"


# -----------------------------------------------------------------------------
# Blueprint registration (deterministic)
# -----------------------------------------------------------------------------
BLUEPRINTS: List[Tuple[str, str, Optional[str]]] = [
    ("payproof.blueprints.health", "bp", None),
    ("payproof.blueprints.payments", "bp", None),
    ("payproof.blueprints.reports", "bp", None),
]


def _register_blueprints(app: Flask) -> None:
    disabled = {p.strip().lower() for p in (os.getenv("DISABLE_BPS", "")).split(",") if p.strip()}

    for dotted, attr, prefix in BLUEPRINTS:
        if dotted.split(".")[-1].lower() in disabled:
            app.logger.info("Disabled module: %s", dotted)
            continue

        blueprint = getattr(import_module(dotted), attr)
        app.register_blueprint(blueprint, url_prefix=prefix)
        app.logger.debug("Registered blueprint: %-10s → %s", blueprint.name, prefix or "/")


# -----------------------------------------------------------------------------
# Integrations
# -----------------------------------------------------------------------------
def _init_sentry(app: Flask) -> None:
    dsn = (app.config.get("SENTRY_DSN") or "").strip()
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FlaskIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        send_default_pii=False,
        environment=app.config.get("ENV", "development"),
        release=os.getenv("GIT_COMMIT"),
    )
    app.logger.info("Sentry initialized")


def _init_talisman(app: Flask) -> None:
    if not _is_prod(app):
        return
    # JSON/xlsx only, no pages to protect with a CSP
    Talisman(
        app,
        content_security_policy=None,
        force_https=bool(app.config.get("FORCE_HTTPS")),
        session_cookie_secure=True,
    )


def _maybe_create_tables(app: Flask) -> None:
    if app.config.get("AUTO_CREATE_TABLES", True) is not True:
        return

    # Register the models on the metadata before create_all
    import_module("payproof.models")

    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError:
            app.logger.exception("create_all failed")
            raise
    app.logger.info("Tables created or already present")


# -----------------------------------------------------------------------------
# Request lifecycle + errors
# -----------------------------------------------------------------------------
def _register_request_lifecycle(app: Flask) -> None:
    @app.before_request
    def _bootstrap_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid4().hex
        g._start_ts = time.perf_counter()

    @app.after_request
    def _attach_request_headers(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", "-")
        start = getattr(g, "_start_ts", None)
        if start:
            resp.headers["X-Response-Time-ms"] = str(int((time.perf_counter() - start) * 1000))
        return resp


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(err: RequestEntityTooLarge):
        app.logger.info("Upload rejected: body over MAX_CONTENT_LENGTH")
        return error_response(
            "file_too_large",
            413,
            {"max_bytes": app.config.get("PROOF_MAX_BYTES")},
        )

    @app.errorhandler(HTTPException)
    def _http_err(err: HTTPException):
        return error_response(
            "http_error",
            err.code or 500,
            {"status": err.code, "request_id": getattr(g, "request_id", "-")},
            message=err.description or err.name,
        )

    @app.errorhandler(Exception)
    def _uncaught(err: Exception):
        app.logger.exception("Unhandled error")
        return error_response(
            "internal_error",
            500,
            {"request_id": getattr(g, "request_id", "-")},
        )


# -----------------------------------------------------------------------------
# App Factory
# -----------------------------------------------------------------------------
def create_app(config_class: Optional[ConfigLike] = None) -> Flask:
    app = Flask(__name__)

    # ---- Config loading
    cfg = _resolve_config(config_class)
    app.config.from_object(cfg)

    # ---- Normalize environment
    env = _env_mode(app)
    app.config["ENV"] = env

    cfg_obj = cfg
    if isinstance(cfg, str):
        module_name, _, cls_name = cfg.rpartition(".")
        cfg_obj = getattr(import_module(module_name), cls_name)
    init_hook = getattr(cfg_obj, "init_app", None)
    if callable(init_hook):
        init_hook(app)

    app.url_map.strict_slashes = False

    app.config.setdefault("JSON_SORT_KEYS", False)
    app.config.setdefault("PROPAGATE_EXCEPTIONS", False)
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = secrets.token_urlsafe(32)
    # Non-ASCII messages (Spanish) stay readable in JSON bodies
    app.json.ensure_ascii = False

    # ---- Proxy handling first
    _apply_proxyfix(app)

    # ---- Logging
    _configure_logging(app)

    # ---- Optional integrations
    _init_sentry(app)
    _init_talisman(app)

    # ---- Core extensions
    init_all_extensions(app, cors_origins=_parse_cors_origins(app))
    _maybe_create_tables(app)

    # ---- Request lifecycle / errors
    _register_request_lifecycle(app)
    _register_error_handlers(app)

    # ---- Blueprints
    _register_blueprints(app)

    # ---- CLI commands
    from payproof.cli import payments_cli

    app.cli.add_command(payments_cli)

    return app


__all__ = ["create_app", "__version__"]
