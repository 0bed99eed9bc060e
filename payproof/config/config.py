# payproof/config/config.py
# Canonical PayProof configuration (env-first, production-safe)

from __future__ import annotations

import os
from typing import Optional


# ----------------------------
# Env helpers
# ----------------------------
_TRUTHY = {"1", "true", "yes", "on", "y"}
_FALSY = {"0", "false", "no", "off", "n"}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    s = str(v).strip()
    return s if s else default


def parse_flag(value: Optional[str]) -> Optional[bool]:
    """True/False for a recognised flag value, None otherwise."""
    s = (value or "").strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    return None


def env_flag(name: str) -> Optional[bool]:
    return parse_flag(_env(name))


def _bool(name: str, default: bool = False) -> bool:
    v = env_flag(name)
    return default if v is None else v


def _int(name: str, default: int) -> int:
    v = _env(name)
    if v is None:
        return default
    try:
        return int(str(v).strip())
    except ValueError:
        return default


def _database_url(default: Optional[str]) -> Optional[str]:
    url = _env("DATABASE_URL") or _env("SQLALCHEMY_DATABASE_URI") or default
    # SQLAlchemy 1.4+ dropped the legacy "postgres://" scheme alias
    if url and url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


PROOF_MAX_BYTES_DEFAULT = 5 * 1024 * 1024


# ----------------------------
# Config classes
# ----------------------------
class BaseConfig:
    """
    Env-first config:
    - all important settings can be overridden via environment variables
    - safe defaults for local dev
    """

    ENV = (_env("APP_ENV") or _env("ENV") or _env("FLASK_ENV") or "base").strip().lower()

    DEBUG = _bool("FLASK_DEBUG", False)
    TESTING = _bool("TESTING", False)

    SECRET_KEY = _env("SECRET_KEY", "dev-change-me")
    LOG_LEVEL = _env("LOG_LEVEL", "INFO")

    # Proxy trust (reverse proxy in front of the form endpoint)
    TRUST_PROXY = _bool("TRUST_PROXY", False)
    FORCE_HTTPS = _bool("FORCE_HTTPS", False)

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = _database_url("sqlite:///payproof-dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    AUTO_CREATE_TABLES = _bool("AUTO_CREATE_TABLES", True)

    # Outbound mail (Flask-Mail). Legacy names SMTP_SERVER / EMAIL / PASSWORD win.
    MAIL_SERVER = _env("SMTP_SERVER", _env("MAIL_SERVER", "localhost"))
    MAIL_PORT = _int("SMTP_PORT", _int("MAIL_PORT", 465))
    MAIL_USE_SSL = _bool("SMTP_USE_SSL", True)
    MAIL_USE_TLS = _bool("SMTP_USE_TLS", False)
    MAIL_USERNAME = _env("EMAIL", _env("MAIL_USERNAME"))
    MAIL_PASSWORD = _env("PASSWORD", _env("MAIL_PASSWORD"))
    MAIL_DEFAULT_SENDER = _env("EMAIL", _env("MAIL_DEFAULT_SENDER"))
    MAIL_SUPPRESS_SEND = _bool("MAIL_SUPPRESS_SEND", False)
    PAYMENT_NOTIFY_TO = _env("EMAILOUT", _env("PAYMENT_NOTIFY_TO"))
    PAYMENT_NOTIFY_SUBJECT = _env("PAYMENT_NOTIFY_SUBJECT", "Nuevo Pago Registrado")

    # Proof-of-payment uploads
    PROOF_MAX_BYTES = _int("PROOF_MAX_BYTES", PROOF_MAX_BYTES_DEFAULT)
    PROOF_MAX_WIDTH = _int("PROOF_MAX_WIDTH", 800)
    # Hard ceiling for the whole multipart body (fields + file)
    MAX_CONTENT_LENGTH = _int("MAX_CONTENT_LENGTH", PROOF_MAX_BYTES_DEFAULT + 1024 * 1024)

    # Public form is posted from other origins
    CORS_ORIGINS = _env("CORS_ORIGINS", "*")

    SENTRY_DSN = _env("SENTRY_DSN")

    @classmethod
    def init_app(cls, app) -> None:
        """
        Hook for factory boot hardening.
        Called from create_app() after app.config.from_object(...)
        """
        uri = str(app.config.get("SQLALCHEMY_DATABASE_URI") or "")

        if uri.startswith("sqlite:"):
            opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
            connect_args = dict(opts.get("connect_args") or {})
            connect_args.setdefault("check_same_thread", False)
            opts["connect_args"] = connect_args
            opts.setdefault("pool_pre_ping", True)
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts


class DevelopmentConfig(BaseConfig):
    ENV = "development"
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = _database_url("sqlite:///payproof-dev.db")
    TRUST_PROXY = _bool("TRUST_PROXY", False)


class TestingConfig(BaseConfig):
    ENV = "testing"
    TESTING = True
    DEBUG = False

    SECRET_KEY = "testing-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    AUTO_CREATE_TABLES = True

    MAIL_SERVER = "localhost"
    MAIL_PORT = 465
    MAIL_USERNAME = "pagos@example.org"
    MAIL_PASSWORD = "secret"
    MAIL_DEFAULT_SENDER = "pagos@example.org"
    MAIL_SUPPRESS_SEND = True
    PAYMENT_NOTIFY_TO = "tesoreria@example.org"

    PROOF_MAX_BYTES = PROOF_MAX_BYTES_DEFAULT
    PROOF_MAX_WIDTH = 800
    MAX_CONTENT_LENGTH = PROOF_MAX_BYTES_DEFAULT + 1024 * 1024

    SENTRY_DSN = None
    TRUST_PROXY = False


class ProductionConfig(BaseConfig):
    ENV = "production"
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = _database_url(None)
    TRUST_PROXY = _bool("TRUST_PROXY", True)

    @classmethod
    def init_app(cls, app) -> None:
        if not app.config.get("SQLALCHEMY_DATABASE_URI"):
            raise RuntimeError("DATABASE_URL must be set in production.")

        super().init_app(app)

        # ---- Production guardrails (fail fast) ----
        sk = app.config.get("SECRET_KEY")
        if not sk or sk == "dev-change-me":
            raise RuntimeError("SECRET_KEY must be set to a strong random value in production.")

        if not app.config.get("PAYMENT_NOTIFY_TO"):
            raise RuntimeError("EMAILOUT must be set to the operator address in production.")

        if not app.config.get("MAIL_DEFAULT_SENDER"):
            raise RuntimeError("EMAIL must be set to the sender address in production.")

        if _bool("FLASK_DEBUG", False):
            raise RuntimeError("FLASK_DEBUG must be 0 in production.")
