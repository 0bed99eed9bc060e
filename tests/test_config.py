from __future__ import annotations

import pytest
from flask import Flask

from payproof import create_app
from payproof.config import ProductionConfig
from payproof.config.config import _database_url, parse_flag


def _prod_app(**config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(ProductionConfig)
    app.config.update(
        SQLALCHEMY_DATABASE_URI="postgresql://pagos:secret@db/pagos",
        SECRET_KEY="a-real-secret-value",
        PAYMENT_NOTIFY_TO="tesoreria@example.org",
        MAIL_DEFAULT_SENDER="pagos@example.org",
    )
    app.config.update(config)
    return app


def test_env_example_keys_present() -> None:
    example = open(".env.example", "r", encoding="utf-8").read()
    for key in [
        "DATABASE_URL",
        "SMTP_SERVER",
        "SMTP_PORT",
        "EMAIL",
        "PASSWORD",
        "EMAILOUT",
        "SECRET_KEY",
    ]:
        assert key in example


def test_production_accepts_complete_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FLASK_DEBUG", raising=False)
    ProductionConfig.init_app(_prod_app())


@pytest.mark.parametrize(
    "override",
    [
        {"SQLALCHEMY_DATABASE_URI": None},
        {"SECRET_KEY": "dev-change-me"},
        {"PAYMENT_NOTIFY_TO": None},
        {"MAIL_DEFAULT_SENDER": None},
    ],
)
def test_production_guardrails(override, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FLASK_DEBUG", raising=False)
    with pytest.raises(RuntimeError):
        ProductionConfig.init_app(_prod_app(**override))


def test_production_rejects_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLASK_DEBUG", "1")
    with pytest.raises(RuntimeError):
        ProductionConfig.init_app(_prod_app())


def test_legacy_postgres_scheme_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@host:5432/pagos")
    assert _database_url(None) == "postgresql://u:p@host:5432/pagos"


def test_sqlite_gets_thread_check_disabled() -> None:
    app = create_app("payproof.config.TestingConfig")
    opts = app.config["SQLALCHEMY_ENGINE_OPTIONS"]
    assert opts["connect_args"]["check_same_thread"] is False


def test_testing_config_selected_by_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAYPROOF_ENV", "testing")
    monkeypatch.delenv("FLASK_CONFIG", raising=False)

    app = create_app()

    assert app.config["ENV"] == "testing"
    assert app.testing is True


@pytest.mark.parametrize(
    "raw,expected",
    [("1", True), (" Yes ", True), ("off", False), ("0", False), ("", None), (None, None), ("maybe", None)],
)
def test_parse_flag(raw, expected) -> None:
    assert parse_flag(raw) is expected
