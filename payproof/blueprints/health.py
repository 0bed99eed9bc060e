from __future__ import annotations

import os
import socket
import time
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Blueprint, current_app, g, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from payproof.extensions import db

bp = Blueprint("health", __name__)

APP_STARTED_AT = time.time()
HOSTNAME = socket.gethostname()

BUILD_VERSION = (
    os.getenv("BUILD_VERSION") or os.getenv("RELEASE") or os.getenv("VERSION") or "dev"
)
GIT_SHA = (os.getenv("GIT_COMMIT") or os.getenv("GIT_SHA") or "")[:12]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _overall_status(parts: Dict[str, Dict[str, Any]]) -> str:
    states = [p.get("status", "ok") for p in parts.values()]
    if any(s == "fail" for s in states):
        return "fail"
    if any(s == "degraded" for s in states):
        return "degraded"
    return "ok"


def _db_check() -> Dict[str, Any]:
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "ok", "ok": True, "dialect": db.engine.dialect.name}
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"status": "fail", "ok": False, "error": str(e)}


def _mail_check() -> Dict[str, Any]:
    cfg = current_app.config
    if not cfg.get("PAYMENT_NOTIFY_TO"):
        return {"status": "degraded", "ok": False, "reason": "no-operator-address"}
    if not cfg.get("MAIL_DEFAULT_SENDER"):
        return {"status": "degraded", "ok": False, "reason": "no-sender"}
    return {
        "status": "ok",
        "ok": True,
        "server": cfg.get("MAIL_SERVER"),
        "port": cfg.get("MAIL_PORT"),
        "ssl": bool(cfg.get("MAIL_USE_SSL")),
    }


def _summary_payload() -> Dict[str, Any]:
    parts = {
        "database": _db_check(),
        "mail": _mail_check(),
    }
    return {
        "status": _overall_status(parts),
        "version": BUILD_VERSION,
        "git": GIT_SHA,
        "hostname": HOSTNAME,
        "started_at": datetime.fromtimestamp(APP_STARTED_AT, tz=timezone.utc).isoformat(
            timespec="seconds"
        ),
        "uptime_s": int(time.time() - APP_STARTED_AT),
        "now": _now_iso(),
        "parts": parts,
    }


@bp.get("/healthz")
def healthz():
    return jsonify(
        {
            "status": "ok",
            "env": current_app.config.get("ENV", "unknown"),
            "request_id": getattr(g, "request_id", "-"),
            "uptime_s": int(time.time() - APP_STARTED_AT),
        }
    )


@bp.get("/ready")
def ready():
    p = _summary_payload()
    code = 200 if p["status"] != "fail" else 503
    return jsonify(p), code


@bp.get("/version")
def version():
    return jsonify(
        {
            "version": BUILD_VERSION,
            "git": GIT_SHA,
            "env": current_app.config.get("ENV"),
        }
    )
