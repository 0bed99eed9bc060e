#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
PayProof launcher.

- Local dev:             ./run.py --env development
- Local dev (no reload): ./run.py --env development --no-reload
- Production:            ENV=production ./run.py --env production --no-reload --debug=false
- Gunicorn:              gunicorn "wsgi:app" -b 0.0.0.0:4610

Assumes the app factory at `payproof.create_app(config_path)`.
"""

import argparse
import logging
import os
import socket
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from payproof.config.config import env_flag, parse_flag

DEFAULT_PORT = 4610


# -----------------------------------------------------------------------------
# Env helpers
# -----------------------------------------------------------------------------
def _normalize_env_name(v: str) -> str:
    r = (v or "").strip().lower()
    if r in {"dev", "development", "local"}:
        return "development"
    if r in {"test", "testing"}:
        return "testing"
    if r in {"prod", "production"}:
        return "production"
    return r or "development"


def normalize_config_path(value: Optional[str], *, env_hint: Optional[str] = None) -> str:
    """
    Returns a dotted path like "payproof.config.DevelopmentConfig".
    Priority:
      1) explicit value (e.g. --config)
      2) env_hint (e.g. --env)
      3) FLASK_ENV / ENV
    """
    by_env = {
        "development": "payproof.config.DevelopmentConfig",
        "testing": "payproof.config.TestingConfig",
        "production": "payproof.config.ProductionConfig",
    }

    if value and str(value).strip():
        v = value.strip()
        return by_env.get(_normalize_env_name(v), v) if "." not in v else v

    env = _normalize_env_name(env_hint or os.getenv("FLASK_ENV") or os.getenv("ENV") or "development")
    return by_env.get(env, by_env["development"])


# -----------------------------------------------------------------------------
# CLI parsing
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class RunnerConfig:
    host: str
    port: int
    debug: bool
    use_reloader: bool
    force_run: bool
    env: str
    config_path: str


def _sanitize_bool_equals(argv: list[str]) -> list[str]:
    """
    Converts --debug=false -> --no-debug and --debug=true -> --debug
    so systemd-style flags won't crash argparse.
    """
    out: list[str] = []
    for a in argv:
        if a.startswith("--debug="):
            flag = parse_flag(a.split("=", 1)[1])
            out.append(a if flag is None else "--debug" if flag else "--no-debug")
            continue
        out.append(a)
    return out


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the PayProof Flask app.")
    p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", str(DEFAULT_PORT))))
    p.add_argument("--force", dest="force_run", action="store_true")
    p.add_argument("--env", choices=["development", "testing", "production"], help="Runtime environment")
    p.add_argument("--config", help="Explicit dotted config path or alias (dev/prod/test)")
    p.add_argument(
        "--debug",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force debug on/off (default: on in dev/test).",
    )
    p.add_argument("--no-reload", action="store_true", help="Disable Werkzeug reloader (default: enabled in dev).")
    return p.parse_args(_sanitize_bool_equals(sys.argv[1:] if argv is None else argv))


def make_runner_config(argv: Optional[list[str]] = None) -> RunnerConfig:
    a = parse_args(argv)

    env = _normalize_env_name(a.env or os.getenv("ENV") or os.getenv("FLASK_ENV") or "development")
    os.environ["ENV"] = env
    os.environ["FLASK_ENV"] = env

    cfg_path = normalize_config_path(a.config or os.getenv("FLASK_CONFIG"), env_hint=env)

    # DEBUG precedence: flag, then FLASK_DEBUG, then env default
    debug_env = env_flag("FLASK_DEBUG")
    if a.debug is not None:
        debug = bool(a.debug)
    elif debug_env is not None:
        debug = bool(debug_env)
    else:
        debug = env in {"development", "testing"}

    use_reloader = bool(env == "development" and debug and not a.no_reload and not a.force_run)

    return RunnerConfig(
        host=a.host,
        port=a.port,
        debug=debug,
        use_reloader=use_reloader,
        force_run=bool(a.force_run),
        env=env,
        config_path=cfg_path,
    )


# -----------------------------------------------------------------------------
# Runtime helpers
# -----------------------------------------------------------------------------
def _port_in_use(host: str, port: int) -> bool:
    probe_host = "127.0.0.1" if host in {"0.0.0.0", "::"} else host
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.settimeout(0.35)
            return s.connect_ex((probe_host, port)) == 0
    except OSError:
        return False


def print_routes(app) -> None:
    print("\n🔗 Routes:")
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: str(r)):
        methods = sorted((rule.methods or set()) - {"HEAD", "OPTIONS"})
        print(f"  {rule} → {rule.endpoint} ({','.join(methods)})")


def preflight_prod_warnings(cfg: RunnerConfig) -> None:
    if cfg.env != "production":
        return
    if cfg.debug:
        logging.warning("DEBUG is on in production. Pass --debug=false.")
    if cfg.use_reloader:
        logging.warning("Reloader is on in production. Pass --no-reload.")
    if not (os.getenv("SMTP_SERVER") or "").strip():
        logging.warning("SMTP_SERVER is not set; operator notifications will fail.")


# -----------------------------------------------------------------------------
# Main entry
# -----------------------------------------------------------------------------
def main(argv: Optional[list[str]] = None) -> None:
    # Never override real env vars
    load_dotenv(override=False)

    cfg = make_runner_config(argv)
    logging.basicConfig(level=logging.DEBUG if cfg.debug else logging.INFO)

    if not cfg.force_run and _port_in_use(cfg.host, cfg.port):
        logging.error("Port %s already in use (host=%s). Stop the other process or use --force.", cfg.port, cfg.host)
        raise SystemExit(2)

    preflight_prod_warnings(cfg)

    try:
        from payproof import create_app

        flask_app = create_app(cfg.config_path)

        # Only print routes once when using the reloader
        if cfg.debug and ((not cfg.use_reloader) or os.environ.get("WERKZEUG_RUN_MAIN") == "true"):
            print_routes(flask_app)

        logging.info("PayProof listening on %s:%s (env=%s)", cfg.host, cfg.port, cfg.env)
        flask_app.run(host=cfg.host, port=cfg.port, debug=cfg.debug, use_reloader=cfg.use_reloader)
    except SystemExit:
        raise
    except Exception as exc:
        logging.error("❌ Failed to launch PayProof: %s", exc, exc_info=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
