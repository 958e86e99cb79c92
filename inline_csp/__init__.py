# inline_csp/__init__.py
# inline-csp — Flask app factory + render-time CSP allow-lists
# Goals:
# - per-request DynamicCollector, serialized into the CSP header after render
# - maintenance gate driven by a flag file (shared with the rollback CLI)
# - JSON error shape for API callers, HTML for web

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Type, Union
from uuid import uuid4

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException, InternalServerError, ServiceUnavailable
from werkzeug.utils import import_string

from inline_csp.exceptions import InlineCspError
from inline_csp.maintenance import MaintenanceMode
from inline_csp.security_headers import csp_event, csp_tag, get_inline_util, install_inline_csp

# IMPORTANT: never override real env vars in prod
load_dotenv(override=False)

ConfigLike = Union[str, Type[Any]]

__version__ = "0.1.0"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _env_mode(app: Optional[Flask] = None) -> str:
    if app is not None:
        v = str(app.config.get("ENV") or "").strip().lower()
        if v and v != "base":
            return v

    for key in ("APP_ENV", "ENV", "FLASK_ENV"):
        val = (os.getenv(key) or "").strip().lower()
        if val:
            if val == "prod":
                return "production"
            if val == "dev":
                return "development"
            return val

    return "development"


def _resolve_config(target: Optional[ConfigLike]) -> ConfigLike:
    """
    Choose config class/module path.
    - If explicitly provided, respect it.
    - Else if INLINE_CSP_CONFIG is set, use it.
    - Else pick by environment name.
    """
    if target is not None:
        return target

    explicit = (os.getenv("INLINE_CSP_CONFIG") or "").strip()
    if explicit:
        return explicit

    from inline_csp.config import CONFIG_BY_NAME

    return CONFIG_BY_NAME.get(_env_mode(None), CONFIG_BY_NAME["development"])


def _json_error(message: str, status: int, **extra: Any):
    payload: Dict[str, Any] = {"ok": False, "error": {"code": int(status), "message": str(message)}}
    rid = extra.pop("request_id", None)
    if rid:
        payload["error"]["request_id"] = rid
    if extra:
        payload["error"].update(extra)

    resp = jsonify(payload)
    resp.status_code = int(status)
    return resp


def _wants_json_response() -> bool:
    if (request.path or "").startswith("/api/"):
        return True
    accept = (request.headers.get("Accept") or "").lower()
    return ("application/json" in accept) or bool(request.is_json)


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


def _configure_logging(app: Flask) -> None:
    fmt = "%(asctime)s [%(levelname)s] %(name)s [rid=%(request_id)s]: %(message)s"
    root = logging.getLogger()

    if not any(isinstance(f, _RequestIDFilter) for h in root.handlers for f in h.filters):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler.addFilter(_RequestIDFilter())
        root.addHandler(handler)

    root.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    app.logger.info("Loaded config: ENV=%s DEBUG=%s", app.config.get("ENV", "?"), app.debug)


# -----------------------------------------------------------------------------
# Request lifecycle + maintenance gate + errors
# -----------------------------------------------------------------------------
def _register_request_lifecycle(app: Flask) -> None:
    @app.before_request
    def _bootstrap_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid4().hex

    @app.after_request
    def _attach_request_headers(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", "-")
        return resp


def _register_maintenance_gate(app: Flask) -> None:
    maintenance = MaintenanceMode(app.config["MAINTENANCE_FLAG_PATH"])
    app.extensions["inline_csp_maintenance"] = maintenance

    @app.before_request
    def _maintenance_gate():
        if request.path == "/healthz" or not maintenance.is_on():
            return None
        raise ServiceUnavailable("Service is under maintenance. Please try again shortly.")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http_err(err: HTTPException):
        if _wants_json_response():
            return _json_error(err.description or err.name, err.code or 500, request_id=getattr(g, "request_id", "-"))
        return err

    @app.errorhandler(InlineCspError)
    def _csp_err(err: InlineCspError):
        app.logger.exception("Dynamic CSP failure: %s", err)
        if _wants_json_response():
            return _json_error("Internal Server Error", 500, request_id=getattr(g, "request_id", "-"))
        return InternalServerError()


def _register_health_endpoints(app: Flask) -> None:
    @app.get("/healthz")
    def _healthz():
        maintenance: MaintenanceMode = app.extensions["inline_csp_maintenance"]
        return {
            "status": "maintenance" if maintenance.is_on() else "ok",
            "env": app.config.get("ENV", "unknown"),
            "request_id": getattr(g, "request_id", "-"),
        }


# -----------------------------------------------------------------------------
# App Factory
# -----------------------------------------------------------------------------
def create_app(config_class: Optional[ConfigLike] = None, **overrides: Any) -> Flask:
    app = Flask(__name__)

    cfg = _resolve_config(config_class)
    if isinstance(cfg, str):
        cfg = import_string(cfg)
    app.config.from_object(cfg)
    app.config.update(overrides)

    env = _env_mode(app)
    if not app.config.get("ENV") or str(app.config.get("ENV")).strip() == "base":
        app.config["ENV"] = env

    init_hook = getattr(cfg, "init_app", None)
    if callable(init_hook):
        init_hook(app)

    _configure_logging(app)

    # ---- Request lifecycle first so request_id exists for everything after
    _register_request_lifecycle(app)
    _register_maintenance_gate(app)
    _register_error_handlers(app)

    install_inline_csp(app)
    _register_health_endpoints(app)

    from inline_csp.cli import csp_cli

    app.cli.add_command(csp_cli)

    return app


__all__ = [
    "__version__",
    "create_app",
    "csp_event",
    "csp_tag",
    "get_inline_util",
    "install_inline_csp",
]
