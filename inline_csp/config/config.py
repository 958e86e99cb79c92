# inline_csp/config/config.py
# Canonical inline-csp configuration (env-first)

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


def _bool(name: str, default: bool = False) -> bool:
    v = _env(name)
    if v is None:
        return default
    s = v.strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    return default


# ----------------------------
# Config classes
# ----------------------------
class BaseConfig:
    """
    Env-first config:
    - every CSP / maintenance setting can be overridden via environment variables
    - safe defaults for local dev
    """

    ENV = (_env("APP_ENV") or _env("ENV") or "base").strip().lower()

    DEBUG = _bool("FLASK_DEBUG", False)
    TESTING = _bool("TESTING", False)

    LOG_LEVEL = _env("LOG_LEVEL", "INFO")

    # Dynamic CSP
    # 'unsafe-hashes' is CSP level 3 only; off means inline handlers fall back to 'unsafe-inline'
    CSP_USE_UNSAFE_HASHES = _bool("CSP_USE_UNSAFE_HASHES", False)
    CSP_ENABLED = _bool("CSP_ENABLED", True)
    CSP_REPORT_ONLY = _bool("CSP_REPORT_ONLY", False)
    CSP_REPORT_URI = _env("CSP_REPORT_URI", "")

    # Maintenance / rollback
    MAINTENANCE_FLAG_PATH = _env("MAINTENANCE_FLAG_PATH", os.path.join("var", ".maintenance.flag"))
    BACKUP_DIR = _env("BACKUP_DIR", os.path.join("var", "backups"))
    ROLLBACK_TARGET_DIR = _env("ROLLBACK_TARGET_DIR", ".")


class DevelopmentConfig(BaseConfig):
    ENV = "development"
    DEBUG = True
    # surface policy gaps without breaking pages while iterating
    CSP_REPORT_ONLY = _bool("CSP_REPORT_ONLY", True)


class ProductionConfig(BaseConfig):
    ENV = "production"
    DEBUG = False
    CSP_USE_UNSAFE_HASHES = _bool("CSP_USE_UNSAFE_HASHES", True)

    @classmethod
    def init_app(cls, app) -> None:
        if _bool("FLASK_DEBUG", False):
            raise RuntimeError("FLASK_DEBUG must be 0 in production.")
        if app.config.get("CSP_REPORT_ONLY") and not app.config.get("CSP_REPORT_URI"):
            app.logger.warning("CSP report-only mode without CSP_REPORT_URI: violations go nowhere")


class TestingConfig(BaseConfig):
    ENV = "testing"
    TESTING = True
    CSP_USE_UNSAFE_HASHES = False
    CSP_REPORT_ONLY = False
