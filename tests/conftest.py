from __future__ import annotations

import pytest

from inline_csp import create_app
from inline_csp.config import TestingConfig
from inline_csp.security import DynamicCollector, InlineUtil


@pytest.fixture
def collector() -> DynamicCollector:
    return DynamicCollector()


@pytest.fixture
def inline_util(collector) -> InlineUtil:
    return InlineUtil(collector)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        TestingConfig,
        MAINTENANCE_FLAG_PATH=str(tmp_path / "var" / ".maintenance.flag"),
        BACKUP_DIR=str(tmp_path / "backups"),
        ROLLBACK_TARGET_DIR=str(tmp_path / "code"),
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()
