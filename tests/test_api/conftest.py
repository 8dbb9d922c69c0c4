"""Fixtures for the HTTP layer: a real app over a temp database."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from quotagate.api.app import create_app
from quotagate.config.settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temp directory."""
    s = Settings(project_root=tmp_path)
    s.ensure_dirs()
    return s


@pytest.fixture
def app(settings: Settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
