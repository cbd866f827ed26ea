"""Fixtures for API route tests.

The app reads every service from the process-wide container, so each
test installs the stub-backed container from tests/conftest.py.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from submission_delivery.api.main import create_app
from submission_delivery.bootstrap.container import (
    PipelineContainer,
    reset_container,
    set_container,
)


@pytest.fixture
def app(container: PipelineContainer) -> Iterator[FastAPI]:
    """Create the API with the test container installed."""
    set_container(container)
    yield create_app()
    reset_container()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client (lifespan not started)."""
    return TestClient(app)
