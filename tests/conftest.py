import sys
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app
from misc.active_tasks import ActiveTaskRegistry, TaskHandle
from services.task_runner import TaskRunner


def hang_command(seconds):
    return [sys.executable, "-c", "import time; time.sleep(60)"]


def crash_command(seconds):
    return [sys.executable, "-c", "import sys; sys.exit('worker exploded')"]


def garbage_command(seconds):
    return [sys.executable, "-c", "print('not json')"]


def make_handle(returncode=None, seconds=1):
    """TaskHandle backed by a mock process."""
    process = MagicMock()
    process.returncode = returncode
    return TaskHandle(seconds=seconds, process=process)


@pytest.fixture
def registry():
    return ActiveTaskRegistry()


@pytest.fixture
def recorded_handles(registry, monkeypatch):
    """Every handle registered through the fixture registry, in order."""
    handles = []
    original = registry.register

    def _register(handle):
        handles.append(handle)
        original(handle)

    monkeypatch.setattr(registry, "register", _register)
    return handles


@pytest.fixture
def runner(registry):
    return TaskRunner(registry, grace_period=5.0)


@pytest.fixture
def test_settings():
    return Settings(
        HOSTNAME="test-instance",
        STATS_LOG_INTERVAL_SECONDS=0,
        LOG_LEVEL="WARNING",
        SENTRY_DSN="",
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
