"""pytest global fixtures: isolate configuration and storage per test."""

import io

import pytest

from tripline.infrastructure.logging import StructuredLogger
from tripline.persistence.repository import InMemoryScheduleRepository
from tripline.persistence.sqlite_repository import SQLiteScheduleRepository


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Never touch a developer's real schedule store or timezone override."""
    monkeypatch.setenv("TRIPLINE_DB", str(tmp_path / "env.sqlite3"))
    monkeypatch.delenv("TRIPLINE_TIMEZONE", raising=False)
    monkeypatch.delenv("TRIPLINE_DB_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("TRIPLINE_VALIDATION_WORKERS", raising=False)
    yield


@pytest.fixture
def log_buffer():
    return io.StringIO()


@pytest.fixture
def logger(log_buffer):
    return StructuredLogger(trace_id="test", output=log_buffer)


@pytest.fixture
def memory_repo():
    return InMemoryScheduleRepository()


@pytest.fixture
def sqlite_repo(tmp_path):
    return SQLiteScheduleRepository(tmp_path / "tripline.sqlite3")
