"""HTTP surface tests using FastAPI's TestClient."""

from __future__ import annotations

import datetime as dt
import io

import pytest
from fastapi.testclient import TestClient

from tripline.api.main import app, get_context
from tripline.application.context import AppContext
from tripline.config.settings import EngineSettings
from tripline.domain.models import Activity, TransportAlternative
from tripline.infrastructure.logging import StructuredLogger
from tripline.persistence.repository import InMemoryScheduleRepository
from tripline.shared.exceptions import StorageError

UTC = dt.timezone.utc


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2026, 3, 14, hour, minute, tzinfo=UTC)


def _seed(repo) -> None:
    for row in (
        Activity(id="a", day_id="d1", scheduled_start=_at(9), scheduled_end=_at(10)),
        Activity(id="b", day_id="d1", scheduled_start=_at(10, 45), scheduled_end=_at(11, 30)),
        Activity(id="c", day_id="d1", scheduled_start=_at(12), scheduled_end=_at(13)),
        Activity(id="f", day_id="d1", scheduled_start=_at(13, 30), scheduled_end=_at(14, 30), is_flexible=False),
    ):
        repo.save_activity(row)
    for alt_id, minutes, selected in (("walk", 45, True), ("bus", 75, False), ("taxi", 90, False)):
        repo.save_alternative(
            TransportAlternative(
                id=alt_id,
                from_activity_id="a",
                to_activity_id="b",
                name=alt_id,
                duration_minutes=minutes,
                is_selected=selected,
            )
        )


def _client_for(repo, tmp_path) -> TestClient:
    ctx = AppContext(
        settings=EngineSettings(db_path=tmp_path / "api.sqlite3"),
        repository_factory=lambda _settings: repo,
        logger=StructuredLogger(trace_id="api", output=io.StringIO()),
    )
    app.dependency_overrides[get_context] = lambda: ctx
    return TestClient(app)


@pytest.fixture
def client(sqlite_repo, tmp_path):
    _seed(sqlite_repo)
    yield _client_for(sqlite_repo, tmp_path)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_validate_reports_rendered_reason(client):
    resp = client.post("/transport-alternatives/bus/validate")
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_feasible"] is False
    assert body["failure_kind"] == "late_arrival"
    assert body["reason"] == "Arrives 30 minutes late"

    assert client.post("/transport-alternatives/walk/validate").json()["is_feasible"] is True


def test_unknown_alternative_is_404(client):
    resp = client.post("/transport-alternatives/ghost/validate")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Transport alternative not found: ghost"
    assert client.get("/transport-alternatives/ghost/impact").status_code == 404


def test_batch_validation(client):
    resp = client.post("/transport-alternatives/validate", json={"alternative_ids": ["walk", "ghost"]})
    assert resp.status_code == 200
    items = resp.json()["items"]
    assert [item["alternative_id"] for item in items] == ["walk", "ghost"]
    assert items[0]["validation"]["is_feasible"] is True
    assert items[1]["found"] is False

    assert client.post("/transport-alternatives/validate", json={"alternative_ids": []}).status_code == 422


def test_impact_preview(client):
    body = client.get("/transport-alternatives/bus/impact").json()
    assert body["transport_alternative_id"] == "bus"
    assert body["total_shift_minutes"] == 30
    assert [item["activity_id"] for item in body["affected_activities"]] == ["b", "c"]
    assert body["conflicts"] == []


def test_select_conflict_needs_acceptance(client, sqlite_repo):
    resp = client.post("/transport-alternatives/taxi/select")
    assert resp.status_code == 409
    assert resp.json()["conflicts"] == ["f"]
    assert sqlite_repo.get_activity("c").scheduled_start == _at(12)

    resp = client.post("/transport-alternatives/taxi/select", json={"accept_conflicts": True})
    assert resp.status_code == 200
    assert resp.json()["applied"]["total_shift_minutes"] == 45
    assert sqlite_repo.get_alternative("taxi").is_selected


def test_apply_previewed_updates(client, sqlite_repo):
    preview = client.get("/transport-alternatives/bus/impact").json()

    resp = client.post(
        "/schedule/apply",
        json={"updates": preview["affected_activities"], "select_alternative_id": "bus"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"applied": 2, "selected_alternative_id": "bus"}
    assert sqlite_repo.get_activity("b").scheduled_start == _at(11, 15)
    assert sqlite_repo.get_alternative("bus").is_selected


def test_apply_stale_preview_is_409(client, sqlite_repo):
    preview = client.get("/transport-alternatives/bus/impact").json()
    sqlite_repo.save_activity(sqlite_repo.get_activity("c").model_copy(update={"name": "edited"}))

    resp = client.post("/schedule/apply", json={"updates": preview["affected_activities"]})

    assert resp.status_code == 409
    assert resp.json()["activity_id"] == "c"
    assert sqlite_repo.get_activity("b").scheduled_start == _at(10, 45)


def test_list_alternatives_for_pair(client):
    resp = client.get("/activities/a/transport-to/b")
    assert resp.status_code == 200
    assert [item["id"] for item in resp.json()["items"]] == ["walk", "bus", "taxi"]


def test_settlements(client):
    resp = client.post(
        "/settlements",
        json={"balances": [{"id": "A", "balance": 50}, {"id": "B", "balance": -30}, {"id": "C", "balance": -20}]},
    )
    assert resp.status_code == 200
    pairs = {(t["from_member"], t["to_member"], t["amount"]) for t in resp.json()["transfers"]}
    assert pairs == {("B", "A", 30.0), ("C", "A", 20.0)}


def test_storage_failure_is_500(tmp_path):
    class _DownRepo(InMemoryScheduleRepository):
        def list_alternatives(self, from_activity_id, to_activity_id):
            raise StorageError("database is locked")

    client = _client_for(_DownRepo(), tmp_path)
    try:
        resp = client.get("/activities/a/transport-to/b")
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Storage error, no changes were applied"}
