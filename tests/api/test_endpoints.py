"""
API endpoint tests
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_checkpoint_store, get_db, get_run_lock
from api.main import app
from ingestion.checkpoint import CheckpointStore
from ingestion.phases import PHASE_ORDER, Phase
from ingestion.run_lock import RunLock
from schemas.checkpoint import PhaseSummary


class FakeSession:
    """Just enough of AsyncSession for the health probe"""

    def __init__(self, error=None):
        self.error = error
        self.statements = []

    async def execute(self, statement):
        self.statements.append(statement)
        if self.error is not None:
            raise self.error


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session, checkpoint_dir):
    """Test client with the database and checkpoint directory overridden"""

    async def override_get_db():
        yield session

    def override_store():
        store = CheckpointStore(checkpoint_dir, read_only=True)
        store.load()
        return store

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_checkpoint_store] = override_store
    app.dependency_overrides[get_run_lock] = lambda: RunLock(checkpoint_dir)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"] == {"status": "/import/status", "phases": "/import/phases"}


def test_health_without_checkpoint(client):
    data = client.get("/health").json()

    assert data["status"] == "healthy"
    assert data["database_connected"] is True
    assert data["checkpoint_readable"] is True
    assert data["import_running"] is False
    assert data["last_error"] is None


def test_health_reports_database_failure(client, session):
    session.error = ConnectionRefusedError("connection refused")

    data = client.get("/health").json()

    assert data["status"] == "unhealthy"
    assert data["database_connected"] is False


def test_health_degraded_on_unreadable_checkpoint(client, checkpoint_dir):
    checkpoint_dir.mkdir(parents=True)
    (checkpoint_dir / "import-checkpoint.json").write_text("{not json")

    data = client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["checkpoint_readable"] is False


def test_health_reports_running_import_and_last_error(client, store, checkpoint_dir):
    store.record_error("FetchError: Upstream unavailable")
    lock = RunLock(checkpoint_dir)
    lock.acquire()

    data = client.get("/health").json()

    assert data["import_running"] is True
    assert data["last_error"] == "FetchError: Upstream unavailable"
    lock.release()


def test_status_without_checkpoint(client):
    data = client.get("/import/status").json()

    assert data["has_checkpoint"] is False
    assert data["progress"] is None
    assert data["phases"] == []


def test_status_reports_phase_states(client, store):
    store.update(offset=550, records_processed=550, total_expected=550)
    store.set_phase_summary(Phase.LEGISLATORS, PhaseSummary(created=550, duration_ms=1200))
    store.complete_current_phase()
    store.reset_phase(Phase.COMMITTEES)
    store.update(records_processed=70, total_expected=280)

    data = client.get("/import/status").json()

    assert data["has_checkpoint"] is True
    assert data["progress"]["run_id"] == store.state.run_id
    assert data["progress"]["progress"] == 25
    states = {p["phase"]: p for p in data["phases"]}
    assert states["legislators"]["state"] == "complete"
    assert states["legislators"]["summary"]["created"] == 550
    assert states["committees"]["state"] == "in_progress"
    assert states["validate"]["state"] == "pending"


def test_phase_graph(client):
    phases = client.get("/import/phases").json()["phases"]

    assert [p["phase"] for p in phases] == [p.value for p in PHASE_ORDER]
    votes = next(p for p in phases if p["phase"] == "votes")
    assert votes["depends_on"] == ["legislators", "bills"]


def test_request_id_is_echoed(client):
    response = client.get("/import/phases", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-API-Latency-ms" in response.headers


def test_request_id_is_generated(client):
    response = client.get("/")
    assert len(response.headers["X-Request-ID"]) == 12
