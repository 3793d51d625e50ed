import pytest
from fastapi.testclient import TestClient

from ..core.config import Settings
from ..core.db import StorageEngine
from ..core.dependencies import get_ledger_queries
from ..core.errors import StorageError
from ..main import create_app
from ..services import LedgerService


@pytest.fixture
def client(storage: StorageEngine) -> TestClient:
    app = create_app(storage=storage, app_settings=Settings(leaderboard_size=2))
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_status_reports_stats(client: TestClient, ledger: LedgerService) -> None:
    ledger.credit("1", "alice", 10, "s", "staff")

    payload = client.get("/").json()

    assert payload["status"] == "online"
    assert payload["database"] == {
        "total_users": 1,
        "total_points": 10,
        "total_transactions": 1,
    }
    assert payload["uptime_seconds"] >= 0


def test_account_snapshot_defaults_to_zero(client: TestClient) -> None:
    response = client.get("/accounts/nobody")
    assert response.status_code == 200
    assert response.json() == {
        "user_id": "nobody",
        "username": None,
        "points": 0,
        "last_updated": None,
    }


def test_account_history_and_reconciliation(client: TestClient, ledger: LedgerService) -> None:
    ledger.credit("7", "bea", 40, "1", "mod", "helped out")
    ledger.debit("7", "bea", 15, "1", "mod")

    account = client.get("/accounts/7").json()
    assert account["points"] == 25

    history = client.get("/accounts/7/history", params={"limit": 1}).json()
    assert [entry["amount"] for entry in history] == [-15]

    report = client.get("/accounts/7/reconciliation").json()
    assert report["consistent"] is True
    assert report["history_total"] == 25


def test_leaderboard_uses_configured_size(client: TestClient, ledger: LedgerService) -> None:
    for user_id, points in (("a", 5), ("b", 15), ("c", 10)):
        ledger.credit(user_id, user_id, points, "s", "staff")

    board = client.get("/leaderboard").json()
    assert [entry["user_id"] for entry in board] == ["b", "c"]

    full = client.get("/leaderboard", params={"limit": 10}).json()
    assert len(full) == 3


def test_invalid_limit_is_rejected(client: TestClient) -> None:
    response = client.get("/leaderboard", params={"limit": 0})
    assert response.status_code == 422


def test_stats_and_database_info(client: TestClient, ledger: LedgerService) -> None:
    ledger.credit("1", "a", 3, "s", "staff")

    assert client.get("/stats").json()["total_points"] == 3
    info = client.get("/stats/database").json()
    assert info["file_exists"] is True
    assert info["stats"]["total_transactions"] == 1


def test_storage_failure_maps_to_503(client: TestClient) -> None:
    class BrokenQueries:
        def get_stats(self):
            raise StorageError("disk gone")

    client.app.dependency_overrides[get_ledger_queries] = BrokenQueries

    response = client.get("/stats")
    assert response.status_code == 503
    assert response.json() == {"detail": "Ledger storage unavailable"}


def test_settings_live_on_app_state(client: TestClient) -> None:
    assert client.app.state.settings.leaderboard_size == 2
    assert client.app.dependency_overrides == {}
