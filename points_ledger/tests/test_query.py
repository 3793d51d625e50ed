import pytest

from ..core.db import StorageEngine
from ..core.errors import ValidationError
from ..services import LedgerQueries, LedgerService


def test_leaderboard_excludes_non_positive_balances(
    ledger: LedgerService, queries: LedgerQueries
) -> None:
    ledger.credit("A", "a", 50, "s", "staff")
    ledger.credit("B", "b", 100, "s", "staff")
    ledger.set_balance("C", "c", 0, "s", "staff")
    ledger.debit("D", "d", 5, "s", "staff")

    board = queries.get_leaderboard(10)

    assert [(entry.user_id, entry.points) for entry in board] == [("B", 100), ("A", 50)]
    assert [entry.rank for entry in board] == [1, 2]


def test_leaderboard_respects_limit(ledger: LedgerService, queries: LedgerQueries) -> None:
    for n in range(1, 6):
        ledger.credit(str(n), f"user{n}", n * 10, "s", "staff")

    board = queries.get_leaderboard(3)

    assert [entry.points for entry in board] == [50, 40, 30]


def test_history_window_slides_with_new_mutations(
    ledger: LedgerService, queries: LedgerQueries
) -> None:
    for n in range(1, 16):
        ledger.credit("1", "pat", n, "s", "staff")

    window = queries.get_history("1", 10)
    assert [entry.amount for entry in window] == list(range(15, 5, -1))

    ledger.credit("1", "pat", 16, "s", "staff")

    shifted = queries.get_history("1", 10)
    assert [entry.amount for entry in shifted] == list(range(16, 6, -1))
    assert window[-1].id not in {entry.id for entry in shifted}


def test_reads_are_repeatable_without_writes(
    ledger: LedgerService, queries: LedgerQueries
) -> None:
    ledger.credit("1", "quinn", 12, "s", "staff")
    ledger.debit("1", "quinn", 2, "s", "staff")

    assert queries.get_balance("1") == queries.get_balance("1")
    assert queries.get_history("1") == queries.get_history("1")
    assert queries.get_leaderboard() == queries.get_leaderboard()


def test_absent_account_reads_are_empty(queries: LedgerQueries) -> None:
    assert queries.get_balance("ghost") == 0
    assert queries.get_history("ghost") == []
    account = queries.get_account("ghost")
    assert account.points == 0
    assert account.last_updated is None
    assert queries.reconcile("ghost").consistent


def test_stats_aggregate_all_accounts(ledger: LedgerService, queries: LedgerQueries) -> None:
    ledger.credit("1", "a", 30, "s", "staff")
    ledger.credit("2", "b", 20, "s", "staff")
    ledger.debit("3", "c", 5, "s", "staff")
    ledger.set_balance("2", "b", 20, "s", "staff")

    stats = queries.get_stats()

    assert stats.total_users == 2
    assert stats.total_points == 45
    assert stats.total_transactions == 4


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limits_are_rejected(queries: LedgerQueries, limit: int) -> None:
    with pytest.raises(ValidationError):
        queries.get_leaderboard(limit)
    with pytest.raises(ValidationError):
        queries.get_history("1", limit)


def test_database_info_reports_sqlite_file(
    storage: StorageEngine, ledger: LedgerService, queries: LedgerQueries
) -> None:
    ledger.credit("1", "a", 3, "s", "staff")

    info = queries.database_info()

    assert info.path == str(storage.database_path)
    assert info.file_exists
    assert info.file_size_bytes > 0
    assert info.stats.total_transactions == 1
    assert info.url.startswith("sqlite:///")
