from __future__ import annotations

from typing import TYPE_CHECKING, Union

from ..core.errors import ValidationError
from ..models import (
    AccountModel,
    AccountResponse,
    DatabaseInfo,
    HistoryEntryModel,
    HistoryEntryResponse,
    LeaderboardEntry,
    LedgerStats,
    ReconciliationReport,
)

if TYPE_CHECKING:
    from ..core.db import StorageEngine


Identifier = Union[str, int]


def _check_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValidationError("Limit must be a positive integer")
    return limit


def _account_to_response(account: AccountModel) -> AccountResponse:
    return AccountResponse(
        user_id=account.user_id,
        username=account.username,
        points=account.points,
        last_updated=account.last_updated,
    )


def _entry_to_response(entry: HistoryEntryModel) -> HistoryEntryResponse:
    return HistoryEntryResponse(
        id=entry.id,
        user_id=entry.user_id,
        staff_id=entry.staff_id,
        staff_username=entry.staff_username,
        amount=entry.amount,
        reason=entry.reason,
        timestamp=entry.timestamp,
    )


class LedgerQueries:
    """Read-only projections over committed ledger state.

    Absent accounts are not an error: balances default to zero and history
    comes back empty.
    """

    def __init__(self, storage: StorageEngine) -> None:
        self.storage = storage

    def get_balance(self, account_id: Identifier) -> int:
        with self.storage.transaction() as repository:
            return repository.read_balance(str(account_id))

    def get_account(self, account_id: Identifier) -> AccountResponse:
        user_id = str(account_id)
        with self.storage.transaction() as repository:
            account = repository.read_account(user_id)
            if account is None:
                return AccountResponse(user_id=user_id)
            return _account_to_response(account)

    def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        _check_limit(limit)
        with self.storage.transaction() as repository:
            accounts = repository.query_top_accounts(limit)
            return [
                LeaderboardEntry(
                    rank=position,
                    user_id=account.user_id,
                    username=account.username,
                    points=account.points,
                )
                for position, account in enumerate(accounts, start=1)
            ]

    def get_history(self, account_id: Identifier, limit: int = 10) -> list[HistoryEntryResponse]:
        _check_limit(limit)
        with self.storage.transaction() as repository:
            entries = repository.query_history(str(account_id), limit)
            return [_entry_to_response(entry) for entry in entries]

    def get_stats(self) -> LedgerStats:
        with self.storage.transaction() as repository:
            return LedgerStats(**repository.aggregate_stats())

    def reconcile(self, account_id: Identifier) -> ReconciliationReport:
        user_id = str(account_id)
        with self.storage.transaction() as repository:
            balance = repository.read_balance(user_id)
            history_total = repository.sum_history(user_id)
        return ReconciliationReport(
            user_id=user_id,
            balance=balance,
            history_total=history_total,
            consistent=balance == history_total,
        )

    def database_info(self) -> DatabaseInfo:
        path = self.storage.database_path
        file_exists = path is not None and path.exists()
        return DatabaseInfo(
            url=self.storage.safe_url,
            path=str(path) if path is not None else None,
            file_exists=file_exists,
            file_size_bytes=path.stat().st_size if file_exists else None,
            stats=self.get_stats(),
        )
