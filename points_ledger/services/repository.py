from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..models import AccountModel, HistoryEntryModel
from ..models.db import epoch_seconds


class LedgerRepository:
    """Table-level primitives bound to one open unit of work."""

    def __init__(self, session: Session, *, locking: bool = False) -> None:
        self.session = session
        self.locking = locking

    # Accounts -----------------------------------------------------------
    def read_account(self, user_id: str) -> Optional[AccountModel]:
        stmt = select(AccountModel).where(AccountModel.user_id == user_id)
        if self.locking:
            stmt = stmt.with_for_update()
        return self.session.exec(stmt).first()

    def read_balance(self, user_id: str) -> int:
        account = self.read_account(user_id)
        return account.points if account is not None else 0

    def upsert_account(self, user_id: str, username: str, points: int) -> AccountModel:
        account = self.read_account(user_id)
        if account is None:
            account = AccountModel(user_id=user_id, username=username, points=points)
        else:
            account.username = username
            account.points = points
            account.last_updated = epoch_seconds()
        self.session.add(account)
        self.session.flush()
        return account

    def query_top_accounts(self, limit: int) -> list[AccountModel]:
        stmt = (
            select(AccountModel)
            .where(AccountModel.points > 0)
            .order_by(AccountModel.points.desc(), AccountModel.id.asc())
            .limit(limit)
        )
        return list(self.session.exec(stmt))

    # History ------------------------------------------------------------
    def append_history(
        self,
        *,
        user_id: str,
        staff_id: str,
        staff_username: str,
        amount: int,
        reason: Optional[str],
    ) -> int:
        entry = HistoryEntryModel(
            user_id=user_id,
            staff_id=staff_id,
            staff_username=staff_username,
            amount=amount,
            reason=reason,
        )
        self.session.add(entry)
        self.session.flush()
        return entry.id

    def query_history(self, user_id: str, limit: int) -> list[HistoryEntryModel]:
        stmt = (
            select(HistoryEntryModel)
            .where(HistoryEntryModel.user_id == user_id)
            .order_by(HistoryEntryModel.timestamp.desc(), HistoryEntryModel.id.desc())
            .limit(limit)
        )
        return list(self.session.exec(stmt))

    def sum_history(self, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(HistoryEntryModel.amount), 0)).where(
            HistoryEntryModel.user_id == user_id
        )
        return int(self.session.exec(stmt).one())

    # Aggregates ---------------------------------------------------------
    def aggregate_stats(self) -> dict[str, int]:
        positive = self.session.exec(
            select(func.count(AccountModel.id)).where(AccountModel.points > 0)
        ).one()
        total_points = self.session.exec(
            select(func.coalesce(func.sum(AccountModel.points), 0))
        ).one()
        history_count = self.session.exec(select(func.count(HistoryEntryModel.id))).one()
        return {
            "total_users": int(positive),
            "total_points": int(total_points),
            "total_transactions": int(history_count),
        }
