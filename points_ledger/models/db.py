from __future__ import annotations

import time
from typing import Optional

from sqlalchemy import Index
from sqlmodel import Field, SQLModel


def epoch_seconds() -> int:
    return int(time.time())


class Account(SQLModel, table=True):
    # ``id`` only records insertion order; ``user_id`` is the account key.
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True)
    username: str
    points: int = Field(default=0)
    last_updated: int = Field(default_factory=epoch_seconds)


class HistoryEntry(SQLModel, table=True):
    __tablename__ = "history_entry"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str
    staff_id: str
    staff_username: str
    amount: int
    reason: Optional[str] = None
    timestamp: int = Field(default_factory=epoch_seconds)


_history = HistoryEntry.__table__.c

Index("ix_account_points_desc", Account.__table__.c.points.desc())
Index(
    "ix_history_entry_user_timestamp",
    _history.user_id,
    _history.timestamp.desc(),
    _history.id.desc(),
)
