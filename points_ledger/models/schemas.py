from typing import Optional

from pydantic import BaseModel, Field


class AccountResponse(BaseModel):
    user_id: str
    username: Optional[str] = Field(
        default=None, description="Last-seen display name, for display only"
    )
    points: int = 0
    last_updated: Optional[int] = Field(
        default=None, description="Seconds since epoch of the last mutation"
    )


class LeaderboardEntry(BaseModel):
    rank: int = Field(..., ge=1)
    user_id: str
    username: str
    points: int


class HistoryEntryResponse(BaseModel):
    id: int
    user_id: str
    staff_id: str
    staff_username: str
    amount: int
    reason: Optional[str] = None
    timestamp: int


class SetBalanceResult(BaseModel):
    old_balance: int
    new_balance: int


class LedgerStats(BaseModel):
    total_users: int = Field(..., description="Accounts holding a positive balance")
    total_points: int
    total_transactions: int


class ReconciliationReport(BaseModel):
    user_id: str
    balance: int
    history_total: int
    consistent: bool


class DatabaseInfo(BaseModel):
    url: str
    path: Optional[str] = None
    file_exists: bool = False
    file_size_bytes: Optional[int] = None
    stats: LedgerStats


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class StatusResponse(BaseModel):
    status: str
    uptime_seconds: int
    database: LedgerStats
    platform: str
    timestamp: str
