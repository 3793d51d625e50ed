from .db import Account as AccountModel
from .db import HistoryEntry as HistoryEntryModel
from .schemas import (
    AccountResponse,
    DatabaseInfo,
    HealthResponse,
    HistoryEntryResponse,
    LeaderboardEntry,
    LedgerStats,
    ReconciliationReport,
    SetBalanceResult,
    StatusResponse,
)

__all__ = [
    "AccountResponse",
    "DatabaseInfo",
    "HealthResponse",
    "HistoryEntryResponse",
    "LeaderboardEntry",
    "LedgerStats",
    "ReconciliationReport",
    "SetBalanceResult",
    "StatusResponse",
    "AccountModel",
    "HistoryEntryModel",
]
