from fastapi import APIRouter, Depends, Query

from ..core.config import Settings
from ..core.dependencies import get_app_settings, get_ledger_queries
from ..models import (
    AccountResponse,
    DatabaseInfo,
    HistoryEntryResponse,
    LeaderboardEntry,
    LedgerStats,
    ReconciliationReport,
)
from ..services import LedgerQueries


router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.get("/{user_id}", response_model=AccountResponse)
def get_account(
    user_id: str,
    queries: LedgerQueries = Depends(get_ledger_queries),
) -> AccountResponse:
    return queries.get_account(user_id)

@router.get("/{user_id}/history", response_model=list[HistoryEntryResponse])
def get_history(
    user_id: str,
    limit: int | None = Query(default=None, ge=1, le=100),
    queries: LedgerQueries = Depends(get_ledger_queries),
    settings: Settings = Depends(get_app_settings),
) -> list[HistoryEntryResponse]:
    return queries.get_history(user_id, limit or settings.history_page_size)

@router.get("/{user_id}/reconciliation", response_model=ReconciliationReport)
def get_reconciliation(
    user_id: str,
    queries: LedgerQueries = Depends(get_ledger_queries),
) -> ReconciliationReport:
    return queries.reconcile(user_id)

leaderboard_router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

@leaderboard_router.get("", response_model=list[LeaderboardEntry])
def get_leaderboard(
    limit: int | None = Query(default=None, ge=1, le=100),
    queries: LedgerQueries = Depends(get_ledger_queries),
    settings: Settings = Depends(get_app_settings),
) -> list[LeaderboardEntry]:
    return queries.get_leaderboard(limit or settings.leaderboard_size)

stats_router = APIRouter(prefix="/stats", tags=["stats"])

@stats_router.get("", response_model=LedgerStats)
def get_stats(queries: LedgerQueries = Depends(get_ledger_queries)) -> LedgerStats:
    return queries.get_stats()

@stats_router.get("/database", response_model=DatabaseInfo)
def get_database_info(queries: LedgerQueries = Depends(get_ledger_queries)) -> DatabaseInfo:
    return queries.database_info()

__all__ = ["router", "leaderboard_router", "stats_router"]
