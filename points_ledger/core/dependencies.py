from fastapi import Depends, Request

from ..services import LedgerQueries
from .config import Settings
from .db import StorageEngine


def get_storage(request: Request) -> StorageEngine:
    return request.app.state.storage


def get_ledger_queries(storage: StorageEngine = Depends(get_storage)) -> LedgerQueries:
    return LedgerQueries(storage)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
