from .ledger import LedgerService
from .query import LedgerQueries
from .repository import LedgerRepository

__all__ = ["LedgerQueries", "LedgerRepository", "LedgerService"]
