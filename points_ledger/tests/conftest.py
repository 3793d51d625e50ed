import pytest

from ..core.db import StorageEngine
from ..services import LedgerQueries, LedgerService


@pytest.fixture
def storage(tmp_path) -> StorageEngine:
    engine = StorageEngine.from_url(f"sqlite:///{tmp_path / 'points.db'}")
    engine.init_schema()
    yield engine
    engine.dispose()


@pytest.fixture
def ledger(storage: StorageEngine) -> LedgerService:
    return LedgerService(storage)


@pytest.fixture
def queries(storage: StorageEngine) -> LedgerQueries:
    return LedgerQueries(storage)
