import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Optional

from fastapi import Depends, FastAPI, Request

from .api.exceptions import register_exception_handlers
from .api.routes import leaderboard_router, router as accounts_router, stats_router
from .core.config import Settings, get_settings
from .core.db import StorageEngine
from .core.dependencies import get_ledger_queries
from .models import HealthResponse, StatusResponse
from .services import LedgerQueries

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def _log_stats(event: str, storage: StorageEngine) -> None:
    stats = LedgerQueries(storage).get_stats()
    logger.info(event, extra=stats.model_dump())


def create_app(
    storage: Optional[StorageEngine] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = storage is None
        engine = storage or StorageEngine.from_settings(app_settings)
        engine.init_schema()
        app.state.storage = engine
        app.state.started_at = time.monotonic()
        _log_stats("ledger.started", engine)
        yield
        _log_stats("ledger.stopping", engine)
        if owned:
            engine.dispose()

    app = FastAPI(title=app_settings.app_name, lifespan=lifespan)
    app.state.settings = app_settings

    app.include_router(accounts_router)
    app.include_router(leaderboard_router)
    app.include_router(stats_router)
    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    def read_health() -> HealthResponse:
        return HealthResponse(status="healthy", timestamp=datetime.now(UTC).isoformat())

    @app.get("/", response_model=StatusResponse)
    def read_status(
        request: Request,
        queries: LedgerQueries = Depends(get_ledger_queries),
    ) -> StatusResponse:
        return StatusResponse(
            status="online",
            uptime_seconds=int(time.monotonic() - request.app.state.started_at),
            database=queries.get_stats(),
            platform=app_settings.platform,
            timestamp=datetime.now(UTC).isoformat(),
        )

    return app


app = create_app()
