"""
spac_os.api.app

FastAPI app factory for the SPAC OS service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine, filings cache, EDGAR client).
- Resolve capability flags (document-analysis cache) once at startup.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from spac_os import __version__
from spac_os.api.errors import register_error_handlers
from spac_os.api.routers.analysis_cache import router as analysis_cache_router
from spac_os.api.routers.batch import router as batch_router
from spac_os.api.routers.dev_auth import router as dev_auth_router
from spac_os.api.routers.documents import router as documents_router
from spac_os.api.routers.export import router as export_router
from spac_os.api.routers.filings import router as filings_router
from spac_os.api.routers.health import router as health_router
from spac_os.api.routers.organizations import router as organizations_router
from spac_os.api.routers.spacs import router as spacs_router
from spac_os.api.routers.targets import router as targets_router
from spac_os.cache.ttl import TTLCache
from spac_os.db.init_db import init_db, table_exists
from spac_os.db.session import create_engine, create_sessionmaker
from spac_os.filings_clients.edgar import EdgarClient
from spac_os.observability.logging import configure_logging, get_logger
from spac_os.observability.middleware import RequestContextMiddleware
from spac_os.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod schema is owned by Alembic.
            await init_db(engine)

        app.state.analysis_cache_available = settings.analysis_cache_enabled and (
            await table_exists(engine, "document_analyses")
        )
        if not app.state.analysis_cache_available:
            log.warning("analysis_cache_disabled", enabled=settings.analysis_cache_enabled)

        app.state.filings_cache = TTLCache(
            max_entries=settings.filings_cache_max_entries,
            ttl_seconds=settings.filings_cache_ttl_seconds,
        )
        app.state.edgar_http = httpx.AsyncClient(timeout=settings.edgar_timeout_seconds)
        app.state.edgar = EdgarClient.from_settings(settings, app.state.edgar_http)
        try:
            yield
        finally:
            await app.state.edgar_http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="SPAC OS",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(organizations_router)
    app.include_router(spacs_router)
    app.include_router(targets_router)
    app.include_router(documents_router)
    app.include_router(batch_router)
    app.include_router(analysis_cache_router)
    app.include_router(filings_router)
    app.include_router(export_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Shared state lives on `app.state` and is reached only through `spac_os.api.deps`.
# The filings cache is process-local; each worker warms its own.
# Tests drive startup/shutdown with `app.router.lifespan_context(app)`.
