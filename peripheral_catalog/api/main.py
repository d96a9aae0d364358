"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from peripheral_catalog.api.catalog_router import router as catalog_router
from peripheral_catalog.api.dependencies import api_key_protection
from peripheral_catalog.catalog.service import CatalogService
from peripheral_catalog.catalog.state_holder import CatalogStateHolder
from peripheral_catalog.error_handler import CatalogError, ErrorHandler
from peripheral_catalog.integrations.clients.mocks.local_peripheral_catalogue import LocalPeripheralCatalogue
from peripheral_catalog.integrations.clients.real_http.peripheral_api import PeripheralApiClient
from peripheral_catalog.utils.config_loader import CatalogConfig, load_catalog_config

logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

def build_store(config: CatalogConfig):
    """Use the SQL store when a database URL is configured, else the in-memory stub."""
    if config.database.url:
        from peripheral_catalog.database.catalog_store_real import CatalogStore

        store = CatalogStore(connection_string=config.database.url)
    else:
        from peripheral_catalog.database.catalog_store import CatalogStore

        store = CatalogStore()
    store.create_tables()
    return store


def build_source(config: CatalogConfig) -> PeripheralApiClient:
    transport = None
    if config.source.mode == "mock":
        catalogue = LocalPeripheralCatalogue(
            data_dir=config.source.data_dir,
            base_path=httpx.URL(config.source.base_url).path,
        )
        transport = catalogue.transport()
    else:
        logger.info("Using remote peripheral catalogue at %s", config.source.base_url)
    return PeripheralApiClient(
        base_url=config.source.base_url,
        timeout=config.source.timeout_seconds,
        transport=transport,
    )


def build_service(config: CatalogConfig) -> CatalogService:
    return CatalogService(source=build_source(config), store=build_store(config))


# ============================================================================
# APPLICATION
# ============================================================================

def create_app(config: Optional[CatalogConfig] = None, holder: Optional[CatalogStateHolder] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state_holder = holder
        if state_holder is None:
            cfg = config or load_catalog_config()
            logging.getLogger().setLevel(cfg.log_level.upper())
            state_holder = CatalogStateHolder(build_service(cfg), error_handler=error_handler)
        app.state.catalog = state_holder
        await state_holder.start()
        try:
            yield
        finally:
            await state_holder.stop()

    app = FastAPI(
        title="Peripheral Catalog API",
        description="Browse, filter, favorite and compare computer peripherals",
        version="1.0.0",
        lifespan=lifespan,
        dependencies=[Depends(api_key_protection)],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(catalog_router, prefix="/api/v1")

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        payload = error_handler.handle_exception(exc, context={"path": request.url.path})
        return JSONResponse(status_code=503, content=payload)

    @app.get("/health")
    async def health(request: Request):
        state_holder: CatalogStateHolder = request.app.state.catalog
        state = state_holder.state
        return {
            "status": "ok",
            "peripherals": len(state.all_peripherals),
            "refreshing": state.is_refreshing,
            "last_updated": state.last_updated,
            "error": state.error_message,
        }

    return app


logging.basicConfig(level=logging.INFO)

app = create_app()
