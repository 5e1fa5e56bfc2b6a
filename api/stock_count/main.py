# stock_count/main.py
# Stock Count API - session counts, destructions, column mapping on blob namespaces
from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stock_count.blobs import StorageBackend, resolve_backend
from stock_count.errors import StockCountError, StorageUnavailableError
from stock_count.logging_setup import setup_logging
from stock_count.settings import Settings, settings as default_settings

from stock_count.routers.sessions import router as sessions_router
from stock_count.routers.counts import router as counts_router
from stock_count.routers.destructions import router as destructions_router
from stock_count.routers.mapping import router as mapping_router
from stock_count.routers.scans import router as scans_router
from stock_count.routers.reports import router as reports_router
from stock_count.routers.uploads import router as uploads_router
from stock_count.routers.admin import router as admin_router

VERSION = "1.0.0"
logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Lifespan: logging + one-time storage backend selection
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    s: Settings = app.state.settings
    log_path = setup_logging(s)
    logger.info("Stock Count %s starting, logging to %s", VERSION, log_path)
    if app.state.backend is None:
        try:
            app.state.backend = resolve_backend(s.blobs_config(), s.STOCK_COUNT_DATA_ROOT)
        except StorageUnavailableError as e:
            logger.error("No blob storage available: %s", e.message)
            app.state.storage_error = e.message
    yield
    logger.info("Stock Count shutting down")


# ---------------------------------------------------------
# Error rendering: {"error": "..."}
# ---------------------------------------------------------
async def _stock_count_error(request: Request, exc: StockCountError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse({"error": "; ".join(parts) or "invalid request"}, status_code=400)


def create_app(settings: Optional[Settings] = None, backend: Optional[StorageBackend] = None) -> FastAPI:
    s = settings or default_settings
    app = FastAPI(
        title="Stock Count API",
        version=VERSION,
        description="Inventory counting sessions, scans and write-offs",
        lifespan=lifespan,
    )
    app.state.settings = s
    app.state.backend = backend
    app.state.storage_error = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=s.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.add_exception_handler(StockCountError, _stock_count_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)

    app.include_router(sessions_router)
    app.include_router(counts_router)
    app.include_router(destructions_router)
    app.include_router(mapping_router)
    app.include_router(scans_router)
    app.include_router(reports_router)
    app.include_router(uploads_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health():
        result = {"status": "ok", "version": VERSION}
        if app.state.backend is not None:
            result["storage"] = {"mode": app.state.backend.mode}
        else:
            result["status"] = "degraded"
            result["storage"] = {"error": app.state.storage_error or "not resolved"}
        return result

    return app


app = create_app()
