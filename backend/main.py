"""
Gradebook — weighted averages and pass-rate statistics.
FastAPI backend entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core import config
from core.errors import InvalidInputError, RecordValidationError, StorageUnavailableError
from core.logger_setup import setup_logging
from core.records import SCORE_WEIGHTS
from core.seed import seed_store
from core.store import GradeStore, InMemoryGradeStore
from routes.grades import router as grades_router
from routes.reports import router as reports_router

logger = logging.getLogger(__name__)


def build_store(backend: str = config.STORE_BACKEND) -> GradeStore:
    """Create and provision the configured record store."""
    if backend == "memory":
        return InMemoryGradeStore()
    if backend != "mongo":
        raise ValueError(f"Unknown STORE_BACKEND '{backend}'. Use 'mongo' or 'memory'.")

    from core.mongo_store import MongoGradeStore

    store = MongoGradeStore()
    store.ensure_indexes()
    store.ensure_validator()
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_store = app.state.store is None
    if owns_store:
        app.state.store = build_store()
        logger.info("Using %s grade store", app.state.store.name)
        if config.SEED_SAMPLE_DATA:
            seed_store(app.state.store)
    try:
        yield
    finally:
        if owns_store:
            app.state.store.close()
            app.state.store = None


def create_app(store: Optional[GradeStore] = None, pass_threshold: float = config.PASS_THRESHOLD) -> FastAPI:
    """Assemble the API; an injected store is used as-is and never closed here."""
    app = FastAPI(
        title="Gradebook API",
        description=(
            "Weighted learner averages (exam 50%, quiz 30%, homework 20%) "
            "and pass-rate statistics over stored score records."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.pass_threshold = pass_threshold

    # CORS — allow the frontend dev servers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RecordValidationError)
    async def record_validation_handler(request: Request, exc: RecordValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Grade storage is unavailable."})

    # Register route modules
    app.include_router(grades_router, tags=["Grades"])
    app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "ok",
            "store": app.state.store.name if app.state.store is not None else None,
            "pass_threshold": app.state.pass_threshold,
        }

    @app.get("/api/config")
    async def get_config():
        """Return server configuration to the frontend."""
        return {
            "pass_threshold": app.state.pass_threshold,
            "weights": {k: w / 100 for k, w in SCORE_WEIGHTS.items()},
        }

    return app


setup_logging(config.LOG_LEVEL)
app = create_app()
