import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.dal import Database, open_database
from .routers import costs, rates, reports


def create_app(
    settings_override: Settings | None = None, db: Database | None = None
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    db: an already opened store handle; opened from settings when omitted.

    Run with: uvicorn cost_manager.main:create_app --factory
    """
    settings = settings_override or get_settings()
    if settings.db_path is None:
        settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    if db is None:
        try:
            db = open_database(settings.db_path, settings.schema_version)  # type: ignore[arg-type]
        except errors.StoreUnavailable:
            # Failing to open the store is fatal; re-raise after logging
            logging.getLogger("cost_manager").exception("failed to open store on startup")
            raise

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.db = db

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_exception_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(errors.ValidationError, errors.cost_validation_handler)
    app.add_exception_handler(errors.StoreUnavailable, errors.store_unavailable_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(costs.router)
    app.include_router(reports.router)
    app.include_router(rates.router)
    app.include_router(rates.settings_router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app
