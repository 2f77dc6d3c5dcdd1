"""Veritas Model Config Service - Main Application."""
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from veritas.adapters.postgres.models import Base
from veritas.context import AppContext, build_context
from veritas.core.config import Settings, get_settings
from veritas.domain.model_configs.bootstrap import migrate_default_model_config
from veritas.errors import ConfigError, KeyUnavailable, error_body
from veritas.logging_hardening import setup_logging_redaction

logger = logging.getLogger(__name__)


def _run_alembic_upgrade(database_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, "head")


async def prepare_schema(context: AppContext) -> None:
    if context.settings.RUN_MIGRATIONS:
        logger.info("Running DB Migrations...")
        await asyncio.to_thread(_run_alembic_upgrade, context.settings.DATABASE_URL)
        logger.info("Migrations complete.")
    else:
        Base.metadata.create_all(bind=context.engine)


def run_bootstrap(context: AppContext) -> None:
    """Seed the legacy default configuration. Failures are logged, not fatal."""
    with context.open_session() as db:
        try:
            migrate_default_model_config(context.model_config_store(db), context.settings)
        except Exception as e:
            logger.warning("Failed to migrate default model config: %s", type(e).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    context: Optional[AppContext] = getattr(app.state, "context", None)
    owns_context = context is None
    if owns_context:
        try:
            context = build_context(app.state.settings)
        except KeyUnavailable as e:
            # The service must not serve traffic without a valid master key
            print(f"CRITICAL STARTUP ERROR: Encryption key validation failed: {e.message}")
            sys.exit(1)
        app.state.context = context

    try:
        await prepare_schema(context)
    except Exception as e:
        logger.error(f"Migration Failed: {type(e).__name__}: {e}")
        sys.exit(1)

    run_bootstrap(context)

    yield
    # Shutdown
    if owns_context:
        context.engine.dispose()
    logger.info("Shutdown complete.")


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """Build the application.

    Passing a prebuilt context skips key resolution and engine creation
    (tests and embedding). Otherwise both happen in the lifespan.
    """
    setup_logging_redaction()

    settings = settings or (context.settings if context else get_settings())

    app = FastAPI(
        title="Veritas Model Config Service",
        description="LLM connection profiles with encrypted credentials",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    if context is not None:
        app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )

    if settings.TRACING_ENABLED:
        from veritas.observability.tracing import setup_opentelemetry
        setup_opentelemetry(app, settings)

    @app.exception_handler(HTTPException)
    async def api_http_exception_handler(request: Request, exc: HTTPException):
        # API routes return the standard top-level error body
        if request.url.path.startswith("/api/"):
            if isinstance(exc.detail, dict) and "error" in exc.detail:
                return JSONResponse(
                    status_code=exc.status_code,
                    content=exc.detail,
                    headers=exc.headers
                )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Rejected input is never echoed back; it may be a credential
        fields = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_body("VALIDATION_ERROR", "Request validation failed", {"fields": fields}),
        )

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))

    # Mount routers
    from veritas.api.model_configs import router as model_config_router
    from veritas.routers import health
    app.include_router(model_config_router.router, prefix="/api", tags=["Model Configs"])
    app.include_router(health.router, tags=["Health"])

    return app


app = create_app()
