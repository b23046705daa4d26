import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker.core.config import Settings, get_settings
from tasktracker.core.errors import AppError
from tasktracker.core.rate_limit import (
    MemoryRateLimitBackend,
    RateLimiter,
    RedisRateLimitBackend,
    api_rate_limit,
)
from tasktracker.core.tokens import TokenVault
from tasktracker.db.base import Base, build_engine, build_session_factory
from tasktracker.db.redis_client import close_redis, get_redis

# Import models so they're registered on the metadata
from tasktracker import models  # noqa: F401

from tasktracker.api.v1 import auth, seed, tasks, users
from tasktracker.services.notifications import build_notification_sink
from tasktracker.services.sweeper import RevocationSweeper
from tasktracker.stores.revocations import RedisRevocationStore, SqlRevocationStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("tasktracker")


def _error_body(message: str, **extra) -> dict:
    body = {"status": "error", "message": message}
    body.update({to_camel(key): value for key, value in extra.items()})
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, kind=exc.kind, **exc.extra),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body("Validation failed", kind="ValidationFailure", errors=errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        kind = "NotFound" if exc.status_code == 404 else "HTTPError"
        return JSONResponse(status_code=exc.status_code, content=_error_body(message, kind=kind))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        settings = request.app.state.settings
        if settings.is_development:
            body = _error_body(
                str(exc) or "Internal Server Error",
                kind="Internal",
                stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
        else:
            body = _error_body("Internal Server Error", kind="Internal")
        return JSONResponse(status_code=500, content=body)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    engine = build_engine(settings.DB_URI)
    session_factory = build_session_factory(engine)
    # Create database tables
    Base.metadata.create_all(bind=engine)

    redis_client = get_redis(settings.REDIS_URL)
    if redis_client is not None:
        revocations = RedisRevocationStore(redis_client)
        rate_backend = RedisRateLimitBackend(redis_client)
    else:
        revocations = SqlRevocationStore(session_factory)
        rate_backend = MemoryRateLimitBackend()

    vault = TokenVault(
        secret=settings.JWT_SECRET,
        ttl=settings.token_ttl,
        revocations=revocations,
        algorithm=settings.JWT_ALGORITHM,
    )
    sweeper = RevocationSweeper(vault, settings.REVOCATION_SWEEP_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (%s)", settings.APP_NAME, settings.APP_ENV)
        sweeper.start()
        try:
            yield
        finally:
            sweeper.stop()
            close_redis()
            engine.dispose()
            logger.info("Shut down %s", settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.is_development,
        description="Task tracking API with role-based access control",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.token_vault = vault
    app.state.notification_sink = build_notification_sink(settings)
    app.state.rate_limiter = RateLimiter(
        rate_backend,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        enabled=settings.RATE_LIMIT_ENABLED,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    api_dependencies = [Depends(api_rate_limit)]
    for module in (seed, auth, users, tasks):
        app.include_router(module.router, prefix=settings.API_PREFIX, dependencies=api_dependencies)

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "success", "message": "Server is running"}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
