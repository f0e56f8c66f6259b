"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIASGIMiddleware

from chat_gateway.api.auth_router import router as auth_router
from chat_gateway.api.chat_router import router as chat_router
from chat_gateway.api.conversation_router import router as conversation_router
from chat_gateway.core.config import settings
from chat_gateway.core.database import Base, engine
from chat_gateway.core.exceptions import (
    AppException,
    app_exception_handler,
    rate_limit_exceeded_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from chat_gateway.core.limiter import limiter
from chat_gateway.core.logging import configure_logging
from chat_gateway.core.middleware import AuthMiddleware
from chat_gateway.schemas.response_schema import ApiResponse, success_response
from chat_gateway.services.rate_limiter import FixedWindowRateLimiter

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    configure_logging(
        level=settings.app.log_level,
        json_output=settings.app.json_logs,
    )
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        bind=settings.server.bind,
        llm_provider=settings.llm.provider,
        llm_configured=settings.llm.is_configured,
    )
    if settings.app.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    app.state.rate_limiter.start()
    yield
    await app.state.rate_limiter.stop()
    await engine.dispose()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Authenticated chat service with persisted, provider-backed conversations",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.app.debug,
)

# Rate limiters: slowapi for auth endpoints, fixed window for message sends
app.state.limiter = limiter
app.state.rate_limiter = FixedWindowRateLimiter.from_config(settings.rate_limit)

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, unhandled_exception_handler)

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(AuthMiddleware)
app.add_middleware(SlowAPIASGIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.app.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": "0.1.0",
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(conversation_router)


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "chat_gateway.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    run()
