from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_gateway.api.middleware.correlation_id import CorrelationIdMiddleware
from chat_gateway.api.v1.routers import health, messages, users, ws
from chat_gateway.application.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from chat_gateway.application.locks import KeyedLock
from chat_gateway.config import settings
from chat_gateway.infrastructure.db.session import engine
from chat_gateway.infrastructure.ws.manager import PresenceRegistry
from chat_gateway.infrastructure.ws.rooms import RoomRouter
from chat_gateway.services.typing_service import TypingRelay

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info("Chat gateway started")

    yield

    await app.state.presence.close_all(1001, "Server shutting down")
    await engine.dispose()
    logger.info("Chat gateway stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chat Gateway",
        version="0.1.0",
        lifespan=lifespan,
    )

    presence = PresenceRegistry(send_timeout=settings.WS_SEND_TIMEOUT_SECONDS)
    app.state.presence = presence
    app.state.rooms = RoomRouter()
    app.state.typing = TypingRelay(presence)
    app.state.reaction_locks = KeyedLock()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(messages.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthenticationError)
    async def _unauthenticated(_req: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(PersistenceError)
    async def _persistence(_req: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Persistence failure: %s", exc.__cause__)
        return JSONResponse(status_code=503, content={"detail": exc.detail})
