"""
main.py — FastAPI Application Factory
======================================
Prompt Pictionary backend.

The factory builds one word bank, one state machine, one room registry and
one connection manager per app and keeps them on `app.state`. Tests pass
their own settings, word bank and image generator.

Usage:
    # Development mode (hot-reload)
    uvicorn pictionary.main:app --reload

    # Or directly
    python -m pictionary.main
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from pictionary.apps.game.machine import GameStateMachine
from pictionary.apps.rooms.service import RoomRegistry
from pictionary.apps.words.service import WordBank
from pictionary.apps.ws.service import ConnectionManager
from pictionary.core.config import Settings, get_settings
from pictionary.core.errors import register_error_handlers
from pictionary.core.log_config import configure_logging
from pictionary.services import image_client
from pictionary.services.image_client import ImageClient, ImageGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ═══════════════════════════════════════════════════
    # STARTUP
    # ═══════════════════════════════════════════════════
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION} ({settings.ENV})")

    if settings.FAL_KEY:
        image_client.configure(settings.FAL_KEY)
        logger.info(f"FAL_KEY configured, images from {settings.IMAGE_ENDPOINT}")
    else:
        logger.warning("FAL_KEY not set, every image request will fail")

    yield

    # ═══════════════════════════════════════════════════
    # SHUTDOWN
    # ═══════════════════════════════════════════════════
    await app.state.sessions.shutdown()
    logger.info("Shut down")


def create_app(
    settings: Settings | None = None,
    image_generator: ImageGenerator | None = None,
    word_bank: WordBank | None = None,
) -> FastAPI:
    """
    FastAPI application factory.

    Args:
        settings: defaults to the process-wide get_settings()
        image_generator: defaults to an ImageClient bound to `settings`
        word_bank: defaults to the built-in vocabulary
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Prompt Pictionary: describe a word, let FLUX draw it, guess it",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # ═══════════════════════════════════════════════════
    # Game services
    # ═══════════════════════════════════════════════════
    bank = word_bank or WordBank()
    machine = GameStateMachine(bank)
    registry = RoomRegistry(machine, max_rooms=settings.MAX_ROOMS, idle_ttl_sec=settings.ROOM_IDLE_TTL_SEC)

    app.state.settings = settings
    app.state.word_bank = bank
    app.state.registry = registry
    app.state.sessions = ConnectionManager(registry, machine, image_generator or ImageClient(settings))

    # ═══════════════════════════════════════════════════
    # CORS Middleware
    # ═══════════════════════════════════════════════════
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )

    # ═══════════════════════════════════════════════════
    # Request Timing Middleware
    # ═══════════════════════════════════════════════════
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}s"
        return response

    register_error_handlers(app)

    # ═══════════════════════════════════════════════════
    # System endpoints
    # ═══════════════════════════════════════════════════
    @app.get("/health", tags=["system"])
    def health_check():
        return {
            "status": "ok",
            "app": settings.APP_NAME,
            "version": settings.VERSION,
            "environment": settings.ENV,
            "rooms": len(registry.list_rooms()),
        }

    @app.get("/", tags=["system"])
    def root():
        return {
            "message": f"{settings.APP_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs" if settings.DEBUG else "disabled",
            "websocket": "/ws/room/{code}?playerId={id}",
        }

    # ═══════════════════════════════════════════════════
    # Routers
    # ═══════════════════════════════════════════════════
    from pictionary.apps.rooms.router import router as rooms_router
    from pictionary.apps.words.router import router as words_router
    from pictionary.apps.ws.router import router as ws_router

    app.include_router(rooms_router)
    app.include_router(words_router)
    app.include_router(ws_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting server at http://{settings.HOST}:{settings.PORT} (docs: /docs)")
    uvicorn.run(
        "pictionary.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
