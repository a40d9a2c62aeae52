import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from overlaptime.config import get_settings
from overlaptime.controllers.events import router as events_router
from overlaptime.controllers.health import router as health_router
from overlaptime.controllers.ws_events import router as ws_events_router
from overlaptime.errors import register_exception_handlers
from overlaptime.lifespan import cleanup_resources, setup_resources
from overlaptime.middleware import HTTPLogMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    app.state.resources = resources
    try:
        yield
    finally:
        await cleanup_resources(resources)
        app.state.resources = None


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Overlaptime API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_origin_regex=settings.cors.origins_regex or None,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug.request:
        logging.getLogger("overlaptime.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    if settings.debug.websocket:
        logging.getLogger("overlaptime.ws.events").setLevel(logging.DEBUG)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(events_router)
    app.include_router(ws_events_router)
    return app


app = create_app()
