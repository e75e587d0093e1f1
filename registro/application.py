"""Application factory that serves both the JSON API and the front end."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import anyio
from fastapi import FastAPI

from .api import create_app as create_api_app
from .config import Settings, load_settings
from .database import Database, DatabaseError, resolve_database_path, sqlite_url
from .responses import install_cors
from .static import create_app as create_static_app

logger = logging.getLogger("registro.application")

API_PREFIX = "/api"


def create_application(
    *,
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    public_dir: Optional[Path] = None,
    initialize_database: bool = True,
) -> FastAPI:
    """Create the combined ASGI application.

    ``database`` and ``public_dir`` override what ``settings`` would build,
    which keeps tests free of environment setup.
    """

    if settings is None:
        settings = load_settings()
    if database is None:
        database = Database(settings.database_url or sqlite_url(resolve_database_path(None)))
    if public_dir is None:
        public_dir = settings.public_dir

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if initialize_database:
            try:
                await anyio.to_thread.run_sync(database.initialize)
            except DatabaseError as exc:
                # Requests still get a 500 envelope while the database is unreachable.
                logger.error("Could not initialise the database schema: %s", exc)
        try:
            yield
        finally:
            await anyio.to_thread.run_sync(database.close)

    api_app = create_api_app(
        database=database,
        expose_error_details=settings.expose_error_details,
    )
    static_app = create_static_app(public_dir=public_dir)

    app = FastAPI(
        title="Registro de usuarios",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    install_cors(app)
    app.state.settings = settings
    app.state.database = database
    app.state.api = api_app
    app.state.static = static_app

    app.mount(API_PREFIX, api_app)
    app.mount("/", static_app)

    logger.debug("Serving static files from %s", public_dir)
    return app


__all__ = ["API_PREFIX", "create_application"]
