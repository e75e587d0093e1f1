"""Static file serving for the browser front end."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import anyio
from fastapi import FastAPI, Response, status
from fastapi.responses import FileResponse, HTMLResponse

logger = logging.getLogger("registro.static")

INDEX_DOCUMENT = "index.html"
DEFAULT_CONTENT_TYPE = "text/plain"

CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}

NOT_FOUND_HTML = "<h1>404 - Archivo no encontrado</h1>"

# Every method except OPTIONS, which never reaches this app.
_STATIC_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def content_type_for(path: Path | str) -> str:
    suffix = Path(path).suffix.lower()
    return CONTENT_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)


def resolve_static_path(public_dir: Path, request_path: str) -> Optional[Path]:
    """Map a request path to a file inside ``public_dir``.

    Returns ``None`` when the file does not exist, is not a regular file, or
    resolves outside the public root.
    """

    root = public_dir.resolve(strict=False)
    relative = request_path.lstrip("/")
    if relative in ("", INDEX_DOCUMENT):
        relative = INDEX_DOCUMENT

    candidate = (root / relative).resolve(strict=False)
    if candidate != root and root not in candidate.parents:
        logger.warning("Rejected static path outside the public root: %s", request_path)
        return None
    if not candidate.is_file():
        return None
    return candidate


def not_found_response() -> HTMLResponse:
    return HTMLResponse(NOT_FOUND_HTML, status_code=status.HTTP_404_NOT_FOUND)


def create_app(*, public_dir: Path) -> FastAPI:
    """Return an application that serves files from ``public_dir``."""

    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    app.state.public_dir = public_dir

    @app.api_route("/{asset_path:path}", methods=_STATIC_METHODS, include_in_schema=False)
    async def serve_static(asset_path: str) -> Response:
        path = await anyio.to_thread.run_sync(resolve_static_path, public_dir, asset_path)
        if path is None:
            return not_found_response()
        return FileResponse(path, media_type=content_type_for(path))

    return app


__all__ = [
    "CONTENT_TYPES",
    "content_type_for",
    "create_app",
    "not_found_response",
    "resolve_static_path",
]
