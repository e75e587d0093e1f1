"""JSON envelopes and CORS headers shared by every response."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def json_response(payload: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(payload),
        headers=dict(CORS_HEADERS),
    )


def error_response(status_code: int, error: str, *, details: Optional[str] = None) -> JSONResponse:
    payload: Dict[str, object] = {"error": error}
    if details is not None:
        payload["details"] = details
    return json_response(payload, status_code)


def preflight_response() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=dict(CORS_HEADERS))


def install_cors(app: FastAPI) -> None:
    """Answer OPTIONS on any path and stamp CORS headers on everything else."""

    @app.middleware("http")
    async def cors_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method == "OPTIONS":
            return preflight_response()
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response


__all__ = [
    "CORS_HEADERS",
    "error_response",
    "install_cors",
    "json_response",
    "preflight_response",
]
