"""FastAPI application that exposes the user registry JSON API."""
from __future__ import annotations

import logging
import re
from typing import Optional

import anyio
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .body import BodyDecodeError, read_json_body
from .database import Database, DatabaseError
from .responses import error_response, json_response

logger = logging.getLogger("registro.api")

COLLECTION_PATH = "/usuarios"

# UsuarioID is a 32-bit INTEGER on every supported backend.
USUARIO_ID_MIN = -(2**31)
USUARIO_ID_MAX = 2**31 - 1

_USUARIO_ID_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")

ROUTE_NOT_FOUND = "route not found"
BODY_PARSE_FAILED = "failed to parse body"
FIELDS_REQUIRED = "name and email are required"
INVALID_ID = "invalid id"

LIST_FAILED = "Error al obtener usuarios"
CREATE_FAILED = "Error al crear usuario"
DELETE_FAILED = "Error al eliminar usuario"
USER_CREATED = "Usuario creado exitosamente"
USER_DELETED = "Usuario eliminado exitosamente"


class CreateUsuarioRequest(BaseModel):
    nombre: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    telefono: Optional[str] = None

    @field_validator("telefono", mode="before")
    @classmethod
    def _blank_phone_is_null(cls, value: object) -> Optional[str]:
        if not value:
            return None
        return value if isinstance(value, str) else str(value)


class CreateUsuarioResponse(BaseModel):
    success: bool = True
    usuarioID: int
    mensaje: str = USER_CREATED


class DeleteUsuarioResponse(BaseModel):
    success: bool = True
    mensaje: str = USER_DELETED


def parse_usuario_id(raw: str) -> Optional[int]:
    """Parse a base-10 identifier, tolerating surrounding whitespace."""

    if not _USUARIO_ID_PATTERN.fullmatch(raw):
        return None
    return int(raw.strip(), 10)


def create_app(
    *,
    database: Database,
    expose_error_details: bool = True,
) -> FastAPI:
    app = FastAPI(
        title="Registro de usuarios",
        description="JSON API to list, create and deactivate registered users",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.state.database = database

    def storage_failure(error: str, exc: DatabaseError) -> JSONResponse:
        logger.error("%s: %s", error, exc, exc_info=exc)
        details = str(exc) if expose_error_details else None
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, error, details=details)

    router = APIRouter()

    @router.get(COLLECTION_PATH)
    async def list_usuarios() -> JSONResponse:
        try:
            rows = await anyio.to_thread.run_sync(database.list_active_users)
        except DatabaseError as exc:
            return storage_failure(LIST_FAILED, exc)
        return json_response(rows)

    @router.post(COLLECTION_PATH)
    async def create_usuario(request: Request) -> JSONResponse:
        try:
            payload = await read_json_body(request)
        except BodyDecodeError as exc:
            logger.info("Rejected create request: %s", exc)
            return error_response(status.HTTP_400_BAD_REQUEST, BODY_PARSE_FAILED)

        try:
            data = CreateUsuarioRequest.model_validate(payload)
        except ValidationError:
            return error_response(status.HTTP_400_BAD_REQUEST, FIELDS_REQUIRED)

        try:
            usuario_id = await anyio.to_thread.run_sync(
                database.create_user, data.nombre, data.email, data.telefono
            )
        except DatabaseError as exc:
            return storage_failure(CREATE_FAILED, exc)

        logger.info("Created user %s <%s>", usuario_id, data.email)
        return json_response(CreateUsuarioResponse(usuarioID=usuario_id).model_dump())

    @router.delete(COLLECTION_PATH + "/{raw_id}")
    async def delete_usuario(raw_id: str) -> JSONResponse:
        usuario_id = parse_usuario_id(raw_id)
        if usuario_id is None:
            return error_response(status.HTTP_400_BAD_REQUEST, INVALID_ID)

        if not USUARIO_ID_MIN <= usuario_id <= USUARIO_ID_MAX:
            # No stored row can carry an id outside the column's range.
            logger.info("Delete for user %s is outside the identifier range", usuario_id)
            return json_response(DeleteUsuarioResponse().model_dump())

        try:
            changed = await anyio.to_thread.run_sync(database.deactivate_user, usuario_id)
        except DatabaseError as exc:
            return storage_failure(DELETE_FAILED, exc)

        if changed:
            logger.info("Deactivated user %s", usuario_id)
        else:
            logger.info("Delete for user %s matched no active record", usuario_id)
        return json_response(DeleteUsuarioResponse().model_dump())

    app.include_router(router)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: object, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and known paths with the wrong method are both "not found".
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return error_response(status.HTTP_404_NOT_FOUND, ROUTE_NOT_FOUND)
        return error_response(exc.status_code, str(exc.detail))

    return app


__all__ = [
    "CreateUsuarioRequest",
    "CreateUsuarioResponse",
    "DeleteUsuarioResponse",
    "create_app",
    "parse_usuario_id",
]
