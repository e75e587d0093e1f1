"""SQLAlchemy-backed persistence for the user registry."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Executable, expression

from .models import metadata, usuarios

logger = logging.getLogger("registro.database")


class DatabaseError(RuntimeError):
    """Raised when the database backend rejects or fails a statement."""


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the fallback SQLite database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "registro.sqlite3").resolve(strict=False)


def sqlite_url(path: Path) -> str:
    return f"sqlite:///{path}"


def _describe(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    return str(original) if original is not None else str(exc)


@dataclass
class QueryResult:
    """Outcome of a single statement: fetched rows or write bookkeeping."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    identity: Optional[int] = None


class Database:
    """Owns a single lazily created engine and runs statements against it.

    The engine is opened on first use and reused for every later call until
    :meth:`close` disposes it. All backend failures surface as
    :class:`DatabaseError` carrying the driver's message.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: Engine | None = None
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> Engine:
        with self._lock:
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

    def _create_engine(self) -> Engine:
        url = make_url(self._url)
        connect_args: Dict[str, Any] = {}
        if url.get_backend_name() == "sqlite":
            database = url.database
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            # Handlers run in worker threads, so pooled connections hop threads.
            connect_args["check_same_thread"] = False
        logger.info("Opening database engine for %s", url.render_as_string(hide_password=True))
        try:
            return create_engine(url, echo=self._echo, connect_args=connect_args, pool_pre_ping=True)
        except ImportError as exc:
            raise DatabaseError(f"Database driver for '{url.drivername}' is not installed: {exc}") from exc

    def close(self) -> None:
        """Dispose of the engine; the next call reconnects."""

        with self._lock:
            engine, self._engine = self._engine, None
        if engine is not None:
            engine.dispose()
            logger.info("Database engine disposed")

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Yield a connection inside a transaction committed on success."""

        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise DatabaseError(_describe(exc)) from exc

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise DatabaseError(_describe(exc)) from exc

    def query(self, statement: Executable, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """Execute ``statement`` with named ``params`` and collect its outcome."""

        with self.connection() as conn:
            try:
                result = conn.execute(statement, dict(params or {}))
            except (OverflowError, ValueError) as exc:
                # Drivers raise these directly for parameters they cannot bind.
                raise DatabaseError(str(exc)) from exc
            # Checked first: some dialects fetch the new key through RETURNING/OUTPUT.
            if result.is_insert:
                primary_key = result.inserted_primary_key
                identity = primary_key[0] if primary_key else None
                return QueryResult(rowcount=result.rowcount, identity=identity)
            if result.returns_rows:
                rows = [dict(row) for row in result.mappings()]
                return QueryResult(rows=rows, rowcount=len(rows))
            return QueryResult(rowcount=result.rowcount)

    # ------------------------------------------------------------------
    # User records
    # ------------------------------------------------------------------
    def list_active_users(self) -> List[Dict[str, Any]]:
        """Return active users, most recently registered first."""

        statement = (
            select(usuarios)
            .where(usuarios.c.Activo == expression.true())
            .order_by(usuarios.c.FechaRegistro.desc(), usuarios.c.UsuarioID.desc())
        )
        return self.query(statement).rows

    def create_user(self, nombre: str, email: str, telefono: Optional[str] = None) -> int:
        """Insert a user and return the identifier assigned by the database."""

        statement = insert(usuarios).values(
            Nombre=expression.bindparam("nombre"),
            Email=expression.bindparam("email"),
            Telefono=expression.bindparam("telefono"),
        )
        result = self.query(statement, {"nombre": nombre, "email": email, "telefono": telefono})
        if result.identity is None:
            raise DatabaseError("Database did not return the generated user identifier")
        return int(result.identity)

    def deactivate_user(self, usuario_id: int) -> int:
        """Soft-delete a user. Returns the number of rows that changed."""

        statement = (
            update(usuarios)
            .where(
                usuarios.c.UsuarioID == expression.bindparam("usuario_id"),
                usuarios.c.Activo == expression.true(),
            )
            .values(Activo=False)
        )
        return self.query(statement, {"usuario_id": usuario_id}).rowcount


__all__ = [
    "Database",
    "DatabaseError",
    "QueryResult",
    "resolve_database_path",
    "sqlite_url",
]
