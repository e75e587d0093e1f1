"""Table definitions for the user registry."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, MetaData, Table, Unicode, func
from sqlalchemy.sql import expression

metadata = MetaData()

# Column names are part of the wire format: the list endpoint returns rows verbatim.
usuarios = Table(
    "Usuarios",
    metadata,
    Column("UsuarioID", Integer, primary_key=True, autoincrement=True),
    Column("Nombre", Unicode(100), nullable=False),
    Column("Email", Unicode(100), nullable=False),
    Column("Telefono", Unicode(20), nullable=True),
    Column("FechaRegistro", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("Activo", Boolean, nullable=False, server_default=expression.true()),
)


__all__ = ["metadata", "usuarios"]
