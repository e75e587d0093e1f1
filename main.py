"""Command-line interface for the user registry service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from registro.config import Settings, load_settings
from registro.database import Database, DatabaseError

logger = logging.getLogger("registro.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User registry service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the Usuarios table if it is missing")
    subparsers.add_parser("list-users", help="Print the active users")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument(
        "--host",
        default=None,
        help="Bind address (default: HOST or 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listening port (default: PORT or 8080)",
    )
    serve_parser.add_argument(
        "--public-dir",
        default=None,
        help="Directory holding the browser front end (default: ./public)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "list-users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(
    *,
    settings: Settings,
    database: Database,
    host: str | None,
    port: int | None,
    public_dir: str | None,
) -> None:
    from registro.application import create_application
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    static_root = Path(public_dir).expanduser().resolve() if public_dir else settings.public_dir

    app = create_application(settings=settings, database=database, public_dir=static_root)
    logger.info("Servidor corriendo en http://localhost:%s", bind_port)
    logger.info("Presiona Ctrl+C para detener el servidor")
    uvicorn.run(app, host=bind_host, port=bind_port, log_level="info")


def _initialise_database(database: Database) -> int:
    try:
        database.initialize()
    except DatabaseError as exc:
        logger.error("Database initialisation failed: %s", exc)
        return 1
    finally:
        database.close()
    print("Database initialisation complete.")
    return 0


def _list_users(database: Database) -> int:
    try:
        users = database.list_active_users()
    except DatabaseError as exc:
        logger.error("Could not list users: %s", exc)
        return 1
    finally:
        database.close()

    if not users:
        print("No users are currently registered.")
        return 0

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  {'Phone':<16}  Registered")
    print("-" * 96)
    for user in users:
        registered = user["FechaRegistro"]
        if hasattr(registered, "strftime"):
            registered = registered.strftime("%Y-%m-%d %H:%M:%S")
        phone = user["Telefono"] or "-"
        print(f"{user['UsuarioID']:>4}  {user['Nombre']:<24}  {user['Email']:<32}  {phone:<16}  {registered}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = load_settings()
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    database = Database(settings.database_url)

    if args.command == "serve":
        _serve(
            settings=settings,
            database=database,
            host=args.host,
            port=args.port,
            public_dir=args.public_dir,
        )
        return 0
    if args.command == "init-db":
        return _initialise_database(database)
    if args.command == "list-users":
        return _list_users(database)
    return 0


if __name__ == "__main__":
    sys.exit(main())
