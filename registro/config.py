"""Configuration management for the user registry service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from sqlalchemy.engine import URL

from .database import resolve_database_path, sqlite_url

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_MSSQL_DRIVER = "ODBC Driver 18 for SQL Server"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Environment variable -> settings key. The names match the original .env file.
_ENV_KEYS = {
    "HOST": "host",
    "PORT": "port",
    "DATABASE_URL": "database_url",
    "DB_SERVER": "db_server",
    "DB_DATABASE": "db_database",
    "DB_USERNAME": "db_username",
    "DB_PASSWORD": "db_password",
    "DB_DOMAIN": "db_domain",
    "DB_DRIVER": "db_driver",
    "REGISTRO_DB_PATH": "db_path",
    "REGISTRO_PUBLIC_DIR": "public_dir",
    "REGISTRO_EXPOSE_ERROR_DETAILS": "expose_error_details",
}


def _env_flag(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _parse_port(value: object) -> int:
    try:
        port = int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid port value: {value!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"Port must be between 1 and 65535, got {port}")
    return port


@dataclass(frozen=True)
class Settings:
    """Runtime configuration resolved from the config file and environment."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    database_url: str = ""
    public_dir: Path = _PROJECT_ROOT / "public"
    expose_error_details: bool = True

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from merged raw configuration values."""

        raw_public = data.get("public_dir")
        if raw_public:
            public_dir = Path(str(raw_public)).expanduser()
            if not public_dir.is_absolute() and base_path is not None:
                public_dir = base_path / public_dir
            public_dir = public_dir.resolve(strict=False)
        else:
            public_dir = (_PROJECT_ROOT / "public").resolve(strict=False)

        return Settings(
            host=str(data.get("host") or DEFAULT_HOST),
            port=_parse_port(data["port"]) if data.get("port") not in (None, "") else DEFAULT_PORT,
            database_url=resolve_database_url(data),
            public_dir=public_dir,
            expose_error_details=_env_flag(data.get("expose_error_details"), True),
        )


def resolve_database_url(data: Mapping[str, object]) -> str:
    """Pick the database URL: explicit URL, SQL Server settings, or local SQLite."""

    explicit = data.get("database_url")
    if explicit:
        return str(explicit).strip()

    server = data.get("db_server")
    if server:
        username = data.get("db_username")
        domain = data.get("db_domain")
        if username and domain:
            username = f"{domain}\\{username}"
        url = URL.create(
            "mssql+pyodbc",
            username=str(username) if username else None,
            password=str(data["db_password"]) if data.get("db_password") else None,
            host=str(server),
            database=str(data["db_database"]) if data.get("db_database") else None,
            query={
                "driver": str(data.get("db_driver") or DEFAULT_MSSQL_DRIVER),
                "Encrypt": "yes",
                "TrustServerCertificate": "yes",
            },
        )
        return url.render_as_string(hide_password=False)

    db_path = data.get("db_path")
    return sqlite_url(resolve_database_path(str(db_path) if db_path else None))


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the optional YAML configuration file."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (_PROJECT_ROOT / "config" / "registro.yaml").resolve(strict=False)


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load raw settings from a YAML file; a missing file yields no settings."""

    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return {str(key): value for key, value in raw.items()}


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Merge the YAML file (if any) with environment overrides."""

    env = os.environ if environ is None else environ
    config_path = resolve_config_path(env.get("REGISTRO_CONFIG"))
    data = load_config_file(config_path)
    for env_key, settings_key in _ENV_KEYS.items():
        value = env.get(env_key)
        if value is not None and value != "":
            data[settings_key] = value
    return Settings.from_dict(data, base_path=_PROJECT_ROOT)


__all__ = [
    "Settings",
    "load_config_file",
    "load_settings",
    "resolve_config_path",
    "resolve_database_url",
]
