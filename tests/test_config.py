from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.engine import make_url

from registro.config import load_settings, resolve_config_path


def _environ(tmp_path: Path, **values: str) -> dict:
    env = {"REGISTRO_CONFIG": str(tmp_path / "absent.yaml")}
    env.update(values)
    return env


def test_defaults_without_file_or_environment(tmp_path: Path) -> None:
    settings = load_settings(_environ(tmp_path))

    assert settings.host == "0.0.0.0"
    assert settings.port == 8080
    assert settings.database_url.startswith("sqlite:///")
    assert settings.database_url.endswith("registro.sqlite3")
    assert settings.public_dir.name == "public"
    assert settings.expose_error_details is True


def test_environment_overrides(tmp_path: Path) -> None:
    settings = load_settings(
        _environ(
            tmp_path,
            PORT="9090",
            HOST="127.0.0.1",
            DATABASE_URL="sqlite:///" + str(tmp_path / "env.sqlite3"),
            REGISTRO_PUBLIC_DIR=str(tmp_path / "www"),
            REGISTRO_EXPOSE_ERROR_DETAILS="off",
        )
    )

    assert settings.port == 9090
    assert settings.host == "127.0.0.1"
    assert settings.database_url.endswith("env.sqlite3")
    assert settings.public_dir == (tmp_path / "www").resolve()
    assert settings.expose_error_details is False


def test_yaml_file_is_loaded_and_environment_wins(tmp_path: Path) -> None:
    config = tmp_path / "registro.yaml"
    config.write_text(
        "host: 10.0.0.5\nport: 7000\nexpose_error_details: false\n",
        encoding="utf-8",
    )

    settings = load_settings({"REGISTRO_CONFIG": str(config), "PORT": "7001"})

    assert settings.host == "10.0.0.5"
    assert settings.port == 7001
    assert settings.expose_error_details is False


def test_yaml_file_must_be_a_mapping(tmp_path: Path) -> None:
    config = tmp_path / "registro.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings({"REGISTRO_CONFIG": str(config)})


@pytest.mark.parametrize("port", ["http", "0", "70000"])
def test_invalid_port_is_rejected(tmp_path: Path, port: str) -> None:
    with pytest.raises(ValueError):
        load_settings(_environ(tmp_path, PORT=port))


def test_sql_server_settings_build_an_mssql_url(tmp_path: Path) -> None:
    settings = load_settings(
        _environ(
            tmp_path,
            DB_SERVER="sql.example.local",
            DB_DATABASE="Registro",
            DB_DOMAIN="EXAMPLE",
            DB_USERNAME="svc",
            DB_PASSWORD="s3cret",
        )
    )

    url = make_url(settings.database_url)
    assert url.drivername == "mssql+pyodbc"
    assert url.host == "sql.example.local"
    assert url.database == "Registro"
    assert url.username == "EXAMPLE\\svc"
    assert url.password == "s3cret"
    assert url.query["Encrypt"] == "yes"
    assert url.query["TrustServerCertificate"] == "yes"


def test_explicit_database_url_beats_sql_server_settings(tmp_path: Path) -> None:
    settings = load_settings(
        _environ(tmp_path, DATABASE_URL="sqlite:///x.sqlite3", DB_SERVER="ignored")
    )

    assert settings.database_url == "sqlite:///x.sqlite3"


def test_resolve_config_path_default() -> None:
    path = resolve_config_path(None)
    assert path.name == "registro.yaml"
    assert path.parent.name == "config"
