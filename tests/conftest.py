from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from registro.application import create_application
from registro.config import Settings
from registro.database import Database, sqlite_url


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(sqlite_url(tmp_path / "registro.sqlite3"))
    db.initialize()
    yield db
    db.close()


@pytest.fixture()
def public_dir(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<html><body>Registro</body></html>", encoding="utf-8")
    (root / "app.js").write_text("console.log('registro');", encoding="utf-8")
    (root / "styles.css").write_text("body { margin: 0; }", encoding="utf-8")
    (root / "favicon.foo").write_bytes(b"not really an icon")
    (root / "assets").mkdir()
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return root


@pytest.fixture()
def settings(public_dir: Path) -> Settings:
    return Settings(public_dir=public_dir, expose_error_details=True)


@pytest.fixture()
def client(database: Database, public_dir: Path, settings: Settings):
    app = create_application(settings=settings, database=database, public_dir=public_dir)
    with TestClient(app) as test_client:
        yield test_client
