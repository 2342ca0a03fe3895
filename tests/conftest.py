# tests/conftest.py

from pathlib import Path

import mongomock
import pytest

from todo_api.app import create_app
from todo_api.stores import build_stores

from .fakes import FakeClock, make_config


@pytest.fixture(params=["json", "sqlite", "mongo"])
def backend(request) -> str:
    return request.param


@pytest.fixture()
def stores(tmp_path: Path, backend: str):
    """Real stores for every backend; MongoDB is served by mongomock."""
    config = make_config(tmp_path, backend)
    client = mongomock.MongoClient() if backend == "mongo" else None
    bundle = build_stores(config, mongo_client=client, clock=FakeClock())
    yield bundle
    bundle.close()


@pytest.fixture()
def app(tmp_path: Path, stores):
    config = make_config(tmp_path, stores.backend)
    static_dir = tmp_path / "frontend"
    (static_dir / "pages").mkdir(parents=True)
    (static_dir / "style").mkdir()
    (static_dir / "pages" / "reg.html").write_text("<h1>register</h1>", encoding="utf-8")
    (static_dir / "pages" / "index.html").write_text("<h1>tasks</h1>", encoding="utf-8")
    (static_dir / "pages" / "log.html").write_text("<h1>login</h1>", encoding="utf-8")
    (static_dir / "pages" / "404.html").write_text("<h1>missing</h1>", encoding="utf-8")
    (static_dir / "style" / "style.css").write_text("body {}", encoding="utf-8")
    config["STATIC_DIR"] = str(static_dir)
    return create_app(config, stores=stores)


@pytest.fixture()
def client(app):
    return app.test_client()
