import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND = REPO_ROOT / "backend"

# Prefer repo sources over any installed package.
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

# Keep the default engine off the developer database.
os.environ.setdefault("DATABASE_URL", "sqlite://")


def _session_factory(url: str):
    engine = create_engine(url, connect_args={"check_same_thread": False})
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session_factory(tmp_path):
    from geomeasure.db import init_db

    engine, factory = _session_factory(f"sqlite:///{tmp_path / 'measurements.db'}")
    init_db(bind=engine)
    yield factory
    engine.dispose()


def _override(factory):
    def _get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()
    return _get_db


@pytest.fixture
def api(db_session_factory):
    from fastapi.testclient import TestClient
    from geomeasure.db import get_db
    from geomeasure.main import app

    app.dependency_overrides[get_db] = _override(db_session_factory)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def api_store_down(tmp_path):
    """API whose store cannot be opened (parent directory does not exist)."""
    from fastapi.testclient import TestClient
    from geomeasure.db import get_db
    from geomeasure.main import app

    engine, factory = _session_factory(f"sqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
    app.dependency_overrides[get_db] = _override(factory)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        engine.dispose()


def line_payload(value=703.5):
    return {
        "type": "LineString",
        "geojson": {
            "type": "Feature",
            "geometry": {"type": "LineString", "coordinates": [[4.35, 50.85], [4.36, 50.85]]},
            "properties": {},
        },
        "value": value,
        "unit": "m",
    }


def polygon_payload(value=1234.0):
    ring = [[4.35, 50.85], [4.36, 50.85], [4.36, 50.86], [4.35, 50.85]]
    return {
        "type": "Polygon",
        "geojson": {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [ring]},
            "properties": {},
        },
        "value": value,
        "unit": "m²",
    }
