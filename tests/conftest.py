"""
Shared fixtures: an in-memory SQLite database, a lager.json snapshot on disk,
and a TestClient bound to the app.
"""

import json

import pytest
from fastapi.testclient import TestClient

from app.core import database
from app.core.cache import result_cache
from app.core.config import settings
from app.services.lager_loader import lager_loader
from app.services.lager_sync import seed_inventory

SNAPSHOT = {
    "Partille": [
        {
            "MK": "VOL", "Artikelnr": "100", "Benämning": "Bromsbelägg fram",
            "Benämning2": "Brake pads", "Status": "J", "Lagerplats": "A1", "Bild": True,
            "Paket": ["BROMS"], "Fordon": ["V70"],
            "AlternativArt": [{"märkeskod": "ATE", "artikelnummer": "13.0460"}],
        },
        {"MK": "VOL", "Artikelnr": "200", "Benämning": "Oljefilter", "Status": "U", "Lagerplats": "B2"},
        {"MK": "BOS", "Artikelnr": "300", "Benämning": "Bromsskiva", "Benämning2": "Brake disc", "Status": "B"},
        {"MK": "SKF", "Artikelnr": "400", "Benämning": "Hjullager", "Status": "J"},
    ],
    "Mölndal": [
        {"MK": "VOL", "Artikelnr": "100", "Benämning": "Bromsbelägg fram", "Benämning2": "Brake pads", "Status": "N"},
        {"MK": "BOS", "Artikelnr": "500", "Benämning": "Tändstift", "Benämning2": "Spark plug", "Status": "J"},
        {"MK": "ATE", "Artikelnr": "600", "Benämning": "Bromsvätska"},
    ],
}


@pytest.fixture(autouse=True)
def clear_caches():
    result_cache.invalidate()
    lager_loader.reload()
    yield
    result_cache.invalidate()
    lager_loader.reload()


@pytest.fixture
def lager_file(tmp_path):
    path = tmp_path / "lager.json"
    path.write_text(json.dumps(SNAPSHOT, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def frame(lager_file):
    return lager_loader.load_frame(str(lager_file))


@pytest.fixture
def db_session():
    database.reset_engine("sqlite://")
    database.create_tables()
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
        database.Base.metadata.drop_all(bind=database.get_engine())


@pytest.fixture
def seeded_db(db_session, lager_file):
    seed_inventory(db_session, lager_file)
    return db_session


@pytest.fixture
def json_source(monkeypatch, lager_file):
    monkeypatch.setattr(settings, "INVENTORY_SOURCE", "json")
    monkeypatch.setattr(settings, "LAGER_JSON_PATH", str(lager_file))
    return lager_file


@pytest.fixture
def database_source(monkeypatch, seeded_db):
    monkeypatch.setattr(settings, "INVENTORY_SOURCE", "database")
    return seeded_db


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client
