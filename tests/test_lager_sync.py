import json

import pytest
from sqlalchemy import select

from app.models.inventory import Article, Inventory
from app.models.task import Task
from app.services.lager_snapshot import SnapshotValidationError, read_snapshot
from app.services.lager_sync import seed_inventory, seed_tasks, split_rows, sync_inventory


def test_split_rows_deduplicates_articles(lager_file):
    articles, inventory = split_rows(read_snapshot(lager_file))

    assert len(inventory) == 7
    assert len(articles) == 6
    volvo = next(a for a in articles if (a["mk"], a["artikelnr"]) == ("VOL", "100"))
    assert volvo["alternativart"] == [{"märkeskod": "ATE", "artikelnummer": "13.0460"}]
    assert "Status" not in volvo["data"]


def test_seed_replaces_existing_rows(db_session, lager_file):
    assert seed_inventory(db_session, lager_file) == {"articles": 6, "inventory": 7}
    assert seed_inventory(db_session, lager_file) == {"articles": 6, "inventory": 7}

    assert len(db_session.execute(select(Inventory.id)).all()) == 7


def test_sync_deletes_missing_and_upserts_changed(db_session, lager_file, tmp_path):
    seed_inventory(db_session, lager_file)
    original_id = db_session.execute(
        select(Inventory.id).where(Inventory.mk == "SKF")
    ).scalar_one()

    updated = {
        "Partille": [
            {"MK": "SKF", "Artikelnr": "400", "Benämning": "Hjullagersats", "Status": "U"},
            {"MK": "NGK", "Artikelnr": "700", "Benämning": "Tändkabel", "Status": "J"},
        ],
    }
    path = tmp_path / "updated.json"
    path.write_text(json.dumps(updated, ensure_ascii=False), encoding="utf-8")

    summary = sync_inventory(db_session, path)

    assert summary == {
        "deleted_inventory": 6,
        "deleted_articles": 5,
        "upserted_articles": 2,
        "upserted_inventory": 2,
    }

    skf = db_session.execute(select(Inventory).where(Inventory.mk == "SKF")).scalar_one()
    db_session.refresh(skf)
    assert skf.id == original_id
    assert skf.status == "U"

    article = db_session.execute(select(Article).where(Article.mk == "SKF")).scalar_one()
    db_session.refresh(article)
    assert article.benamning == "Hjullagersats"

    assert {row.mk for row in db_session.execute(select(Inventory.mk)).all()} == {"SKF", "NGK"}


def test_invalid_snapshot_aborts_before_writing(db_session, lager_file, tmp_path):
    seed_inventory(db_session, lager_file)
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"Partille": [{"MK": "VOL", "Artikelnr": "1", "Bild": "maybe"}]}), encoding="utf-8")

    with pytest.raises(SnapshotValidationError):
        sync_inventory(db_session, path)

    assert len(db_session.execute(select(Inventory.id)).all()) == 7


def test_seed_tasks(db_session):
    assert seed_tasks(db_session, count=20) == 20
    assert seed_tasks(db_session, count=5) == 5
    assert len(db_session.execute(select(Task.id)).all()) == 5


def test_duplicate_items_keep_the_first_occurrence(db_session, tmp_path):
    snapshot = {
        "Partille": [
            {"MK": "VOL", "Artikelnr": "1", "Status": "J"},
            {"MK": "VOL", "Artikelnr": "1", "Status": "U"},
        ],
        "Mölndal": [{"MK": "VOL", "Artikelnr": "1", "Status": "B"}],
    }
    path = tmp_path / "dupes.json"
    path.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")

    assert seed_inventory(db_session, path) == {"articles": 1, "inventory": 2}
    summary = sync_inventory(db_session, path)
    assert summary["upserted_inventory"] == 2

    statuses = dict(db_session.execute(select(Inventory.location, Inventory.status)).all())
    assert statuses == {"Partille": "J", "Mölndal": "B"}
