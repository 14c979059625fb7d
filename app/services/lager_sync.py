"""
Batch seed and sync of the relational store from a lager.json snapshot.
"""

import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.models.inventory import Article, Inventory, generate_id
from app.models.task import Task, TASK_LABELS, TASK_PRIORITIES, TASK_STATUSES
from app.schemas.lager import LagerSnapshot
from app.services.lager_snapshot import article_data, read_snapshot

logger = logging.getLogger(__name__)

SEED_BATCH_SIZE = 1000
DELETE_BATCH_SIZE = 1000
UPSERT_BATCH_SIZE = 500

ARTICLE_FIELDS = (
    "benamning", "benamning2", "extrainfo", "bild", "paket", "fordon", "alternativart", "data",
)
INVENTORY_FIELDS = ("status", "lagerplats", "location_data")


def split_rows(snapshot: LagerSnapshot) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Split snapshot items into article rows and per-location inventory rows.

    Articles are de-duplicated on (mk, artikelnr) and inventory rows on
    (mk, artikelnr, location); the first occurrence wins.
    """
    articles: Dict[Tuple[str, str], Dict[str, Any]] = {}
    inventory_rows = []
    seen_inventory = set()

    for location, items in snapshot.root.items():
        for item in items:
            if not item.mk or not item.artikelnr:
                logger.warning("Skipping item missing required fields at location %s", location)
                continue

            identity = (item.mk, item.artikelnr, location)
            if identity in seen_inventory:
                logger.warning("Skipping duplicate item %s/%s at location %s", item.mk, item.artikelnr, location)
                continue
            seen_inventory.add(identity)

            raw = item.model_dump(mode="json", by_alias=True)
            key = (item.mk, item.artikelnr)
            if key not in articles:
                articles[key] = {
                    "id": generate_id(),
                    "mk": item.mk,
                    "artikelnr": item.artikelnr,
                    "benamning": item.benamning,
                    "benamning2": item.benamning2,
                    "extrainfo": item.extrainfo,
                    "bild": item.bild,
                    "paket": item.paket,
                    "fordon": item.fordon,
                    "alternativart": raw["AlternativArt"],
                    "data": article_data(item),
                }

            inventory_rows.append({
                "id": generate_id(),
                "location": location,
                "mk": item.mk,
                "artikelnr": item.artikelnr,
                "status": item.status,
                "lagerplats": item.lagerplats,
                "location_data": {"Status": item.status, "Lagerplats": item.lagerplats},
            })

    return list(articles.values()), inventory_rows


def _batches(rows: List, size: int):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def _insert_for(db: Session):
    """Dialect insert construct supporting ON CONFLICT"""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")


def seed_inventory(db: Session, path: Union[str, Path]) -> Dict[str, int]:
    """Replace all articles and inventory rows with the snapshot content"""
    article_rows, inventory_rows = split_rows(read_snapshot(path))

    db.execute(delete(Inventory))
    db.execute(delete(Article))

    for batch in _batches(article_rows, SEED_BATCH_SIZE):
        db.execute(Article.__table__.insert(), batch)
    for batch in _batches(inventory_rows, SEED_BATCH_SIZE):
        db.execute(Inventory.__table__.insert(), batch)

    db.commit()
    logger.info("Seeded %d articles and %d inventory rows", len(article_rows), len(inventory_rows))
    return {"articles": len(article_rows), "inventory": len(inventory_rows)}


def _delete_ids(db: Session, model, ids: List[str]) -> int:
    for batch in _batches(ids, DELETE_BATCH_SIZE):
        db.execute(delete(model).where(model.id.in_(batch)))
    return len(ids)


def sync_inventory(db: Session, path: Union[str, Path]) -> Dict[str, int]:
    """
    Bring the store in line with the snapshot.

    Rows whose identity left the snapshot are deleted (inventory first, then
    articles); everything else is upserted with a fresh updated_at.
    """
    article_rows, inventory_rows = split_rows(read_snapshot(path))

    desired_articles = {(a["mk"], a["artikelnr"]) for a in article_rows}
    desired_inventory = {(r["mk"], r["artikelnr"], r["location"]) for r in inventory_rows}

    existing_inventory = db.execute(
        select(Inventory.id, Inventory.mk, Inventory.artikelnr, Inventory.location)
    ).all()
    stale_inventory = [
        row.id for row in existing_inventory
        if (row.mk, row.artikelnr, row.location) not in desired_inventory
    ]
    deleted_inventory = _delete_ids(db, Inventory, stale_inventory)

    existing_articles = db.execute(select(Article.id, Article.mk, Article.artikelnr)).all()
    stale_articles = [
        row.id for row in existing_articles
        if (row.mk, row.artikelnr) not in desired_articles
    ]
    deleted_articles = _delete_ids(db, Article, stale_articles)

    insert = _insert_for(db)

    for batch in _batches(article_rows, UPSERT_BATCH_SIZE):
        stmt = insert(Article).values(batch)
        stmt = stmt.on_conflict_do_update(
            index_elements=["mk", "artikelnr"],
            set_={**{f: stmt.excluded[f] for f in ARTICLE_FIELDS}, "updated_at": func.now()},
        )
        db.execute(stmt)

    for batch in _batches(inventory_rows, UPSERT_BATCH_SIZE):
        stmt = insert(Inventory).values(batch)
        stmt = stmt.on_conflict_do_update(
            index_elements=["mk", "artikelnr", "location"],
            set_={**{f: stmt.excluded[f] for f in INVENTORY_FIELDS}, "updated_at": func.now()},
        )
        db.execute(stmt)

    db.commit()

    summary = {
        "deleted_inventory": deleted_inventory,
        "deleted_articles": deleted_articles,
        "upserted_articles": len(article_rows),
        "upserted_inventory": len(inventory_rows),
    }
    logger.info("Sync finished: %s", summary)
    return summary


def seed_tasks(db: Session, count: int = 100, seed: int = 42) -> int:
    """Replace the tasks table with generated demo tasks"""
    rng = random.Random(seed)
    db.execute(delete(Task))

    verbs = ["Fix", "Add", "Refactor", "Document", "Review", "Update"]
    subjects = ["inventory sync", "status badges", "search box", "pagination", "MK filter", "export"]

    tasks = [
        Task(
            code=f"TASK-{i + 1:04d}",
            title=f"{rng.choice(verbs)} {rng.choice(subjects)}",
            status=rng.choice(TASK_STATUSES),
            label=rng.choice(TASK_LABELS),
            priority=rng.choice(TASK_PRIORITIES),
            estimated_hours=float(rng.randint(1, 24)),
            archived=rng.random() < 0.1,
        )
        for i in range(count)
    ]
    db.add_all(tasks)
    db.commit()
    return len(tasks)
