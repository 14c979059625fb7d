from datetime import datetime

from sqlalchemy import update

from app.models.inventory import Inventory
from app.schemas.inventory import GetInventoryParams
from app.services.inventory_repository import InventoryRepository, facet_options, status_options


def params(**kwargs):
    return GetInventoryParams(**kwargs)


def keys(rows):
    return [(r["mk"], r["artikelnr"], r["location"]) for r in rows]


def test_free_text_matches_article_number_and_descriptions(seeded_db):
    rows, total, _ = InventoryRepository.get_page(seeded_db, params(q="broms", per_page=100))
    assert total == 4
    assert all("broms" in r["benamning"].lower() for r in rows)

    _, total, _ = InventoryRepository.get_page(seeded_db, params(q="BRAKE"))
    assert total == 3

    rows, _, _ = InventoryRepository.get_page(seeded_db, params(q="20"))
    assert keys(rows) == [("VOL", "200", "Partille")]


def test_facet_filters(seeded_db):
    rows, total, _ = InventoryRepository.get_page(seeded_db, params(status=["J"], per_page=100))
    assert total == 3
    assert {r["status"] for r in rows} == {"J"}

    rows, _, _ = InventoryRepository.get_page(
        seeded_db, params(status=["J"], location=["Mölndal"], mk=["BOS"])
    )
    assert keys(rows) == [("BOS", "500", "Mölndal")]


def test_advanced_filters_join_with_and_or(seeded_db):
    clauses = [{"id": "mk", "value": ["SKF"]}, {"id": "location", "value": ["Mölndal"]}]

    _, total, _ = InventoryRepository.get_page(
        seeded_db, params(filter_flag="advancedFilters", filters=clauses)
    )
    assert total == 0

    rows, total, _ = InventoryRepository.get_page(
        seeded_db, params(filter_flag="advancedFilters", filters=clauses, join_operator="or", per_page=100)
    )
    assert total == 4
    assert all(r["mk"] == "SKF" or r["location"] == "Mölndal" for r in rows)


def test_advanced_operators(seeded_db):
    def run(*clauses):
        rows, _, _ = InventoryRepository.get_page(
            seeded_db, params(filter_flag="commandFilters", filters=list(clauses), per_page=100)
        )
        return rows

    assert keys(run({"id": "status", "operator": "isEmpty"})) == [("ATE", "600", "Mölndal")]
    assert len(run({"id": "benamning", "operator": "notILike", "value": "broms"})) == 3
    assert len(run({"id": "mk", "operator": "ne", "value": "VOL"})) == 4
    assert len(run({"id": "mk", "operator": "notInArray", "value": ["VOL", "BOS"]})) == 2


def test_date_range_filter(seeded_db):
    seeded_db.execute(update(Inventory).values(updated_at=datetime(2024, 1, 10, 12, 0)))
    seeded_db.execute(
        update(Inventory).where(Inventory.mk == "SKF").values(updated_at=datetime(2024, 2, 1, 8, 0))
    )
    seeded_db.commit()

    rows, _, _ = InventoryRepository.get_page(seeded_db, params(
        filter_flag="advancedFilters",
        filters=[{"id": "updatedAt", "value": ["2024-01-31", "2024-02-01"]}],
    ))
    assert keys(rows) == [("SKF", "400", "Partille")]


def test_multi_key_sort(seeded_db):
    rows, _, _ = InventoryRepository.get_page(seeded_db, params(
        sort=[{"id": "MK"}, {"id": "Artikelnr", "desc": True}],
        per_page=100,
    ))
    assert [(r["mk"], r["artikelnr"]) for r in rows] == [
        ("ATE", "600"), ("BOS", "500"), ("BOS", "300"), ("SKF", "400"),
        ("VOL", "200"), ("VOL", "100"), ("VOL", "100"),
    ]


def test_pagination(seeded_db):
    seen = []
    for page in (1, 2, 3):
        rows, total, pages = InventoryRepository.get_page(seeded_db, params(page=page, per_page=3))
        assert len(rows) <= 3
        assert (total, pages) == (7, 3)
        seen.extend(r["id"] for r in rows)
    assert len(set(seen)) == 7


def test_rows_are_joined_with_articles(seeded_db):
    rows, _, _ = InventoryRepository.get_page(seeded_db, params(q="Bromsbelägg", location=["Partille"]))
    row = rows[0]
    assert row["benamning2"] == "Brake pads"
    assert row["paket"] == ["BROMS"]
    assert row["bild"] is True

    assert InventoryRepository.get_by_id(seeded_db, row["id"])["artikelnr"] == "100"
    assert InventoryRepository.get_by_id(seeded_db, "missing") is None


def test_facet_counts(seeded_db):
    assert InventoryRepository.get_status_counts(seeded_db) == {"J": 3, "U": 1, "B": 1, "N": 1}
    assert [o["value"] for o in InventoryRepository.get_mk_counts(seeded_db)] == ["VOL", "BOS", "ATE", "SKF"]
    assert InventoryRepository.get_location_counts(seeded_db)[0] == {
        "value": "Partille", "label": "Partille", "count": 4
    }


def test_facet_option_helpers():
    assert facet_options([("b", 2), ("a", 2), ("c", 5), ("", 9)]) == [
        {"value": "c", "label": "c", "count": 5},
        {"value": "a", "label": "a", "count": 2},
        {"value": "b", "label": "b", "count": 2},
    ]
    assert status_options({"J": 1})[0]["label"] == "Lagervara"
