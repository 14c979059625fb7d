import pytest
from sqlalchemy.exc import OperationalError

from app.core.cache import ResultCache, cached, result_cache
from app.core.config import settings
from app.schemas.inventory import GetInventoryParams, InventoryPage
from app.services import inventory_service
from app.services.inventory_repository import InventoryRepository


def test_json_source_returns_page(json_source):
    page = inventory_service.get_inventory(GetInventoryParams(q="broms", per_page=2))

    assert isinstance(page, InventoryPage)
    assert page.total == 4
    assert page.page_count == 2
    assert len(page.data) == 2


def test_database_source_returns_page(database_source):
    page = inventory_service.get_inventory(GetInventoryParams(mk=["VOL"]))

    assert page.total == 3
    assert {row.mk for row in page.data} == {"VOL"}


def test_missing_snapshot_maps_to_empty_page(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "INVENTORY_SOURCE", "json")
    monkeypatch.setattr(settings, "LAGER_JSON_PATH", str(tmp_path / "missing.json"))

    page = inventory_service.get_inventory(GetInventoryParams())

    assert page.data == []
    assert page.page_count == 0
    assert inventory_service.get_inventory_status_counts() == {}
    assert inventory_service.get_inventory_mk_counts() == []


def test_database_errors_map_to_empty_page(monkeypatch, database_source):
    def broken(db, params):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(InventoryRepository, "get_page", staticmethod(broken))

    page = inventory_service.get_inventory(GetInventoryParams())

    assert page.data == []
    assert page.page_count == 0


def test_unknown_source_is_not_swallowed(monkeypatch):
    monkeypatch.setattr(settings, "INVENTORY_SOURCE", "ftp")

    with pytest.raises(inventory_service.InventoryQueryError):
        inventory_service.get_inventory(GetInventoryParams())


def test_results_are_cached_per_input(monkeypatch, json_source):
    monkeypatch.setattr(settings, "QUERY_CACHE_TTL", 60)
    first = inventory_service.get_inventory(GetInventoryParams(q="broms"))

    assert inventory_service.get_inventory(GetInventoryParams(q="broms")) is first
    assert inventory_service.get_inventory(GetInventoryParams(q="olje")) is not first

    removed = inventory_service.invalidate_inventory_cache()
    assert removed == 2
    assert inventory_service.get_inventory(GetInventoryParams(q="broms")) is not first


def test_facets_from_json_source(json_source):
    assert inventory_service.get_inventory_status_counts()["J"] == 3
    assert inventory_service.get_inventory_mk_counts()[0]["value"] == "VOL"
    assert len(inventory_service.get_inventory_location_counts()) == 2


def test_row_lookup(json_source):
    row = inventory_service.get_inventory_row("SKF::400::Partille")
    assert row.benamning == "Hjullager"
    assert inventory_service.get_inventory_row("nope") is None


def test_cache_expiry():
    calls = []

    @cached("test-expiry", ttl=lambda: 0)
    def never_kept():
        calls.append(1)
        return len(calls)

    @cached("test-kept", ttl=lambda: 60)
    def kept():
        calls.append(1)
        return len(calls)

    assert never_kept() == 1
    assert never_kept() == 2
    assert kept() == 3
    assert kept() == 3


def test_cache_key_is_order_independent():
    assert ResultCache.make_key("ns", {"a": 1, "b": 2}) == ResultCache.make_key("ns", {"b": 2, "a": 1})


def test_invalidate_by_namespace():
    result_cache.set(ResultCache.make_key("one", 1), "x", 60)
    result_cache.set(ResultCache.make_key("two", 1), "y", 60)

    assert result_cache.invalidate("one") == 1
    assert result_cache.get(ResultCache.make_key("two", 1)) == (True, "y")


def test_failed_facets_are_not_cached(monkeypatch, lager_file, tmp_path):
    monkeypatch.setattr(settings, "INVENTORY_SOURCE", "json")
    monkeypatch.setattr(settings, "FACET_CACHE_TTL", 300)
    monkeypatch.setattr(settings, "LAGER_JSON_PATH", str(tmp_path / "missing.json"))

    assert inventory_service.get_inventory_status_counts() == {}
    assert inventory_service.get_inventory_location_counts() == []

    monkeypatch.setattr(settings, "LAGER_JSON_PATH", str(lager_file))

    assert inventory_service.get_inventory_status_counts()["J"] == 3
    assert len(inventory_service.get_inventory_location_counts()) == 2


def test_failed_page_is_not_cached(monkeypatch, lager_file, tmp_path):
    monkeypatch.setattr(settings, "INVENTORY_SOURCE", "json")
    monkeypatch.setattr(settings, "QUERY_CACHE_TTL", 60)
    monkeypatch.setattr(settings, "LAGER_JSON_PATH", str(tmp_path / "missing.json"))

    assert inventory_service.get_inventory(GetInventoryParams()).total == 0

    monkeypatch.setattr(settings, "LAGER_JSON_PATH", str(lager_file))
    assert inventory_service.get_inventory(GetInventoryParams()).total == 7


def test_expired_entries_are_purged_on_write():
    for i in range(200):
        result_cache.set(ResultCache.make_key("purge", i), i, 0)
    result_cache.set(ResultCache.make_key("purge", "last"), "x", 60)

    assert len(result_cache) == 1
