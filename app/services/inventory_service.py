"""
Inventory query facade.
Picks the configured source (database or lager.json), caches results and maps
data-access failures to empty results.
"""

import json
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.cache import cached, result_cache
from app.core.config import settings
from app.core.database import session_scope
from app.schemas.inventory import GetInventoryParams, InventoryPage, InventoryRowResponse
from app.services.inventory_repository import InventoryRepository
from app.services.json_inventory import JsonInventoryRepository
from app.services.lager_loader import lager_loader
from app.services.lager_snapshot import SnapshotValidationError

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_JSON = "json"

# Cache namespaces
INVENTORY_NAMESPACE = "inventory"
STATUS_COUNTS_NAMESPACE = "inventory-status-counts"
MK_COUNTS_NAMESPACE = "inventory-mk-counts"
LOCATION_COUNTS_NAMESPACE = "inventory-location-counts"

# Failures that turn into an empty result instead of an error response
DATA_ACCESS_ERRORS = (SQLAlchemyError, OSError, json.JSONDecodeError, SnapshotValidationError)


class InventoryQueryError(Exception):
    """Raised for an unknown inventory source"""
    pass


def _source() -> str:
    source = settings.INVENTORY_SOURCE
    if source not in (SOURCE_DATABASE, SOURCE_JSON):
        raise InventoryQueryError(f"Unknown INVENTORY_SOURCE '{source}'")
    return source


def _query_ttl() -> float:
    return settings.QUERY_CACHE_TTL


def _facet_ttl() -> float:
    return settings.FACET_CACHE_TTL


@cached(INVENTORY_NAMESPACE, ttl=_query_ttl)
def _load_page(params: GetInventoryParams) -> InventoryPage:
    if _source() == SOURCE_JSON:
        rows, total, pages = JsonInventoryRepository.get_page(lager_loader.load_frame(), params)
    else:
        with session_scope() as db:
            rows, total, pages = InventoryRepository.get_page(db, params)

    return InventoryPage(
        data=[InventoryRowResponse.model_validate(row) for row in rows],
        page_count=pages,
        total=total,
    )


@cached(STATUS_COUNTS_NAMESPACE, ttl=_facet_ttl)
def _load_status_counts() -> Dict[str, int]:
    if _source() == SOURCE_JSON:
        return JsonInventoryRepository.get_status_counts(lager_loader.load_frame())
    with session_scope() as db:
        return InventoryRepository.get_status_counts(db)


@cached(MK_COUNTS_NAMESPACE, ttl=_facet_ttl)
def _load_mk_counts() -> List[dict]:
    if _source() == SOURCE_JSON:
        return JsonInventoryRepository.get_mk_counts(lager_loader.load_frame())
    with session_scope() as db:
        return InventoryRepository.get_mk_counts(db)


@cached(LOCATION_COUNTS_NAMESPACE, ttl=_facet_ttl)
def _load_location_counts() -> List[dict]:
    if _source() == SOURCE_JSON:
        return JsonInventoryRepository.get_location_counts(lager_loader.load_frame())
    with session_scope() as db:
        return InventoryRepository.get_location_counts(db)


# Failures are handled outside the cached loaders so an empty fallback is never cached

def get_inventory(params: GetInventoryParams) -> InventoryPage:
    """
    One page of inventory rows plus the total page count.

    Data-access failures are logged and return an empty page with page_count 0.
    """
    try:
        return _load_page(params)
    except DATA_ACCESS_ERRORS:
        logger.exception("Inventory query failed; returning empty page")
        return InventoryPage(data=[], page_count=0, total=0)


def get_inventory_row(row_id: str) -> Optional[InventoryRowResponse]:
    """Look up one row by id (not cached)"""
    if _source() == SOURCE_JSON:
        row = JsonInventoryRepository.get_by_id(lager_loader.load_frame(), row_id)
    else:
        with session_scope() as db:
            row = InventoryRepository.get_by_id(db, row_id)
    return InventoryRowResponse.model_validate(row) if row else None


def get_inventory_status_counts() -> Dict[str, int]:
    """Rows per status code"""
    try:
        return _load_status_counts()
    except DATA_ACCESS_ERRORS:
        logger.exception("Status count query failed")
        return {}


def get_inventory_mk_counts() -> List[dict]:
    """Maker code options with counts"""
    try:
        return _load_mk_counts()
    except DATA_ACCESS_ERRORS:
        logger.exception("Maker code count query failed")
        return []


def get_inventory_location_counts() -> List[dict]:
    """Location options with counts"""
    try:
        return _load_location_counts()
    except DATA_ACCESS_ERRORS:
        logger.exception("Location count query failed")
        return []


def invalidate_inventory_cache() -> int:
    """Drop cached inventory results and force the snapshot to be re-read"""
    lager_loader.reload()
    removed = 0
    for namespace in (
        INVENTORY_NAMESPACE,
        STATUS_COUNTS_NAMESPACE,
        MK_COUNTS_NAMESPACE,
        LOCATION_COUNTS_NAMESPACE,
    ):
        removed += result_cache.invalidate(namespace)
    return removed
