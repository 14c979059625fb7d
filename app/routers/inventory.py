"""
API Router for the inventory lookup table.
Paginated, filterable, sortable inventory rows plus facet counts.
"""

import json
from typing import Dict, List, Optional
from fastapi import APIRouter, HTTPException, status, Query
from pydantic import ValidationError

from app.schemas.inventory import (
    CacheInvalidateResponse,
    FacetOption,
    GetInventoryParams,
    InventoryPage,
    InventoryRowResponse,
)
from app.services import inventory_service
from app.services.inventory_repository import status_options

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# ============================================================================
# Query Parameter Helpers
# ============================================================================

def split_values(values: Optional[List[str]]) -> List[str]:
    """Accept both repeated (?mk=A&mk=B) and comma-separated (?mk=A,B) values"""
    result = []
    for value in values or []:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def parse_json_list(raw: Optional[str], name: str) -> list:
    """Parse a JSON array query parameter"""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Query parameter '{name}' must be a JSON array"
        )
    if not isinstance(parsed, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Query parameter '{name}' must be a JSON array"
        )
    return parsed


def validation_failed(e: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=json.loads(e.json(include_url=False))
    )


# ============================================================================
# INVENTORY ENDPOINTS
# ============================================================================

@router.get("", response_model=InventoryPage)
def list_inventory(
    page: int = Query(1, description="1-based page number"),
    per_page: int = Query(10, alias="perPage", description="Rows per page (max 100)"),
    sort: Optional[str] = Query(None, description='JSON array, e.g. [{"id":"artikelnr","desc":false}]'),
    q: str = Query("", description="Search artikelnr, benamning and benamning2"),
    status_filter: Optional[List[str]] = Query(None, alias="status"),
    mk: Optional[List[str]] = Query(None),
    location: Optional[List[str]] = Query(None),
    filter_flag: Optional[str] = Query(None, alias="filterFlag"),
    filters: Optional[str] = Query(None, description="JSON array of {id, value, operator}"),
    join_operator: str = Query("and", alias="joinOperator"),
):
    """
    Get one page of the inventory table.

    **Simple filters** (default):
    - q: case-insensitive match on article number and both descriptions
    - status, mk, location: exact set membership

    **Advanced filters** (filterFlag=advancedFilters or commandFilters):
    - filters: clauses combined with joinOperator (and / or)

    Returns the rows of the page and the total page count.
    """
    try:
        params = GetInventoryParams(
            page=page,
            per_page=per_page,
            sort=parse_json_list(sort, "sort"),
            q=q,
            status=split_values(status_filter),
            mk=split_values(mk),
            location=split_values(location),
            filter_flag=filter_flag or None,
            filters=parse_json_list(filters, "filters"),
            join_operator=join_operator,
        )
    except ValidationError as e:
        raise validation_failed(e)

    return inventory_service.get_inventory(params)


@router.get("/facets/status", response_model=Dict[str, int])
def inventory_status_counts():
    """Number of rows per status code"""
    return inventory_service.get_inventory_status_counts()


@router.get("/facets/status/options", response_model=List[FacetOption])
def inventory_status_options():
    """Status codes with labels and counts, most frequent first"""
    return status_options(inventory_service.get_inventory_status_counts())


@router.get("/facets/mk", response_model=List[FacetOption])
def inventory_mk_counts():
    """Maker codes with counts, most frequent first"""
    return inventory_service.get_inventory_mk_counts()


@router.get("/facets/location", response_model=List[FacetOption])
def inventory_location_counts():
    """Locations with counts, most frequent first"""
    return inventory_service.get_inventory_location_counts()


@router.post("/cache/invalidate", response_model=CacheInvalidateResponse)
def invalidate_cache():
    """Drop cached inventory results (e.g. after a sync)"""
    removed = inventory_service.invalidate_inventory_cache()
    return CacheInvalidateResponse(success=True, removed=removed)


@router.get("/{row_id:path}", response_model=InventoryRowResponse)
def get_inventory_row(row_id: str):
    """Get a single inventory row by id"""
    row = inventory_service.get_inventory_row(row_id)
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Inventory row {row_id} not found"
        )
    return row
