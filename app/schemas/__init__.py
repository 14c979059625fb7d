"""
Schemas for the application.

This module exports all Pydantic models and schemas used for request/response validation.
"""

from app.schemas.inventory import (
    # Query input
    FilterOperator,
    JoinOperator,
    FilterFlag,
    SortItem,
    FilterClause,
    AdvancedQueryParams,
    GetInventoryParams,
    # Responses
    InventoryRowResponse,
    InventoryPage,
    FacetOption,
    CacheInvalidateResponse,
    STATUS_LABELS,
)

from app.schemas.task import (
    GetTasksParams,
    TaskResponse,
    TaskPage,
    EstimatedHoursRange,
)

from app.schemas.lager import (
    AlternativeArticle,
    LagerItem,
    LagerSnapshot,
)

__all__ = [
    # Inventory schemas
    "FilterOperator",
    "JoinOperator",
    "FilterFlag",
    "SortItem",
    "FilterClause",
    "AdvancedQueryParams",
    "GetInventoryParams",
    "InventoryRowResponse",
    "InventoryPage",
    "FacetOption",
    "CacheInvalidateResponse",
    "STATUS_LABELS",

    # Task schemas
    "GetTasksParams",
    "TaskResponse",
    "TaskPage",
    "EstimatedHoursRange",

    # Snapshot schemas
    "AlternativeArticle",
    "LagerItem",
    "LagerSnapshot",
]
