"""
Pydantic schemas for the inventory lookup table.
Query input, row output and facet option models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


# Status codes and their display labels
STATUS_LABELS: Dict[str, str] = {
    "J": "Lagervara",
    "U": "Utgående",
    "H": "Hemtagen",
    "A": "Avskriven",
    "B": "Beställd",
    "R": "Rörelseregistrerad",
    "N": "Ej lagerförd",
}


# ============================================================================
# Query Input Schemas
# ============================================================================

class FilterOperator(str, Enum):
    """Operators accepted in advanced filter clauses"""
    EQ = "eq"
    NE = "ne"
    ILIKE = "iLike"
    NOT_ILIKE = "notILike"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    IN_ARRAY = "inArray"
    NOT_IN_ARRAY = "notInArray"
    IS_BETWEEN = "isBetween"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"


class JoinOperator(str, Enum):
    """How advanced filter clauses are combined"""
    AND = "and"
    OR = "or"


class FilterFlag(str, Enum):
    """Table filter mode selected in the UI"""
    ADVANCED_FILTERS = "advancedFilters"
    COMMAND_FILTERS = "commandFilters"
    SIMPLE = "simple"


class SortItem(BaseModel):
    """One sort key; applied in the order given"""
    id: str = Field(..., description="Column id (e.g. artikelnr, mk, updatedAt)")
    desc: bool = Field(False, description="Sort descending")


class FilterClause(BaseModel):
    """One advanced filter clause"""
    id: str = Field(..., description="Column id the clause applies to")
    value: Any = Field(None, description="String, number or list of values")
    operator: Optional[FilterOperator] = Field(None, description="Defaults by column type")
    variant: Optional[str] = Field(None, description="UI input variant (text, multiSelect, dateRange...)")


class AdvancedQueryParams(BaseModel):
    """Pagination, sorting and advanced filter fields shared by table queries"""
    page: int = Field(1, ge=1, description="1-based page number")
    per_page: int = Field(10, ge=1, le=100, alias="perPage", description="Rows per page")
    sort: List[SortItem] = Field(default_factory=list)
    filter_flag: Optional[FilterFlag] = Field(None, alias="filterFlag")
    filters: List[FilterClause] = Field(default_factory=list)
    join_operator: JoinOperator = Field(JoinOperator.AND, alias="joinOperator")

    class Config:
        populate_by_name = True

    @field_validator("join_operator", mode="before")
    @classmethod
    def translate_join_operator(cls, v):
        # The Swedish UI sends och/eller
        if isinstance(v, str):
            return {"och": "and", "eller": "or"}.get(v.lower(), v.lower())
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def is_advanced(self) -> bool:
        return self.filter_flag in (FilterFlag.ADVANCED_FILTERS, FilterFlag.COMMAND_FILTERS)


class GetInventoryParams(AdvancedQueryParams):
    """Input for one page of the inventory table"""
    q: str = Field("", description="Free text matched against artikelnr, benamning and benamning2")
    status: List[str] = Field(default_factory=list, description="Status codes to include")
    mk: List[str] = Field(default_factory=list, description="Maker codes to include")
    location: List[str] = Field(default_factory=list, description="Locations to include")

    @field_validator("q", mode="before")
    @classmethod
    def strip_query(cls, v):
        return (v or "").strip()


# ============================================================================
# Response Schemas
# ============================================================================

class InventoryRowResponse(BaseModel):
    """One inventory row joined with its article data"""
    id: str
    mk: str
    artikelnr: str
    location: str
    status: Optional[str] = None
    lagerplats: Optional[str] = None
    benamning: Optional[str] = None
    benamning2: Optional[str] = None
    extrainfo: Optional[str] = None
    bild: Optional[bool] = None
    paket: List[str] = Field(default_factory=list)
    fordon: List[str] = Field(default_factory=list)
    alternativart: List[Dict[str, Any]] = Field(default_factory=list)
    article_data: Dict[str, Any] = Field(default_factory=dict, description="Raw snapshot fields of the article")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("paket", "fordon", "alternativart", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator("article_data", mode="before")
    @classmethod
    def none_to_dict(cls, v):
        return v or {}


class InventoryPage(BaseModel):
    """One page of inventory rows"""
    data: List[InventoryRowResponse] = Field(default_factory=list)
    page_count: int = Field(0, description="ceil(total / per_page)")
    total: int = Field(0, description="Number of rows matching the filters")


class FacetOption(BaseModel):
    """Filter option with occurrence count"""
    value: str
    label: str
    count: int


class CacheInvalidateResponse(BaseModel):
    """Result of a cache invalidation"""
    success: bool = True
    removed: int = 0
