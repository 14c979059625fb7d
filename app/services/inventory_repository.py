"""
Repository for inventory table queries against the relational store.
Filtering, sorting and pagination are pushed down into SQL.
"""

from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import and_, or_, func
from sqlalchemy.orm import Session

from app.models.inventory import Article, Inventory
from app.schemas.inventory import GetInventoryParams, STATUS_LABELS
from app.services.query_filters import (
    INVENTORY_COLUMN_ALIASES,
    INVENTORY_COLUMN_KINDS,
    INVENTORY_FACET_COLUMNS,
    INVENTORY_SORT_COLUMNS,
    canonical_column,
    combine,
    contains,
    page_count,
    resolve_operator,
    sort_keys,
    sql_condition,
)

# Columns of the joined (inventory LEFT JOIN articles) row
INVENTORY_COLUMNS = {
    "id": Inventory.id,
    "mk": Inventory.mk,
    "artikelnr": Inventory.artikelnr,
    "location": Inventory.location,
    "status": Inventory.status,
    "lagerplats": Inventory.lagerplats,
    "created_at": Inventory.created_at,
    "updated_at": Inventory.updated_at,
    "benamning": Article.benamning,
    "benamning2": Article.benamning2,
    "extrainfo": Article.extrainfo,
    "bild": Article.bild,
    "paket": Article.paket,
    "fordon": Article.fordon,
    "alternativart": Article.alternativart,
    "article_data": Article.data,
}

ARTICLE_JOIN = and_(Article.mk == Inventory.mk, Article.artikelnr == Inventory.artikelnr)


class InventoryRepository:
    """Repository for inventory lookups"""

    @staticmethod
    def _base_query(db: Session, *entities):
        return db.query(*entities).select_from(Inventory).outerjoin(Article, ARTICLE_JOIN)

    @staticmethod
    def build_basic_where(params: GetInventoryParams):
        """Free text plus facet filters, combined with AND"""
        conditions = []
        if params.q:
            conditions.append(or_(
                contains(Inventory.artikelnr, params.q),
                contains(Article.benamning, params.q),
                contains(Article.benamning2, params.q),
            ))
        if params.status:
            conditions.append(Inventory.status.in_(params.status))
        if params.location:
            conditions.append(Inventory.location.in_(params.location))
        if params.mk:
            conditions.append(Inventory.mk.in_(params.mk))
        return and_(*conditions) if conditions else None

    @staticmethod
    def build_advanced_where(params: GetInventoryParams):
        """Advanced clauses joined with the requested operator; None if no clause applies"""
        conditions = []
        for clause in params.filters:
            column = canonical_column(clause.id, INVENTORY_COLUMN_ALIASES)
            if column is None:
                continue
            kind = INVENTORY_COLUMN_KINDS[column]
            operator = resolve_operator(clause, column, kind, INVENTORY_FACET_COLUMNS)
            conditions.append(sql_condition(INVENTORY_COLUMNS[column], clause, operator, kind))
        return combine(conditions, params.join_operator)

    @staticmethod
    def build_where(params: GetInventoryParams):
        if params.is_advanced:
            advanced = InventoryRepository.build_advanced_where(params)
            if advanced is not None:
                return advanced
        return InventoryRepository.build_basic_where(params)

    @staticmethod
    def build_order_by(params: GetInventoryParams) -> list:
        keys = sort_keys(
            params.sort,
            INVENTORY_COLUMN_ALIASES,
            INVENTORY_SORT_COLUMNS,
            default=("updated_at", True),
        )
        order_by = []
        for column, desc in keys:
            expr = INVENTORY_COLUMNS[column]
            order_by.append((expr.desc() if desc else expr.asc()).nulls_last())
        # Row id breaks ties so pages are deterministic
        order_by.append(Inventory.id.asc())
        return order_by

    @staticmethod
    def get_page(db: Session, params: GetInventoryParams) -> Tuple[List[Dict[str, Any]], int, int]:
        """
        Get one page of inventory rows joined with article data.
        Returns: (rows, total, page_count)
        """
        where = InventoryRepository.build_where(params)

        query = InventoryRepository._base_query(
            db, *[col.label(name) for name, col in INVENTORY_COLUMNS.items()]
        )
        count_query = InventoryRepository._base_query(db, func.count(Inventory.id))
        if where is not None:
            query = query.filter(where)
            count_query = count_query.filter(where)

        rows = query.order_by(*InventoryRepository.build_order_by(params))\
            .offset(params.offset).limit(params.per_page).all()
        total = count_query.scalar() or 0

        return [dict(row._mapping) for row in rows], total, page_count(total, params.per_page)

    @staticmethod
    def get_by_id(db: Session, row_id: str) -> Optional[Dict[str, Any]]:
        """Get one joined inventory row by id"""
        row = InventoryRepository._base_query(
            db, *[col.label(name) for name, col in INVENTORY_COLUMNS.items()]
        ).filter(Inventory.id == row_id).first()
        return dict(row._mapping) if row else None

    # ============================================================================
    # Facet Count Methods
    # ============================================================================

    @staticmethod
    def _group_counts(db: Session, column) -> List[Tuple[str, int]]:
        results = db.query(
            column,
            func.count(Inventory.id).label('count')
        ).group_by(column).having(func.count(column) > 0).all()
        return [(r[0], r.count) for r in results if r[0]]

    @staticmethod
    def get_status_counts(db: Session) -> Dict[str, int]:
        """Count rows per status code"""
        return dict(InventoryRepository._group_counts(db, Inventory.status))

    @staticmethod
    def get_mk_counts(db: Session) -> List[dict]:
        """Maker code options, most frequent first"""
        return facet_options(InventoryRepository._group_counts(db, Inventory.mk))

    @staticmethod
    def get_location_counts(db: Session) -> List[dict]:
        """Location options, most frequent first"""
        return facet_options(InventoryRepository._group_counts(db, Inventory.location))


def facet_options(counts: List[Tuple[str, int]], labels: Optional[Dict[str, str]] = None) -> List[dict]:
    """Turn (value, count) pairs into options sorted by count desc, then label"""
    options = [
        {"value": value, "label": (labels or {}).get(value, value), "count": int(count)}
        for value, count in counts
        if value
    ]
    options.sort(key=lambda o: (-o["count"], o["label"]))
    return options


def status_options(counts: Dict[str, int]) -> List[dict]:
    """Status counts as labelled facet options"""
    return facet_options(list(counts.items()), STATUS_LABELS)
