"""
Filter, sort and pagination helpers shared by the table queries.

Column ids arriving from the table UI are normalized here, filter clause values
are coerced, and SQLAlchemy conditions are built for each operator.
"""

import math
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_, not_
from sqlalchemy.sql.elements import ColumnElement

from app.schemas.inventory import FilterClause, FilterOperator, JoinOperator, SortItem

# Column kinds
TEXT = "text"
NUMBER = "number"
DATE = "date"
BOOLEAN = "boolean"

# Column id (lowercased) -> canonical column name for inventory rows
INVENTORY_COLUMN_ALIASES: Dict[str, str] = {
    "mk": "mk",
    "märkeskod": "mk",
    "markeskod": "mk",
    "artikelnr": "artikelnr",
    "artikelnummer": "artikelnr",
    "location": "location",
    "lager": "location",
    "status": "status",
    "lagerplats": "lagerplats",
    "benamning": "benamning",
    "benämning": "benamning",
    "benamning2": "benamning2",
    "benämning2": "benamning2",
    "extrainfo": "extrainfo",
    "bild": "bild",
    "createdat": "created_at",
    "created_at": "created_at",
    "updatedat": "updated_at",
    "updated_at": "updated_at",
}

INVENTORY_COLUMN_KINDS: Dict[str, str] = {
    "mk": TEXT,
    "artikelnr": TEXT,
    "location": TEXT,
    "status": TEXT,
    "lagerplats": TEXT,
    "benamning": TEXT,
    "benamning2": TEXT,
    "extrainfo": TEXT,
    "bild": BOOLEAN,
    "created_at": DATE,
    "updated_at": DATE,
}

# Facet columns default to set membership when no operator is given
INVENTORY_FACET_COLUMNS = ("mk", "location", "status")

# Sortable inventory columns
INVENTORY_SORT_COLUMNS = (
    "mk", "artikelnr", "location", "status", "lagerplats", "benamning", "created_at", "updated_at",
)


def canonical_column(column_id: str, aliases: Dict[str, str]) -> Optional[str]:
    """Map a UI column id to a canonical column name, or None if unknown"""
    if not column_id:
        return None
    return aliases.get(column_id.strip().lower())


def sort_keys(
    sort: Sequence[SortItem],
    aliases: Dict[str, str],
    sortable: Sequence[str],
    default: Tuple[str, bool],
    fallback: str = "created_at",
) -> List[Tuple[str, bool]]:
    """
    Resolve sort items to (column, descending) pairs in caller order.

    Unknown ids sort by the fallback column; no items means the default key.
    """
    if not sort:
        return [default]

    keys = []
    for item in sort:
        column = canonical_column(item.id, aliases)
        if column not in sortable:
            column = fallback
        keys.append((column, item.desc))
    return keys


def page_count(total: int, per_page: int) -> int:
    return math.ceil(total / per_page) if per_page > 0 else 0


# ============================================================================
# Clause value coercion
# ============================================================================

def clause_values(value: Any) -> List[str]:
    """Coerce a clause value into a list of non-empty strings"""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v) != ""]
    text = str(value)
    return [text] if text != "" else []


def range_values(value: Any) -> Tuple[Optional[str], Optional[str]]:
    """Split a range clause value into (from, to); missing bounds are None"""
    if isinstance(value, (list, tuple)):
        bounds = [None if v in (None, "") else str(v) for v in value]
        bounds += [None, None]
        return bounds[0], bounds[1]
    text = clause_values(value)
    return (text[0], None) if text else (None, None)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse epoch milliseconds or an ISO date/datetime.

    Returns a naive UTC datetime, or None when the value is empty or unparseable.
    """
    if value is None or value == "":
        return None
    try:
        millis = float(value)
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).replace(tzinfo=None)
    except (TypeError, ValueError):
        pass
    except (OverflowError, OSError):
        # Outside the platform timestamp range
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            return None
    return parsed


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def parse_number(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "ja"):
        return True
    if text in ("false", "0", "no", "nej"):
        return False
    return None


def convert(value: Optional[str], kind: str) -> Any:
    """Convert one clause value to the column's Python type (None if it does not parse)"""
    if kind == DATE:
        return parse_date(value)
    if kind == NUMBER:
        return parse_number(value)
    if kind == BOOLEAN:
        return parse_bool(value)
    return value


def resolve_operator(clause: FilterClause, column: str, kind: str, facets: Sequence[str]) -> FilterOperator:
    """Operator given on the clause, or the default for the column"""
    if clause.operator is not None:
        return clause.operator
    if column in facets:
        return FilterOperator.IN_ARRAY
    if kind == DATE or (kind == NUMBER and isinstance(clause.value, (list, tuple))):
        return FilterOperator.IS_BETWEEN
    if kind in (NUMBER, BOOLEAN):
        return FilterOperator.EQ
    return FilterOperator.ILIKE


def date_range(value: Any) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Date range bounds widened to whole days"""
    start, end = range_values(value)
    start_dt, end_dt = parse_date(start), parse_date(end)
    return (
        start_of_day(start_dt) if start_dt else None,
        end_of_day(end_dt) if end_dt else None,
    )


# ============================================================================
# SQLAlchemy condition builders
# ============================================================================

LIKE_ESCAPE = "\\"

# Operators that only make sense on text columns
TEXT_OPERATORS = (FilterOperator.ILIKE, FilterOperator.NOT_ILIKE)


def like_pattern(text: str) -> str:
    """Substring pattern with LIKE wildcards in the text matched literally"""
    escaped = text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def contains(column: ColumnElement, text: str):
    """Case-insensitive substring match"""
    return column.ilike(like_pattern(text), escape=LIKE_ESCAPE)


def sql_condition(column: ColumnElement, clause: FilterClause, operator: FilterOperator, kind: str):
    """
    Build a WHERE condition for one clause, or None if the clause has no usable value.
    """
    if operator in TEXT_OPERATORS and kind != TEXT:
        return None
    if operator == FilterOperator.IS_EMPTY:
        if kind == TEXT:
            return or_(column.is_(None), column == "")
        return column.is_(None)
    if operator == FilterOperator.IS_NOT_EMPTY:
        if kind == TEXT:
            return and_(column.is_not(None), column != "")
        return column.is_not(None)

    if operator == FilterOperator.IS_BETWEEN:
        if kind == DATE:
            start, end = date_range(clause.value)
        else:
            raw_start, raw_end = range_values(clause.value)
            start, end = convert(raw_start, kind), convert(raw_end, kind)
        parts = []
        if start is not None:
            parts.append(column >= start)
        if end is not None:
            parts.append(column <= end)
        return and_(*parts) if parts else None

    values = [v for v in (convert(v, kind) for v in clause_values(clause.value)) if v is not None]
    if not values:
        return None

    if operator == FilterOperator.IN_ARRAY:
        return column.in_(values)
    if operator == FilterOperator.NOT_IN_ARRAY:
        return column.notin_(values)

    first = values[0]
    if operator == FilterOperator.ILIKE:
        return or_(*[contains(column, v) for v in values])
    if operator == FilterOperator.NOT_ILIKE:
        return and_(*[not_(contains(column, v)) for v in values])
    if operator == FilterOperator.EQ:
        if kind == DATE:
            return and_(column >= start_of_day(first), column <= end_of_day(first))
        return column.in_(values) if len(values) > 1 else column == first
    if operator == FilterOperator.NE:
        if kind == DATE:
            return or_(column < start_of_day(first), column > end_of_day(first))
        return column != first
    if operator == FilterOperator.LT:
        return column < first
    if operator == FilterOperator.LTE:
        return column <= first
    if operator == FilterOperator.GT:
        return column > first
    if operator == FilterOperator.GTE:
        return column >= first
    return None


def combine(conditions: List, join_operator: JoinOperator):
    """Join conditions with AND/OR; None when there is nothing to join"""
    conditions = [c for c in conditions if c is not None]
    if not conditions:
        return None
    if join_operator == JoinOperator.OR:
        return or_(*conditions)
    return and_(*conditions)
