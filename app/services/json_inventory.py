"""
In-memory inventory queries over the lager.json snapshot.
Same contract as InventoryRepository, evaluated with pandas masks.
"""

import operator as op
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from app.schemas.inventory import FilterClause, FilterOperator, GetInventoryParams, JoinOperator
from app.services.inventory_repository import facet_options
from app.services.query_filters import (
    DATE,
    INVENTORY_COLUMN_ALIASES,
    INVENTORY_COLUMN_KINDS,
    INVENTORY_FACET_COLUMNS,
    INVENTORY_SORT_COLUMNS,
    NUMBER,
    TEXT,
    TEXT_OPERATORS,
    canonical_column,
    clause_values,
    convert,
    date_range,
    end_of_day,
    page_count,
    range_values,
    resolve_operator,
    sort_keys,
    start_of_day,
)

COMPARATORS = {
    FilterOperator.LT: op.lt,
    FilterOperator.LTE: op.le,
    FilterOperator.GT: op.gt,
    FilterOperator.GTE: op.ge,
}

# Whole days inside the datetime64[ns] range
FRAME_DATE_MIN = datetime(1677, 9, 22)
FRAME_DATE_MAX = datetime(2262, 4, 11)


def _text(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str)


def _contains(series: pd.Series, needle: str) -> pd.Series:
    return _text(series).str.contains(needle, case=False, regex=False)


def _compare(series: pd.Series, compare, value) -> pd.Series:
    """Apply a comparison on non-null values only; nulls never match"""
    mask = pd.Series(False, index=series.index)
    present = series[series.notna()]
    if len(present):
        mask.loc[present.index] = compare(present, value).astype(bool)
    return mask


def _is_empty(series: pd.Series, kind: str) -> pd.Series:
    if kind == TEXT:
        return series.isna() | (_text(series) == "")
    return series.isna()


def _timestamp(value: datetime) -> pd.Timestamp:
    """Timestamp clamped to the range a datetime64[ns] column can hold"""
    return pd.Timestamp(min(max(value, FRAME_DATE_MIN), FRAME_DATE_MAX))


def _bound(value, kind: str):
    if value is None:
        return None
    return _timestamp(value) if kind == DATE else value


def clause_mask(series: pd.Series, clause: FilterClause, operator: FilterOperator, kind: str) -> Optional[pd.Series]:
    """Boolean mask for one clause, or None if the clause has no usable value"""
    if operator in TEXT_OPERATORS and kind != TEXT:
        return None
    if operator == FilterOperator.IS_EMPTY:
        return _is_empty(series, kind)
    if operator == FilterOperator.IS_NOT_EMPTY:
        return ~_is_empty(series, kind)

    if operator == FilterOperator.IS_BETWEEN:
        if kind == DATE:
            start, end = date_range(clause.value)
        else:
            raw_start, raw_end = range_values(clause.value)
            start, end = convert(raw_start, kind), convert(raw_end, kind)
        if start is None and end is None:
            return None
        values = pd.to_numeric(series, errors="coerce") if kind == NUMBER else series
        mask = values.notna()
        if start is not None:
            mask &= _compare(values, op.ge, _bound(start, kind))
        if end is not None:
            mask &= _compare(values, op.le, _bound(end, kind))
        return mask

    values = [v for v in (convert(v, kind) for v in clause_values(clause.value)) if v is not None]
    if not values:
        return None

    if operator == FilterOperator.IN_ARRAY:
        return series.isin(values) & series.notna()
    if operator == FilterOperator.NOT_IN_ARRAY:
        return series.notna() & ~series.isin(values)
    if operator == FilterOperator.ILIKE:
        mask = pd.Series(False, index=series.index)
        for value in values:
            mask |= _contains(series, str(value))
        return mask
    if operator == FilterOperator.NOT_ILIKE:
        mask = series.notna()
        for value in values:
            mask &= ~_contains(series, str(value))
        return mask

    first = values[0]
    if operator == FilterOperator.EQ:
        if kind == DATE:
            return (
                _compare(series, op.ge, _timestamp(start_of_day(first)))
                & _compare(series, op.le, _timestamp(end_of_day(first)))
            )
        return series.isin(values) & series.notna()
    if operator == FilterOperator.NE:
        if kind == DATE:
            return (
                _compare(series, op.lt, _timestamp(start_of_day(first)))
                | _compare(series, op.gt, _timestamp(end_of_day(first)))
            )
        return _compare(series, op.ne, first)
    if operator in COMPARATORS:
        return _compare(series, COMPARATORS[operator], _bound(first, kind))
    return None


def basic_mask(frame: pd.DataFrame, params: GetInventoryParams) -> pd.Series:
    """Free text plus facet filters, combined with AND"""
    mask = pd.Series(True, index=frame.index)
    if params.q:
        mask &= (
            _contains(frame["artikelnr"], params.q)
            | _contains(frame["benamning"], params.q)
            | _contains(frame["benamning2"], params.q)
        )
    if params.status:
        mask &= frame["status"].isin(params.status)
    if params.location:
        mask &= frame["location"].isin(params.location)
    if params.mk:
        mask &= frame["mk"].isin(params.mk)
    return mask


def advanced_mask(frame: pd.DataFrame, params: GetInventoryParams) -> Optional[pd.Series]:
    """Advanced clauses joined with the requested operator; None if no clause applies"""
    masks = []
    for clause in params.filters:
        column = canonical_column(clause.id, INVENTORY_COLUMN_ALIASES)
        if column is None:
            continue
        kind = INVENTORY_COLUMN_KINDS[column]
        operator = resolve_operator(clause, column, kind, INVENTORY_FACET_COLUMNS)
        mask = clause_mask(frame[column], clause, operator, kind)
        if mask is not None:
            masks.append(mask)

    if not masks:
        return None

    combined = masks[0]
    for mask in masks[1:]:
        combined = (combined | mask) if params.join_operator == JoinOperator.OR else (combined & mask)
    return combined


def sort_frame(frame: pd.DataFrame, params: GetInventoryParams) -> pd.DataFrame:
    """Stable multi-key sort: stable single-key passes from the last key to the first"""
    keys = sort_keys(
        params.sort,
        INVENTORY_COLUMN_ALIASES,
        INVENTORY_SORT_COLUMNS,
        default=("updated_at", True),
    )
    for column, desc in reversed(keys):
        frame = frame.sort_values(by=column, ascending=not desc, kind="stable", na_position="last")
    return frame


def to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return frame.astype(object).where(frame.notna(), None).to_dict("records")


class JsonInventoryRepository:
    """Inventory lookups over a snapshot DataFrame"""

    @staticmethod
    def filter_frame(frame: pd.DataFrame, params: GetInventoryParams) -> pd.DataFrame:
        mask = None
        if params.is_advanced:
            mask = advanced_mask(frame, params)
        if mask is None:
            mask = basic_mask(frame, params)
        return frame[mask]

    @staticmethod
    def get_page(frame: pd.DataFrame, params: GetInventoryParams) -> Tuple[List[Dict[str, Any]], int, int]:
        """
        Get one page of snapshot rows.
        Returns: (rows, total, page_count)
        """
        matched = sort_frame(JsonInventoryRepository.filter_frame(frame, params), params)
        total = len(matched)
        page = matched.iloc[params.offset:params.offset + params.per_page]
        return to_records(page), total, page_count(total, params.per_page)

    @staticmethod
    def get_by_id(frame: pd.DataFrame, row_id: str) -> Optional[Dict[str, Any]]:
        matched = frame[frame["id"] == row_id]
        if matched.empty:
            return None
        return to_records(matched.iloc[:1])[0]

    @staticmethod
    def _value_counts(frame: pd.DataFrame, column: str) -> List[Tuple[str, int]]:
        values = frame[column].dropna()
        values = values[values.astype(str) != ""]
        return [(value, int(count)) for value, count in values.value_counts().items()]

    @staticmethod
    def get_status_counts(frame: pd.DataFrame) -> Dict[str, int]:
        return dict(JsonInventoryRepository._value_counts(frame, "status"))

    @staticmethod
    def get_mk_counts(frame: pd.DataFrame) -> List[dict]:
        return facet_options(JsonInventoryRepository._value_counts(frame, "mk"))

    @staticmethod
    def get_location_counts(frame: pd.DataFrame) -> List[dict]:
        return facet_options(JsonInventoryRepository._value_counts(frame, "location"))
