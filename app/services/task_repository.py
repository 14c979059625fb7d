"""
Repository for the tasks table.
"""

from typing import Dict, List, Tuple
from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from app.models.task import Task, TASK_PRIORITIES, TASK_STATUSES
from app.schemas.task import GetTasksParams
from app.services.query_filters import (
    BOOLEAN,
    DATE,
    NUMBER,
    TEXT,
    canonical_column,
    combine,
    contains,
    end_of_day,
    page_count,
    parse_date,
    resolve_operator,
    sort_keys,
    sql_condition,
    start_of_day,
)

TASK_COLUMN_ALIASES: Dict[str, str] = {
    "code": "code",
    "title": "title",
    "status": "status",
    "label": "label",
    "priority": "priority",
    "estimatedhours": "estimated_hours",
    "estimated_hours": "estimated_hours",
    "archived": "archived",
    "createdat": "created_at",
    "created_at": "created_at",
    "updatedat": "updated_at",
    "updated_at": "updated_at",
}

TASK_COLUMN_KINDS: Dict[str, str] = {
    "code": TEXT,
    "title": TEXT,
    "status": TEXT,
    "label": TEXT,
    "priority": TEXT,
    "estimated_hours": NUMBER,
    "archived": BOOLEAN,
    "created_at": DATE,
    "updated_at": DATE,
}

TASK_FACET_COLUMNS = ("status", "label", "priority")

TASK_COLUMNS = {
    "code": Task.code,
    "title": Task.title,
    "status": Task.status,
    "label": Task.label,
    "priority": Task.priority,
    "estimated_hours": Task.estimated_hours,
    "archived": Task.archived,
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
}


class TaskRepository:
    """Repository for Task queries"""

    @staticmethod
    def build_basic_where(params: GetTasksParams):
        conditions = []
        if params.title:
            conditions.append(contains(Task.title, params.title))
        if params.status:
            conditions.append(Task.status.in_(params.status))
        if params.priority:
            conditions.append(Task.priority.in_(params.priority))

        # Zero bounds mean "no bound"
        hours = list(params.estimated_hours) + [None, None]
        if hours[0]:
            conditions.append(Task.estimated_hours >= hours[0])
        if hours[1]:
            conditions.append(Task.estimated_hours <= hours[1])

        created = list(params.created_at) + [None, None]
        created_from, created_to = parse_date(created[0]), parse_date(created[1])
        if created_from:
            conditions.append(Task.created_at >= start_of_day(created_from))
        if created_to:
            conditions.append(Task.created_at <= end_of_day(created_to))

        return and_(*conditions) if conditions else None

    @staticmethod
    def build_advanced_where(params: GetTasksParams):
        conditions = []
        for clause in params.filters:
            column = canonical_column(clause.id, TASK_COLUMN_ALIASES)
            if column is None:
                continue
            kind = TASK_COLUMN_KINDS[column]
            operator = resolve_operator(clause, column, kind, TASK_FACET_COLUMNS)
            conditions.append(sql_condition(TASK_COLUMNS[column], clause, operator, kind))
        return combine(conditions, params.join_operator)

    @staticmethod
    def build_where(params: GetTasksParams):
        if params.is_advanced:
            return TaskRepository.build_advanced_where(params)
        return TaskRepository.build_basic_where(params)

    @staticmethod
    def get_page(db: Session, params: GetTasksParams) -> Tuple[List[Task], int, int]:
        """
        Get one page of tasks.
        Returns: (tasks, total, page_count)
        """
        query = db.query(Task)
        where = TaskRepository.build_where(params)
        if where is not None:
            query = query.filter(where)

        total = query.count()

        keys = sort_keys(
            params.sort,
            TASK_COLUMN_ALIASES,
            tuple(TASK_COLUMNS),
            default=("created_at", False),
        )
        order_by = [
            TASK_COLUMNS[column].desc() if desc else TASK_COLUMNS[column].asc()
            for column, desc in keys
        ]
        order_by.append(Task.id.asc())

        tasks = query.order_by(*order_by).offset(params.offset).limit(params.per_page).all()
        return tasks, total, page_count(total, params.per_page)

    @staticmethod
    def _grouped(db: Session, column, known: List[str]) -> Dict[str, int]:
        counts = {value: 0 for value in known}
        results = db.query(
            column,
            func.count(Task.id).label('count')
        ).group_by(column).having(func.count(Task.id) > 0).all()
        for r in results:
            counts[r[0]] = r.count
        return counts

    @staticmethod
    def get_status_counts(db: Session) -> Dict[str, int]:
        """Tasks per status; every known status is present"""
        return TaskRepository._grouped(db, Task.status, TASK_STATUSES)

    @staticmethod
    def get_priority_counts(db: Session) -> Dict[str, int]:
        """Tasks per priority; every known priority is present"""
        return TaskRepository._grouped(db, Task.priority, TASK_PRIORITIES)

    @staticmethod
    def get_estimated_hours_range(db: Session) -> Dict[str, float]:
        result = db.query(
            func.min(Task.estimated_hours),
            func.max(Task.estimated_hours)
        ).one()
        return {"min": result[0] or 0, "max": result[1] or 0}
