"""
Task query facade with caching and empty-result fallbacks.
"""

import logging
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError

from app.core.cache import cached
from app.core.config import settings
from app.core.database import session_scope
from app.models.task import TASK_PRIORITIES, TASK_STATUSES
from app.schemas.task import EstimatedHoursRange, GetTasksParams, TaskPage, TaskResponse
from app.services.task_repository import TaskRepository

logger = logging.getLogger(__name__)


def _query_ttl() -> float:
    return settings.QUERY_CACHE_TTL


def _facet_ttl() -> float:
    return settings.TASK_FACET_CACHE_TTL


@cached("tasks", ttl=_query_ttl)
def _load_tasks(params: GetTasksParams) -> TaskPage:
    with session_scope() as db:
        tasks, total, pages = TaskRepository.get_page(db, params)
        data = [TaskResponse.model_validate(task) for task in tasks]
    return TaskPage(data=data, page_count=pages, total=total)


@cached("task-status-counts", ttl=_facet_ttl)
def _load_status_counts() -> Dict[str, int]:
    with session_scope() as db:
        return TaskRepository.get_status_counts(db)


@cached("task-priority-counts", ttl=_facet_ttl)
def _load_priority_counts() -> Dict[str, int]:
    with session_scope() as db:
        return TaskRepository.get_priority_counts(db)


@cached("estimated-hours-range", ttl=_facet_ttl)
def _load_estimated_hours_range() -> EstimatedHoursRange:
    with session_scope() as db:
        return EstimatedHoursRange(**TaskRepository.get_estimated_hours_range(db))


def get_tasks(params: GetTasksParams) -> TaskPage:
    try:
        return _load_tasks(params)
    except SQLAlchemyError:
        logger.exception("Task query failed; returning empty page")
        return TaskPage(data=[], page_count=0, total=0)


def get_task_status_counts() -> Dict[str, int]:
    try:
        return _load_status_counts()
    except SQLAlchemyError:
        logger.exception("Task status count query failed")
        return {status: 0 for status in TASK_STATUSES}


def get_task_priority_counts() -> Dict[str, int]:
    try:
        return _load_priority_counts()
    except SQLAlchemyError:
        logger.exception("Task priority count query failed")
        return {priority: 0 for priority in TASK_PRIORITIES}


def get_estimated_hours_range() -> EstimatedHoursRange:
    try:
        return _load_estimated_hours_range()
    except SQLAlchemyError:
        logger.exception("Estimated hours range query failed")
        return EstimatedHoursRange(min=0, max=0)
