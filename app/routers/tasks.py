"""
API Router for the tasks table.
"""

from typing import Dict, List, Optional
from fastapi import APIRouter, Query
from pydantic import ValidationError

from app.routers.inventory import parse_json_list, split_values, validation_failed
from app.schemas.task import EstimatedHoursRange, GetTasksParams, TaskPage
from app.services import task_service

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=TaskPage)
def list_tasks(
    page: int = Query(1),
    per_page: int = Query(10, alias="perPage"),
    sort: Optional[str] = Query(None, description="JSON array of {id, desc}"),
    title: str = Query(""),
    status_filter: Optional[List[str]] = Query(None, alias="status"),
    priority: Optional[List[str]] = Query(None),
    estimated_hours: Optional[str] = Query(None, alias="estimatedHours", description="min,max"),
    created_at: Optional[str] = Query(None, alias="createdAt", description="from,to (epoch ms or ISO)"),
    filter_flag: Optional[str] = Query(None, alias="filterFlag"),
    filters: Optional[str] = Query(None),
    join_operator: str = Query("and", alias="joinOperator"),
):
    """Get one page of tasks"""
    try:
        params = GetTasksParams(
            page=page,
            per_page=per_page,
            sort=parse_json_list(sort, "sort"),
            title=title,
            status=split_values(status_filter),
            priority=split_values(priority),
            estimated_hours=[v or None for v in (estimated_hours or "").split(",")] if estimated_hours else [],
            created_at=[v or None for v in (created_at or "").split(",")] if created_at else [],
            filter_flag=filter_flag or None,
            filters=parse_json_list(filters, "filters"),
            join_operator=join_operator,
        )
    except ValidationError as e:
        raise validation_failed(e)

    return task_service.get_tasks(params)


@router.get("/facets/status", response_model=Dict[str, int])
def task_status_counts():
    """Number of tasks per status"""
    return task_service.get_task_status_counts()


@router.get("/facets/priority", response_model=Dict[str, int])
def task_priority_counts():
    """Number of tasks per priority"""
    return task_service.get_task_priority_counts()


@router.get("/estimated-hours-range", response_model=EstimatedHoursRange)
def estimated_hours_range():
    """Smallest and largest estimated hours"""
    return task_service.get_estimated_hours_range()
