from datetime import datetime

import pytest

from app.models.task import Task
from app.schemas.task import GetTasksParams
from app.services import task_service
from app.services.task_repository import TaskRepository


@pytest.fixture
def tasks_db(db_session):
    db_session.add_all([
        Task(id="t1", code="T-1", title="Fix search box", status="todo", label="bug", priority="high",
             estimated_hours=2, created_at=datetime(2024, 1, 1, 9)),
        Task(id="t2", code="T-2", title="Add MK filter", status="done", label="feature", priority="low",
             estimated_hours=8, created_at=datetime(2024, 1, 2, 9)),
        Task(id="t3", code="T-3", title="Document sync", status="todo", label="documentation", priority="medium",
             estimated_hours=5, created_at=datetime(2024, 1, 3, 9)),
    ])
    db_session.commit()
    return db_session


def codes(tasks):
    return [t.code for t in tasks]


def test_default_sort_is_created_at_ascending(tasks_db):
    tasks, total, pages = TaskRepository.get_page(tasks_db, GetTasksParams())
    assert codes(tasks) == ["T-1", "T-2", "T-3"]
    assert (total, pages) == (3, 1)


def test_simple_filters(tasks_db):
    tasks, _, _ = TaskRepository.get_page(tasks_db, GetTasksParams(title="FIX"))
    assert codes(tasks) == ["T-1"]

    tasks, _, _ = TaskRepository.get_page(tasks_db, GetTasksParams(status=["todo"], priority=["medium"]))
    assert codes(tasks) == ["T-3"]

    tasks, _, _ = TaskRepository.get_page(tasks_db, GetTasksParams(estimated_hours=[3, 8]))
    assert codes(tasks) == ["T-2", "T-3"]

    tasks, _, _ = TaskRepository.get_page(tasks_db, GetTasksParams(created_at=["2024-01-02", "2024-01-02"]))
    assert codes(tasks) == ["T-2"]


def test_advanced_filters(tasks_db):
    tasks, _, _ = TaskRepository.get_page(tasks_db, GetTasksParams(
        filter_flag="advancedFilters",
        filters=[
            {"id": "priority", "value": ["high"]},
            {"id": "estimatedHours", "operator": "gte", "value": "8"},
        ],
        join_operator="or",
    ))
    assert codes(tasks) == ["T-1", "T-2"]


def test_sort_and_paginate(tasks_db):
    tasks, total, pages = TaskRepository.get_page(tasks_db, GetTasksParams(
        sort=[{"id": "estimatedHours", "desc": True}], per_page=2, page=1,
    ))
    assert codes(tasks) == ["T-2", "T-3"]
    assert (total, pages) == (3, 2)


def test_counts_include_every_known_value(tasks_db):
    assert TaskRepository.get_status_counts(tasks_db) == {
        "todo": 2, "in-progress": 0, "done": 1, "canceled": 0,
    }
    assert TaskRepository.get_priority_counts(tasks_db) == {"low": 1, "medium": 1, "high": 1}
    assert TaskRepository.get_estimated_hours_range(tasks_db) == {"min": 2, "max": 8}


def test_task_service(tasks_db):
    page = task_service.get_tasks(GetTasksParams(status=["todo"]))
    assert page.total == 2
    assert task_service.get_estimated_hours_range().max == 8


def test_unrepresentable_created_at_bounds_are_ignored(tasks_db):
    tasks, total, _ = TaskRepository.get_page(tasks_db, GetTasksParams(created_at=["inf", "1e22"]))
    assert total == 3

    tasks, total, _ = TaskRepository.get_page(tasks_db, GetTasksParams(
        filter_flag="advancedFilters",
        filters=[{"id": "createdAt", "operator": "isBetween", "value": ["-1e22", None]}],
    ))
    assert total == 3


def test_failed_task_counts_are_not_cached(monkeypatch, tasks_db):
    from sqlalchemy.exc import OperationalError

    from app.core.config import settings

    monkeypatch.setattr(settings, "TASK_FACET_CACHE_TTL", 3600)
    real = TaskRepository.get_status_counts

    def broken(db):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(TaskRepository, "get_status_counts", staticmethod(broken))
    assert task_service.get_task_status_counts()["todo"] == 0

    monkeypatch.setattr(TaskRepository, "get_status_counts", staticmethod(real))
    assert task_service.get_task_status_counts()["todo"] == 2
