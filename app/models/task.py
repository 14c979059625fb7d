"""
Task model.
Demo dataset for the data table (tasks with status, label and priority).
"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime
from sqlalchemy.sql import func
from app.core.database import Base

TASK_STATUSES = ["todo", "in-progress", "done", "canceled"]
TASK_LABELS = ["bug", "feature", "enhancement", "documentation"]
TASK_PRIORITIES = ["low", "medium", "high"]


class Task(Base):
    """Task model"""
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    code = Column(String(128), nullable=False, unique=True)
    title = Column(String(128), nullable=True)
    status = Column(String(30), nullable=False, default="todo", index=True)
    label = Column(String(30), nullable=False, default="bug")
    priority = Column(String(30), nullable=False, default="low", index=True)
    estimated_hours = Column(Float, nullable=False, default=0)
    archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Task(code='{self.code}', status='{self.status}')>"
