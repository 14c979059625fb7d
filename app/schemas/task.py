"""
Pydantic schemas for the tasks table.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.schemas.inventory import AdvancedQueryParams


class GetTasksParams(AdvancedQueryParams):
    """Input for one page of the tasks table"""
    title: str = Field("", description="Case-insensitive match on title")
    status: List[str] = Field(default_factory=list)
    priority: List[str] = Field(default_factory=list)
    estimated_hours: List[Optional[float]] = Field(
        default_factory=list, alias="estimatedHours", description="[min, max]"
    )
    created_at: List[Optional[str]] = Field(
        default_factory=list, alias="createdAt", description="[from, to] as epoch ms or ISO dates"
    )


class TaskResponse(BaseModel):
    """Task row"""
    id: str
    code: str
    title: Optional[str] = None
    status: str
    label: str
    priority: str
    estimated_hours: float
    archived: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskPage(BaseModel):
    """One page of tasks"""
    data: List[TaskResponse] = Field(default_factory=list)
    page_count: int = 0
    total: int = 0


class EstimatedHoursRange(BaseModel):
    """Smallest and largest estimated hours over all tasks"""
    min: float = 0
    max: float = 0
