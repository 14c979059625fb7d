"""
Database models for the application.
"""

from app.core.database import Base
from app.models.inventory import Article, Inventory
from app.models.task import Task

__all__ = [
    "Base",
    "Article",
    "Inventory",
    "Task",
]
