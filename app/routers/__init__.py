"""
API routers for the application.
"""

from fastapi import APIRouter
from app.routers import inventory, tasks

api_router = APIRouter()

# Include routers
api_router.include_router(inventory.router)  # Inventory lookup table
api_router.include_router(tasks.router)  # Tasks demo table

__all__ = ["api_router", "inventory", "tasks"]
