"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use providers from taskdesk.api.v1.dependencies.
"""

from fastapi import APIRouter

from taskdesk.api.v1.endpoints import (
    employees,
    health,
    modification_requests,
    tasks,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(
    modification_requests.router,
    prefix="/modification-requests",
    tags=["modification-requests"],
)
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
