"""
API routes for Admin Desk.

Available routers:
- admin_task: Task filing, editing, routing and decisions
- activity_log: Audit journal queries and restore
- health: Health check endpoint
- metrics: Prometheus scrape endpoint
"""

from src.api.routes.activity_log import router as activity_log_router
from src.api.routes.admin_task import router as admin_task_router
from src.api.routes.health import router as health_router
from src.api.routes.metrics import router as metrics_router

__all__: list[str] = [
    "activity_log_router",
    "admin_task_router",
    "health_router",
    "metrics_router",
]
