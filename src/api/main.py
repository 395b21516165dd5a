"""FastAPI application entry point for Admin Desk."""

import os

from fastapi import FastAPI

from src.api.middleware.logging_middleware import LoggingMiddleware
from src.api.routes.activity_log import router as activity_log_router
from src.api.routes.admin_task import router as admin_task_router
from src.api.routes.health import router as health_router
from src.api.routes.metrics import router as metrics_router
from src.api.startup import configure_logging, lifespan

configure_logging()

app = FastAPI(
    title="Admin Desk API",
    description="Admin task approval workflow with audit journal",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(admin_task_router)
app.include_router(activity_log_router)


def run() -> None:
    """Serve the API with uvicorn (HOST/PORT from the environment)."""
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
    )
