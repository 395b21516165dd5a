"""Prometheus scrape endpoint for the workflow counters."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.infrastructure.monitoring.workflow_metrics import (
    get_workflow_metrics_collector,
)

router = APIRouter(prefix="/v1", tags=["metrics"])


@router.get(
    "/metrics",
    summary="Workflow metrics",
    description=(
        "Transition, conflict, audit write and restore counters in the "
        "Prometheus text format."
    ),
    response_class=Response,
    responses={200: {"content": {CONTENT_TYPE_LATEST: {}}}},
)
async def get_metrics() -> Response:
    registry = get_workflow_metrics_collector().get_registry()
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
