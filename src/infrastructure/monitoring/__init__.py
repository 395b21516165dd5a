"""Infrastructure monitoring components.

Prometheus counters for the admin task workflow.
"""

from src.infrastructure.monitoring.workflow_metrics import (
    WorkflowMetricsCollector,
    get_workflow_metrics_collector,
    reset_workflow_metrics_collector,
)

__all__: list[str] = [
    "WorkflowMetricsCollector",
    "get_workflow_metrics_collector",
    "reset_workflow_metrics_collector",
]
