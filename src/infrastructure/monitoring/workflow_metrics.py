"""Admin task workflow metrics for Prometheus exposition.

Counters:
- admin_task_transitions_total: committed state transitions
- admin_task_conflicts_total: rejected compare-and-swap writes
- audit_log_entries_total: committed audit entries
- audit_restores_total: restore attempts by outcome
"""

from __future__ import annotations

import os
import threading

from prometheus_client import CollectorRegistry, Counter

from src.application.ports.workflow_metrics import WorkflowMetricsProtocol

# Thread lock for singleton initialization
_metrics_lock = threading.Lock()


class WorkflowMetricsCollector(WorkflowMetricsProtocol):
    """Collects admin task workflow metrics for Prometheus.

    Attributes:
        transitions_total: Counter of transitions by action and statuses.
        conflicts_total: Counter of version conflicts by operation.
        audit_entries_total: Counter of audit entries by action and entity.
        restores_total: Counter of restores by entity and outcome.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize workflow metrics collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")
        self._service_name = os.environ.get("SERVICE_NAME", "admin-desk-api")

        self.transitions_total = Counter(
            name="admin_task_transitions_total",
            documentation="Committed admin task state transitions",
            labelnames=["action", "from_status", "to_status", "service", "environment"],
            registry=self._registry,
        )
        self.conflicts_total = Counter(
            name="admin_task_conflicts_total",
            documentation="Admin task writes rejected by the version check",
            labelnames=["operation", "service", "environment"],
            registry=self._registry,
        )
        self.audit_entries_total = Counter(
            name="audit_log_entries_total",
            documentation="Committed audit log entries",
            labelnames=["action", "entity", "service", "environment"],
            registry=self._registry,
        )
        self.restores_total = Counter(
            name="audit_restores_total",
            documentation="Restore attempts from audit log snapshots",
            labelnames=["entity", "outcome", "service", "environment"],
            registry=self._registry,
        )

    def _common(self) -> dict[str, str]:
        return {"service": self._service_name, "environment": self._environment}

    def record_transition(self, action: str, from_status: str, to_status: str) -> None:
        self.transitions_total.labels(
            action=action, from_status=from_status, to_status=to_status, **self._common()
        ).inc()

    def record_conflict(self, operation: str) -> None:
        self.conflicts_total.labels(operation=operation, **self._common()).inc()

    def record_audit_entry(self, action: str, entity: str) -> None:
        self.audit_entries_total.labels(
            action=action, entity=entity, **self._common()
        ).inc()

    def record_restore(self, entity: str, success: bool) -> None:
        self.restores_total.labels(
            entity=entity,
            outcome="success" if success else "failure",
            **self._common(),
        ).inc()

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry."""
        return self._registry


# Singleton instance
_workflow_metrics_collector: WorkflowMetricsCollector | None = None


def get_workflow_metrics_collector() -> WorkflowMetricsCollector:
    """Get the singleton WorkflowMetricsCollector (thread-safe)."""
    global _workflow_metrics_collector
    if _workflow_metrics_collector is None:
        with _metrics_lock:
            if _workflow_metrics_collector is None:
                _workflow_metrics_collector = WorkflowMetricsCollector()
    return _workflow_metrics_collector


def reset_workflow_metrics_collector() -> None:
    """Reset the singleton collector (for testing only)."""
    global _workflow_metrics_collector
    with _metrics_lock:
        _workflow_metrics_collector = None
