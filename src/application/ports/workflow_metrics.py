"""Workflow metrics port.

Counters emitted by the task store, audit logger and restore engine.
"""

from __future__ import annotations

from typing import Protocol


class WorkflowMetricsProtocol(Protocol):
    """Metrics sink for admin task workflow events."""

    def record_transition(self, action: str, from_status: str, to_status: str) -> None:
        """Count a committed state transition."""
        ...

    def record_conflict(self, operation: str) -> None:
        """Count a rejected compare-and-swap."""
        ...

    def record_audit_entry(self, action: str, entity: str) -> None:
        """Count a committed audit log entry."""
        ...

    def record_restore(self, entity: str, success: bool) -> None:
        """Count a restore attempt."""
        ...
