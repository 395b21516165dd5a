"""Logging convention shared by the application services.

Every service logs through a structlog logger bound to its class name and
a component label. Each public operation derives a child logger carrying
the operation name plus whatever identifiers it acts on; the request
context (correlation id, acting user) is stamped on by the processor
chain configured in src.infrastructure.observability.

    class TaskStoreService(LoggingMixin):
        def __init__(self, ...) -> None:
            ...
            self._init_logger(component="task_store")

        async def delete_task(self, actor, task_id):
            log = self._log_operation("delete_task", actor_id=actor.id, task_id=task_id)
            log.info("task_deleted")
"""

import structlog


class LoggingMixin:
    """Gives a service ``self._log`` and ``_log_operation``."""

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "workflow") -> None:
        """Bind the service logger. Call at the end of ``__init__``."""
        self._log = structlog.get_logger().bind(
            service=type(self).__name__,
            component=component,
        )

    def _log_operation(self, operation: str, **context: object) -> structlog.BoundLogger:
        """Logger for one call of ``operation`` with ``context`` bound."""
        return self._log.bind(operation=operation, **context)
