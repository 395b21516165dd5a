"""
Application layer - Use cases and orchestration for Admin Desk.

This layer contains:
- services/: TaskStoreService, AuditLoggerService, RestoreEngine and the
  shared LoggingMixin
- ports/: Protocols the infrastructure implements (task repository,
  audit log repository, workflow metrics)

IMPORT RULES:
- CAN import from: domain, config
- CANNOT import from: infrastructure (observability excepted), api
"""
