"""
Domain layer - Pure business logic for Admin Desk.

This layer contains:
- models/: AdminTask, ApprovalRecord, Actor, AuditLogEntry, typed audit
  details and task payloads
- services/: state machine, access gate, approval router, audit diff
  synthesizer, deletion snapshots
- errors/: domain errors, all subclasses of AdminDeskError

IMPORT RULES:
CRITICAL: This layer must NOT import from application, infrastructure, api
or bootstrap. Only stdlib, typing and other domain imports are allowed.
"""

from src.domain.exceptions import AdminDeskError

__all__: list[str] = ["AdminDeskError"]
