"""Role -> permission configuration.

The table is built once at startup and injected into the AccessGate.

Default Roles:
- SUPER_ADMIN: every permission, including audit:restore
- OWNER: task management without delete, plus system logs
- STAFF: create, read, update and process tasks
"""

from __future__ import annotations

from src.domain.models.actor import Role
from src.domain.services.access_gate import Permission, RolePermissionConfig

OWNER_PERMISSIONS: frozenset[str] = frozenset(
    {
        Permission.TASK_CREATE,
        Permission.TASK_READ,
        Permission.TASK_UPDATE,
        Permission.TASK_PROCESS,
        Permission.TASK_APPROVE,
        Permission.TASK_ASSIGN,
        Permission.SYSTEM_LOGS,
    }
)

STAFF_PERMISSIONS: frozenset[str] = frozenset(
    {
        Permission.TASK_CREATE,
        Permission.TASK_READ,
        Permission.TASK_UPDATE,
        Permission.TASK_PROCESS,
    }
)

DEFAULT_ROLE_PERMISSION_CONFIG = RolePermissionConfig(
    role_permissions={
        Role.SUPER_ADMIN: Permission.ALL,
        Role.OWNER: OWNER_PERMISSIONS,
        Role.STAFF: STAFF_PERMISSIONS,
    },
)
