"""Configuration module for Admin Desk.

Available Configurations:
- RolePermissionConfig: Role -> permission table for the AccessGate
- ApprovalRouteConfig: Task type -> approval route table and default assignees
- WorkflowConfig: Listing and task numbering tunables
"""

from src.config.access_config import DEFAULT_ROLE_PERMISSION_CONFIG
from src.config.approval_route_config import (
    DEFAULT_APPROVAL_ROUTE_CONFIG,
    approval_route_config_from_environment,
)
from src.config.workflow_config import (
    DEFAULT_WORKFLOW_CONFIG,
    TEST_WORKFLOW_CONFIG,
    WorkflowConfig,
)

__all__ = [
    "DEFAULT_APPROVAL_ROUTE_CONFIG",
    "DEFAULT_ROLE_PERMISSION_CONFIG",
    "DEFAULT_WORKFLOW_CONFIG",
    "TEST_WORKFLOW_CONFIG",
    "WorkflowConfig",
    "approval_route_config_from_environment",
]
