"""
Admin Desk - Administrative Task Approval Workflow and Audit Journal

The approval core of the staffing-agency admin console: a role-gated
state machine for administrative request tickets, paired with an
append-only activity log that is the only history and the only recovery
path for deleted records.

Operating principles:
- A status change and its audit entry commit together or not at all
- Audit entries are never edited; corrections are new entries
- Deleted records live on only as audit snapshots
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
