"""
API layer - FastAPI routes and HTTP concerns for Admin Desk.

This layer contains:
- routes/: /v1/admin-tasks, /v1/activity-logs, /v1/health, /v1/metrics
- models/: Pydantic request/response DTOs
- auth/: actor extraction from identity provider headers
- dependencies/: Depends wrappers over src.bootstrap
- middleware/: request context binding and access logging
- startup.py / main.py: logging setup, lifespan hooks and app assembly

IMPORT RULES:
- CAN import from: application, domain, bootstrap
- CAN import from infrastructure: stubs, observability, monitoring
- CANNOT import from: infrastructure.adapters
- Uses dependency injection for infrastructure adapters
"""

__all__: list[str] = []
