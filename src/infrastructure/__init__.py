"""
Infrastructure layer - External adapters for Admin Desk.

This layer contains:
- adapters/persistence/: PostgreSQL repositories (SQLAlchemy async + asyncpg)
- stubs/: in-memory repositories for development and testing
- monitoring/: Prometheus workflow metrics
- observability/: structlog configuration and per-request context

IMPORT RULES:
- CAN import from: domain, application
- CANNOT import from: api
- Implements ports defined in application layer
"""
