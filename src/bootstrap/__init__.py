"""Composition root for wiring dependencies.

This package centralizes infrastructure-aware wiring so API and application
layers can depend on ports without importing infrastructure directly.
Repositories are PostgreSQL-backed when DATABASE_URL is set, in-memory
stubs otherwise.
"""
