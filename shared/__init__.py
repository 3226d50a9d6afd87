"""
Shared utilities for Cacheman.

This package aggregates the ambient building blocks used by the cache core
and its engines:

- config: Construction options via pydantic-settings
- logging: Structured logging via structlog
- errors: Canonical error types and responses

Do not import from the cacheman package into shared/.
"""
