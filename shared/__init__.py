"""
Shared utilities for the Jira issues exporter.

This package aggregates the service building blocks:

- config: Exporter configuration via pydantic-settings
- logging: Structured logging with request and refresh correlation
- metrics: The exporter's own Prometheus metrics
- errors: Canonical error types and responses
- base_service: FastAPI application skeleton with probes and /metrics

Do not import from service_* packages into shared/.
"""
