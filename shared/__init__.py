"""
Shared utilities for the zkLogin verifier.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and responses
- circuit_breaker: Resilient external call protection
- base_service: FastAPI application skeleton (health, metrics, errors)
- test_helpers: Factories for provider keys, JWT fragments and RPC replies

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
