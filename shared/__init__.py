"""
Shared utilities for the ID token verification service.

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- circuit_breaker: Resilient external call protection
- base_service: FastAPI service skeleton (health, metrics, CORS, errors)

Do not import from service_* packages into shared/.
"""
