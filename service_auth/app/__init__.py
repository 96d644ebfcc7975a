"""
Auth Service package.

Verifies OpenID Connect ID tokens (Google Sign-In by default) and exposes the
verified identity to a thin FastAPI transport.

- app.tokens: base64url codec and compact token decomposition.
- app.jwks: JWKS client for fetching and caching signing keys.
- app.validation: claim policy, signature checks and the verify() pipeline.
- app.main: Application entrypoint that wires routes and lifecycle.

Design notes:
- Module import performs no network calls; the HTTP client is created in the
  service lifespan and passed into the JWKS client.
- Use the shared/ utilities for logging, metrics, config, and errors.
- Stateless apart from the key set cache; no sessions, no persistence.
"""
