"""
JWKS client package.

Retrieves the identity provider's published signing keys and serves lookups
by key id from a time-bounded cache.

Key points:
- The HTTP client is owned by the caller and passed in.
- Cache lifetime follows the provider's Cache-Control unless overridden.
- Concurrent cache misses share a single refresh.
- A kid missing from a fresh key set is reported, not refetched.
"""

from .client import JWKSClient

__all__ = ["JWKSClient"]
