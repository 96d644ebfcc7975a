"""
JWKS client for the identity provider's signing keys.
"""

import asyncio
import re
import time
from typing import Callable, List, Optional

import httpx

from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..errors import KeyFetchError, KeyNotFound
from ..models import KeyRecord, KeySet

_MAX_AGE_RE = re.compile(r"(?:^|,)\s*max-age\s*=\s*(\d+)", re.IGNORECASE)


class JWKSClient:
    """Client for fetching and caching the provider's JWKS."""

    def __init__(
        self,
        jwks_url: str,
        http_client: httpx.AsyncClient,
        *,
        cache_ttl: Optional[int] = None,
        default_ttl: int = 3600,
        timeout: float = 5.0,
        stale_if_error: bool = False,
        circuit_breaker: Optional[CircuitBreaker] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self.default_ttl = default_ttl
        self.timeout = timeout
        self.stale_if_error = stale_if_error
        self.logger = get_logger("auth.jwks")
        self.metrics = metrics

        self._http = http_client
        self._clock = clock
        self._key_set: Optional[KeySet] = None
        self._generation = 0
        self._lock = asyncio.Lock()
        self._refresh_attempts = 0
        self._refresh_error: Optional[KeyFetchError] = None

        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=30,
            name="jwks",
        )

    @property
    def caching_enabled(self) -> bool:
        return self.cache_ttl != 0

    async def _request(self) -> httpx.Response:
        response = await self._http.get(self.jwks_url, timeout=self.timeout)
        response.raise_for_status()
        return response

    async def _request_within_deadline(self) -> httpx.Response:
        # httpx timeouts apply per phase, so bound the whole exchange too
        return await asyncio.wait_for(self._request(), self.timeout)

    async def fetch(self) -> KeySet:
        """Fetch and parse the key set. Does not read or write the cache."""
        try:
            if self.metrics:
                with self.metrics.time_operation("jwks_refresh_duration_seconds"):
                    response = await self.circuit_breaker.call(self._request_within_deadline)
            else:
                response = await self.circuit_breaker.call(self._request_within_deadline)
        except CircuitBreakerOpenException as exc:
            self._record("circuit_open")
            raise KeyFetchError("JWKS endpoint temporarily unavailable") from exc
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            self._record("timeout")
            self.logger.error("JWKS fetch timed out", url=self.jwks_url, timeout=self.timeout)
            raise KeyFetchError("Timed out fetching signing keys") from exc
        except httpx.HTTPError as exc:
            self._record("error")
            self.logger.error("Failed to fetch JWKS", url=self.jwks_url, error=str(exc))
            raise KeyFetchError() from exc

        try:
            document = response.json()
        except ValueError as exc:
            self._record("malformed")
            raise KeyFetchError("JWKS response is not valid JSON") from exc

        entries = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(entries, list):
            self._record("malformed")
            raise KeyFetchError("JWKS response missing 'keys' array")

        records: List[KeyRecord] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(KeyRecord.from_jwk(entry))
            except ValueError as exc:
                self.logger.warning("Skipping unusable JWK", reason=str(exc))

        now = self._clock()
        ttl = self._resolve_ttl(response)
        self._generation += 1
        self._record("success")
        return KeySet(
            keys=tuple(records),
            fetched_at=now,
            expires_at=now + ttl,
            generation=self._generation,
        )

    def _resolve_ttl(self, response: httpx.Response) -> float:
        """Cache lifetime: configured TTL, else max-age minus Age, else default."""
        if self.cache_ttl is not None:
            return self.cache_ttl

        cache_control = response.headers.get("Cache-Control", "")
        if "no-store" in cache_control.lower():
            return 0
        match = _MAX_AGE_RE.search(cache_control)
        if not match:
            return self.default_ttl

        max_age = int(match.group(1))
        try:
            age = int(response.headers.get("Age", "0"))
        except ValueError:
            age = 0
        return max(0, max_age - age)

    @staticmethod
    def find(key_set: KeySet, kid: str) -> Optional[KeyRecord]:
        """Look up a key by id in an already fetched key set."""
        return key_set.find(kid)

    async def get_key_set(self) -> KeySet:
        """Return a fresh key set, refreshing at most once per expiry."""
        if not self.caching_enabled:
            return await self.fetch()

        current = self._key_set
        if current is not None and current.is_fresh(self._clock()):
            return current

        attempt = self._refresh_attempts
        async with self._lock:
            # Another waiter may have refreshed while we queued
            current = self._key_set
            if current is not None and current.is_fresh(self._clock()):
                return current
            if self._refresh_attempts != attempt and self._refresh_error is not None:
                return self._fall_back(current, self._refresh_error)

            self._refresh_attempts += 1
            try:
                key_set = await self.fetch()
            except KeyFetchError as exc:
                self._refresh_error = exc
                return self._fall_back(current, exc)

            self._refresh_error = None
            self._key_set = key_set
            self.logger.info(
                "JWKS refreshed successfully",
                keys_count=len(key_set),
                ttl_seconds=round(key_set.expires_at - key_set.fetched_at, 1),
                generation=key_set.generation,
            )
            return key_set

    def _fall_back(self, current: Optional[KeySet], error: KeyFetchError) -> KeySet:
        """Serve the stale key set if allowed, otherwise re-raise the refresh failure."""
        if self.stale_if_error and current is not None:
            self.logger.warning(
                "Using stale JWKS cache due to fetch failure",
                generation=current.generation,
            )
            return current
        raise error

    async def get_key(self, kid: str) -> KeyRecord:
        """Return the signing key for kid or raise KeyNotFound."""
        key_set = await self.get_key_set()
        key = self.find(key_set, kid)
        if key is None:
            self.logger.warning("Key not found", kid=kid, generation=key_set.generation)
            raise KeyNotFound(details={"kid": kid})
        return key

    async def check_health(self) -> str:
        """Return 'ok' if a key set can be obtained, otherwise 'error'."""
        try:
            await self.get_key_set()
            return "ok"
        except KeyFetchError as exc:
            self.logger.error("JWKS health check failed", error=exc.message)
            return "error"

    def clear_cache(self) -> None:
        """Drop the cached key set."""
        self._key_set = None
        self.logger.info("JWKS cache cleared")

    def _record(self, status: str) -> None:
        if self.metrics:
            self.metrics.record_jwks_refresh(status)
