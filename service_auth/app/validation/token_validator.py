"""
Token validation service for Auth service.
"""

import math
import time
from datetime import datetime
from typing import Optional, Union

import httpx

from shared.config import BaseConfig
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..errors import MalformedToken, VerificationError
from ..jwks.client import JWKSClient
from ..models import VerificationResult, VerifiedClaims
from ..tokens.decomposer import DEFAULT_MAX_TOKEN_LENGTH, decompose
from .claims import ClaimValidator
from .signature import SignatureVerifier

Timestamp = Union[int, float, datetime]


def _epoch_seconds(now: Optional[Timestamp]) -> float:
    if now is None:
        return time.time()
    if isinstance(now, datetime):
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        return now.timestamp()
    if isinstance(now, bool) or not isinstance(now, (int, float)):
        raise ValueError("now must be an epoch timestamp or an aware datetime")
    if isinstance(now, float) and not math.isfinite(now):
        raise ValueError("now must be a finite epoch timestamp or an aware datetime")
    return float(now)


class TokenValidator:
    """Verifies identity tokens end to end.

    Pipeline: decompose, claim policy, algorithm policy, key lookup,
    signature check, claims projection. The first failure wins and no claims
    are produced unless every step passed.
    """

    def __init__(
        self,
        jwks_client: JWKSClient,
        claim_validator: ClaimValidator,
        signature_verifier: SignatureVerifier,
        *,
        max_token_length: int = DEFAULT_MAX_TOKEN_LENGTH,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.jwks_client = jwks_client
        self.claim_validator = claim_validator
        self.signature_verifier = signature_verifier
        self.max_token_length = max_token_length
        self.metrics = metrics
        self.logger = get_logger("auth.validator")

    @classmethod
    def from_config(
        cls,
        config: BaseConfig,
        http_client: httpx.AsyncClient,
        metrics: Optional[MetricsCollector] = None,
    ) -> "TokenValidator":
        """Wire a validator from service configuration."""
        jwks_client = JWKSClient(
            config.jwks_url,
            http_client,
            cache_ttl=config.jwks_cache_ttl,
            default_ttl=config.jwks_default_ttl,
            timeout=config.jwks_http_timeout,
            stale_if_error=config.jwks_stale_if_error,
            metrics=metrics,
        )
        claim_validator = ClaimValidator(
            config.audience,
            config.issuers,
            leeway=config.clock_leeway,
            verify_not_before=config.verify_not_before,
        )
        return cls(
            jwks_client,
            claim_validator,
            SignatureVerifier(config.algorithms),
            max_token_length=config.max_token_length,
            metrics=metrics,
        )

    async def authenticate(self, token: str, now: Optional[Timestamp] = None) -> VerifiedClaims:
        """Verify a token and return its claims, raising VerificationError."""
        parts = decompose(token, self.max_token_length)

        self.claim_validator.validate(parts.payload, _epoch_seconds(now))
        self.signature_verifier.check_algorithm(parts.algorithm)

        key = await self.jwks_client.get_key(parts.kid)
        self.signature_verifier.verify(
            parts.signing_input,
            parts.signature_segment,
            key,
            parts.algorithm,
        )

        subject = parts.payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedToken("Token missing subject")
        return VerifiedClaims.from_payload(parts.payload)

    async def verify(self, token: str, now: Optional[Timestamp] = None) -> VerificationResult:
        """Verify a token, reporting rejection as a result instead of raising.

        ``now`` is checked before the token is looked at: a naive datetime or
        a value that is not a timestamp is a caller error and raises
        ValueError. Every problem with the token itself is returned.
        """
        moment = _epoch_seconds(now)
        try:
            claims = await self.authenticate(token, moment)
        except VerificationError as exc:
            self.logger.warning("Token rejected", code=exc.code, reason=exc.message)
            self._record(exc.code)
            return VerificationResult.failure(exc)

        self.logger.info("Token verified successfully", sub=claims.sub)
        self._record("valid")
        return VerificationResult.success(claims)

    def _record(self, status: str) -> None:
        if self.metrics:
            self.metrics.record_token_validation(status)
