"""
Claim policy checks on an unverified payload.
"""

import math
from typing import Any, Iterable, Mapping

from ..errors import (
    ClaimAudienceMismatch,
    ClaimExpired,
    ClaimIssuerMismatch,
    ClaimNotYetValid,
)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    # NaN and Infinity parse from JSON but are never usable timestamps
    return isinstance(value, float) and math.isfinite(value)


class ClaimValidator:
    """Enforces expiry, not-before, audience and issuer policy.

    Checks run in a fixed order and the first violation is raised:
    exp, nbf (when enabled), aud, iss.
    """

    def __init__(
        self,
        audience: str,
        issuers: Iterable[str],
        *,
        leeway: int = 0,
        verify_not_before: bool = True,
    ) -> None:
        if not audience:
            raise ValueError("An expected audience is required")
        self.audience = audience
        self.issuers = frozenset(issuers)
        if not self.issuers:
            raise ValueError("At least one accepted issuer is required")
        self.leeway = leeway
        self.verify_not_before = verify_not_before

    def validate(self, payload: Mapping[str, Any], now: float) -> None:
        self._check_expiry(payload, now)
        if self.verify_not_before:
            self._check_not_before(payload, now)
        self._check_audience(payload)
        self._check_issuer(payload)

    def _check_expiry(self, payload: Mapping[str, Any], now: float) -> None:
        exp = payload.get("exp")
        if not _is_number(exp):
            raise ClaimExpired("Token has no valid expiration")
        if exp < now - self.leeway:
            raise ClaimExpired(details={"exp": exp})

    def _check_not_before(self, payload: Mapping[str, Any], now: float) -> None:
        if "nbf" not in payload:
            return
        nbf = payload["nbf"]
        if not _is_number(nbf):
            raise ClaimNotYetValid("Token has an invalid not-before time")
        if nbf > now + self.leeway:
            raise ClaimNotYetValid(details={"nbf": nbf})

    def _check_audience(self, payload: Mapping[str, Any]) -> None:
        aud = payload.get("aud")
        if isinstance(aud, str):
            matched = aud == self.audience
        elif isinstance(aud, list):
            matched = any(isinstance(item, str) and item == self.audience for item in aud)
        else:
            matched = False
        if not matched:
            raise ClaimAudienceMismatch()

    def _check_issuer(self, payload: Mapping[str, Any]) -> None:
        iss = payload.get("iss")
        if not isinstance(iss, str) or iss not in self.issuers:
            raise ClaimIssuerMismatch()
