"""
Data model for token verification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .errors import VerificationError, VerificationErrorKind


# Public parameters per JWK key type; private members ("d", "p", ...) are
# never carried over from the key set.
PUBLIC_KEY_PARAMS: Dict[str, Tuple[str, ...]] = {
    "RSA": ("n", "e"),
    "EC": ("crv", "x", "y"),
}


@dataclass(frozen=True)
class KeyRecord:
    """A single public signing key published by the identity provider."""

    kid: str
    kty: str
    alg: Optional[str] = None
    use: Optional[str] = None
    params: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_jwk(cls, data: Mapping[str, Any]) -> "KeyRecord":
        """Build a record from a JWKS entry, raising ValueError if unusable."""
        kid = data.get("kid")
        kty = data.get("kty")
        if not isinstance(kid, str) or not kid:
            raise ValueError("JWK missing 'kid'")
        if not isinstance(kty, str) or kty not in PUBLIC_KEY_PARAMS:
            raise ValueError(f"Unsupported key type: {kty!r}")

        params = {}
        for name in PUBLIC_KEY_PARAMS[kty]:
            value = data.get(name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"JWK '{kid}' missing parameter '{name}'")
            params[name] = value

        alg = data.get("alg")
        use = data.get("use")
        return cls(
            kid=kid,
            kty=kty,
            alg=alg if isinstance(alg, str) else None,
            use=use if isinstance(use, str) else None,
            params=params,
        )

    def to_jwk(self) -> Dict[str, str]:
        """Public JWK dict suitable for key construction."""
        jwk = {"kty": self.kty, "kid": self.kid}
        jwk.update(self.params)
        return jwk


@dataclass(frozen=True)
class KeySet:
    """Provider key set together with its cache lifetime."""

    keys: Tuple[KeyRecord, ...]
    fetched_at: float
    expires_at: float
    generation: int = 0

    def find(self, kid: str) -> Optional[KeyRecord]:
        for key in self.keys:
            if key.kid == kid:
                return key
        return None

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    def __len__(self) -> int:
        return len(self.keys)


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_bool(value: Any) -> Optional[bool]:
    # Some providers serialise email_verified as "true"/"false"
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return None


class VerifiedClaims(BaseModel):
    """Identity claims from a token whose signature has been verified."""

    model_config = ConfigDict(frozen=True)

    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    email_verified: Optional[bool] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "VerifiedClaims":
        return cls(
            sub=payload["sub"],
            email=_as_str(payload.get("email")),
            name=_as_str(payload.get("name")),
            picture=_as_str(payload.get("picture")),
            email_verified=_as_bool(payload.get("email_verified")),
        )


class VerificationResult(BaseModel):
    """Outcome of a single verification; carries claims or an error kind."""

    valid: bool
    claims: Optional[VerifiedClaims] = None
    error: Optional[VerificationErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, claims: VerifiedClaims) -> "VerificationResult":
        return cls(valid=True, claims=claims)

    @classmethod
    def failure(cls, exc: VerificationError) -> "VerificationResult":
        return cls(valid=False, error=exc.kind, message=exc.message)
