"""
Asymmetric signature verification against a provider key.
"""

from typing import Dict, Iterable

from jose import jwk

from shared.logging import get_logger
from ..errors import InvalidSignature, MalformedEncoding, UnsupportedAlgorithm
from ..models import KeyRecord
from ..tokens import codec

# Algorithm -> key type it must be verified with
ASYMMETRIC_ALGORITHMS: Dict[str, str] = {
    "RS256": "RSA",
    "RS384": "RSA",
    "RS512": "RSA",
    "ES256": "EC",
    "ES384": "EC",
    "ES512": "EC",
}


class SignatureVerifier:
    """Verifies token signatures for an explicit set of algorithms.

    The header's ``alg`` only ever selects among algorithms this verifier was
    constructed with; symmetric algorithms and ``none`` cannot be configured.
    """

    def __init__(self, algorithms: Iterable[str] = ("RS256",)) -> None:
        allowed = frozenset(algorithms)
        if not allowed:
            raise ValueError("At least one signing algorithm must be allowed")
        unsupported = allowed - ASYMMETRIC_ALGORITHMS.keys()
        if unsupported:
            raise ValueError(f"Unsupported signing algorithms: {sorted(unsupported)}")
        self.algorithms = allowed
        self.logger = get_logger("auth.signature")

    def check_algorithm(self, algorithm: str) -> None:
        if algorithm not in self.algorithms:
            raise UnsupportedAlgorithm(details={"alg": algorithm if isinstance(algorithm, str) else None})

    def verify(self, signing_input: bytes, signature_segment: str, key: KeyRecord, algorithm: str) -> None:
        """Raise unless the signature over signing_input is valid for key."""
        self.check_algorithm(algorithm)

        if key.alg is not None and key.alg != algorithm:
            raise InvalidSignature("Key algorithm does not match token", details={"kid": key.kid})
        if key.use is not None and key.use != "sig":
            raise InvalidSignature("Key is not a signing key", details={"kid": key.kid})
        if ASYMMETRIC_ALGORITHMS[algorithm] != key.kty:
            raise InvalidSignature("Key type does not match algorithm", details={"kid": key.kid})

        try:
            signature = codec.decode(signature_segment)
        except MalformedEncoding as exc:
            raise InvalidSignature("Signature is not valid base64url") from exc

        try:
            public_key = jwk.construct(key.to_jwk(), algorithm)
            valid = public_key.verify(signing_input, signature)
        except Exception as exc:
            self.logger.warning(
                "Signature check raised",
                kid=key.kid,
                alg=algorithm,
                error_type=type(exc).__name__,
            )
            raise InvalidSignature(details={"kid": key.kid}) from exc

        if not valid:
            raise InvalidSignature(details={"kid": key.kid})
