"""
Verification error taxonomy.

Every rejected token is reported with exactly one of these kinds. Messages
and details may carry a key id or a claim name but never the token itself
or any part of its signature.
"""

from enum import Enum
from typing import Any, Dict, Optional

from shared.errors import AccessLayerException


class VerificationErrorKind(str, Enum):
    """Closed set of reasons a token can be rejected."""
    MALFORMED_ENCODING = "MALFORMED_ENCODING"
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    KEY_FETCH_ERROR = "KEY_FETCH_ERROR"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    CLAIM_EXPIRED = "CLAIM_EXPIRED"
    CLAIM_NOT_YET_VALID = "CLAIM_NOT_YET_VALID"
    CLAIM_AUDIENCE_MISMATCH = "CLAIM_AUDIENCE_MISMATCH"
    CLAIM_ISSUER_MISMATCH = "CLAIM_ISSUER_MISMATCH"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class VerificationError(AccessLayerException):
    """Base class for all token rejections."""

    kind: VerificationErrorKind
    default_message = "Token verification failed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(self.kind.value, message or self.default_message, details)


class MalformedEncoding(VerificationError):
    kind = VerificationErrorKind.MALFORMED_ENCODING
    default_message = "Invalid base64url encoding"


class MalformedToken(VerificationError):
    kind = VerificationErrorKind.MALFORMED_TOKEN
    default_message = "Malformed token"


class KeyFetchError(VerificationError):
    kind = VerificationErrorKind.KEY_FETCH_ERROR
    default_message = "Unable to retrieve signing keys"


class KeyNotFound(VerificationError):
    kind = VerificationErrorKind.KEY_NOT_FOUND
    default_message = "Signing key not found"


class UnsupportedAlgorithm(VerificationError):
    kind = VerificationErrorKind.UNSUPPORTED_ALGORITHM
    default_message = "Signing algorithm not allowed"


class ClaimExpired(VerificationError):
    kind = VerificationErrorKind.CLAIM_EXPIRED
    default_message = "Token has expired"


class ClaimNotYetValid(VerificationError):
    kind = VerificationErrorKind.CLAIM_NOT_YET_VALID
    default_message = "Token is not yet valid"


class ClaimAudienceMismatch(VerificationError):
    kind = VerificationErrorKind.CLAIM_AUDIENCE_MISMATCH
    default_message = "Token audience mismatch"


class ClaimIssuerMismatch(VerificationError):
    kind = VerificationErrorKind.CLAIM_ISSUER_MISMATCH
    default_message = "Invalid token issuer"


class InvalidSignature(VerificationError):
    kind = VerificationErrorKind.INVALID_SIGNATURE
    default_message = "Invalid token signature"
