"""
Splits a compact token into its segments.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from ..errors import MalformedEncoding, MalformedToken
from . import codec

DEFAULT_MAX_TOKEN_LENGTH = 16384


@dataclass(frozen=True)
class DecomposedToken:
    """Structured view of an unverified compact token."""

    header: Dict[str, Any]
    payload: Dict[str, Any]
    header_bytes: bytes
    payload_bytes: bytes
    signature_segment: str
    signing_input: bytes

    @property
    def algorithm(self) -> str:
        return self.header["alg"]

    @property
    def kid(self) -> str:
        return self.header["kid"]


def _decode_object(segment: str, part: str) -> Tuple[bytes, Dict[str, Any]]:
    try:
        raw = codec.decode(segment)
        value = json.loads(raw)
    except MalformedEncoding as exc:
        raise MalformedToken(f"Invalid {part} encoding") from exc
    except (ValueError, RecursionError) as exc:
        raise MalformedToken(f"Invalid {part} JSON") from exc

    if not isinstance(value, dict):
        raise MalformedToken(f"Token {part} is not a JSON object")
    return raw, value


def decompose(token: str, max_length: int = DEFAULT_MAX_TOKEN_LENGTH) -> DecomposedToken:
    """Split and decode a compact token without verifying anything."""
    if not isinstance(token, str) or not token:
        raise MalformedToken("Token must be a non-empty string")
    if len(token) > max_length:
        raise MalformedToken("Token exceeds maximum length", details={"max_length": max_length})

    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedToken("Token must have exactly three segments", details={"segments": len(parts)})

    header_segment, payload_segment, signature_segment = parts
    header_bytes, header = _decode_object(header_segment, "header")
    payload_bytes, payload = _decode_object(payload_segment, "payload")

    for name in ("alg", "kid"):
        if not isinstance(header.get(name), str) or not header[name]:
            raise MalformedToken(f"Token header missing '{name}'")

    return DecomposedToken(
        header=header,
        payload=payload,
        header_bytes=header_bytes,
        payload_bytes=payload_bytes,
        signature_segment=signature_segment,
        # Signed bytes are the encoded segments exactly as received
        signing_input=f"{header_segment}.{payload_segment}".encode("ascii"),
    )
