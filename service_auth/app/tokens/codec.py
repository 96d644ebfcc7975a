"""
URL-safe, unpadded base64 as used by compact token segments.
"""

import binascii
import re

from jose.utils import base64url_decode, base64url_encode

from ..errors import MalformedEncoding

_SEGMENT_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def encode(data: bytes) -> str:
    """Encode bytes as base64url with the padding stripped."""
    return base64url_encode(data).decode("ascii")


def decode(segment: str) -> bytes:
    """Decode a base64url string, restoring padding as needed.

    Raises MalformedEncoding for characters outside the URL-safe alphabet,
    for lengths no padding can fix (one character past a multiple of four),
    for padding that does not complete a quantum, and for non-canonical
    encodings whose unused trailing bits are set.
    """
    if not isinstance(segment, str) or not _SEGMENT_RE.fullmatch(segment):
        raise MalformedEncoding()

    unpadded = segment.rstrip("=")
    if len(unpadded) % 4 == 1:
        raise MalformedEncoding(details={"length": len(unpadded)})
    if unpadded != segment and len(segment) % 4:
        raise MalformedEncoding("Invalid base64url padding")

    try:
        data = base64url_decode(unpadded.encode("ascii"))
    except (binascii.Error, ValueError) as exc:
        raise MalformedEncoding() from exc

    if encode(data) != unpadded:
        raise MalformedEncoding("Non-canonical base64url encoding")
    return data
