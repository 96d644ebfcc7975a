"""
Compact token handling.

- codec: base64url (unpadded) encoding used by every token segment.
- decomposer: splits a compact token and decodes its header and payload.

Nothing in this package trusts token content; it only gives it structure.
"""
