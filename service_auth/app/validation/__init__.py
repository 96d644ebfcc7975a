"""
Token validation package.

- claims: expiry, not-before, audience and issuer policy.
- signature: algorithm allow-list and asymmetric signature checks.
- token_validator: the end-to-end verify() entry point.
"""
