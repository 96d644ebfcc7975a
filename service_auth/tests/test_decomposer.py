"""
Unit tests for compact token decomposition.
"""

import pytest

from service_auth.app.errors import MalformedToken
from service_auth.app.tokens.decomposer import decompose

from conftest import b64url, compact


class TestDecompose:
    """Test cases for decompose()."""

    def test_splits_and_decodes_signed_token(self, signing_key, google_claims):
        token = signing_key.sign(google_claims)

        parts = decompose(token)

        header_segment, payload_segment, signature_segment = token.split(".")
        assert parts.header["alg"] == "RS256"
        assert parts.kid == signing_key.kid
        assert parts.payload == google_claims
        assert parts.signature_segment == signature_segment
        assert parts.signing_input == f"{header_segment}.{payload_segment}".encode()

    def test_keeps_raw_decoded_bytes(self):
        token = compact({"alg": "RS256", "kid": "k"}, {"sub": "1"})

        parts = decompose(token)

        assert parts.header_bytes == b'{"alg": "RS256", "kid": "k"}'
        assert parts.payload_bytes == b'{"sub": "1"}'

    @pytest.mark.parametrize("token", ["a.b", "a.b.c.d", "abc", ""])
    def test_rejects_wrong_segment_count(self, token):
        with pytest.raises(MalformedToken):
            decompose(token)

    def test_rejects_non_string(self):
        with pytest.raises(MalformedToken):
            decompose(None)

    def test_rejects_oversized_token(self):
        token = compact({"alg": "RS256", "kid": "k"}, {"pad": "x" * 200})
        with pytest.raises(MalformedToken):
            decompose(token, max_length=64)

    def test_rejects_bad_header_encoding(self):
        with pytest.raises(MalformedToken):
            decompose("***." + b64url(b"{}") + ".sig")

    def test_rejects_non_json_payload(self):
        header = b64url(b'{"alg": "RS256", "kid": "k"}')
        with pytest.raises(MalformedToken):
            decompose(f"{header}.{b64url(b'not json')}.sig")

    def test_rejects_non_object_payload(self):
        header = b64url(b'{"alg": "RS256", "kid": "k"}')
        with pytest.raises(MalformedToken):
            decompose(f"{header}.{b64url(b'[1, 2]')}.sig")

    @pytest.mark.parametrize("header", [{"kid": "k"}, {"alg": "RS256"}, {"alg": 256, "kid": "k"}])
    def test_rejects_header_without_alg_or_kid(self, header):
        with pytest.raises(MalformedToken):
            decompose(compact(header, {"sub": "1"}))

    def test_signature_segment_is_not_decoded(self):
        header = b64url(b'{"alg": "RS256", "kid": "k"}')
        payload = b64url(b'{"sub": "1"}')

        parts = decompose(f"{header}.{payload}.!!not-base64!!")

        assert parts.signature_segment == "!!not-base64!!"
