"""
Unit tests for unverified claim extraction.
"""

import time

import pytest

from service_token_injector.app.claims.extractor import extract_claims
from shared.errors import ClaimExtractionError
from shared.test_helpers import MockTokenGenerator, mock_token_generator


class TestExtractClaims:
    """Test cases for extract_claims."""

    def test_signed_token(self):
        """Test aud and exp are read from a signed token."""
        now = int(time.time())
        token = mock_token_generator.generate_identity_token(
            audience="https://example.com", expires_in=3600, now=now
        )

        audience, expires_at = extract_claims(token)

        assert audience == "https://example.com"
        assert expires_at == now + 3600

    def test_unsigned_token(self):
        """Test the signature segment is not inspected."""
        token = MockTokenGenerator.generate_unsigned_token({"aud": "https://example.com", "exp": 1700000000})

        assert extract_claims(token) == ("https://example.com", 1700000000.0)

    def test_fractional_exp(self):
        """Test a float exp is accepted unchanged."""
        token = MockTokenGenerator.generate_unsigned_token({"aud": "svc", "exp": 1700000000.5})

        assert extract_claims(token) == ("svc", 1700000000.5)

    @pytest.mark.parametrize("claims", [
        {"exp": 1700000000},
        {"aud": "https://example.com"},
        {},
        {"aud": "https://example.com", "exp": "1700000000"},
        {"aud": "https://example.com", "exp": True},
        {"aud": "https://example.com", "exp": None},
        {"aud": ["https://a.example.com", "https://b.example.com"], "exp": 1700000000},
        {"aud": 42, "exp": 1700000000},
    ])
    def test_missing_or_mistyped_claims(self, claims):
        """Test aud must be a string and exp a number."""
        token = MockTokenGenerator.generate_unsigned_token(claims)

        with pytest.raises(ClaimExtractionError):
            extract_claims(token)

    @pytest.mark.parametrize("token", [
        "",
        "invalid-token",
        "only.two",
        "eyJhbGciOiJub25lIn0.%%%.",
        "not-base64!.payload.",
    ])
    def test_malformed_structure(self, token):
        """Test tokens without a decodable three-segment structure."""
        with pytest.raises(ClaimExtractionError):
            extract_claims(token)

    def test_payload_not_json(self):
        """Test a payload that decodes but is not JSON."""
        token = MockTokenGenerator.generate_raw_token(b"not json at all")

        with pytest.raises(ClaimExtractionError):
            extract_claims(token)

    def test_payload_not_object(self):
        """Test a JSON payload that is not an object."""
        token = MockTokenGenerator.generate_raw_token(b'["aud", "exp"]')

        with pytest.raises(ClaimExtractionError):
            extract_claims(token)

    def test_error_message(self):
        """Test the error names the offending claims."""
        token = MockTokenGenerator.generate_unsigned_token({"sub": "someone"})

        with pytest.raises(ClaimExtractionError) as exc_info:
            extract_claims(token)

        assert "exp or aud claim not found or invalid" in str(exc_info.value)
        assert exc_info.value.code == "CLAIM_EXTRACTION_ERROR"

    def test_extra_segment_rejected(self):
        """Test a token with the payload split across two segments."""
        header, payload, signature = mock_token_generator.generate_identity_token().split(".")
        middle = len(payload) // 2
        token = ".".join([header, payload[:middle], payload[middle:], signature])

        with pytest.raises(ClaimExtractionError):
            extract_claims(token)

    @pytest.mark.parametrize("position", [0, 5, -1])
    def test_non_base64url_payload_rejected(self, position):
        """Test characters outside the base64url alphabet are not skipped."""
        header, payload, signature = mock_token_generator.generate_identity_token().split(".")
        index = position if position >= 0 else len(payload)
        payload = payload[:index] + "!!!" + payload[index:]

        with pytest.raises(ClaimExtractionError):
            extract_claims(f"{header}.{payload}.{signature}")

    def test_padded_header_rejected(self):
        """Test padding characters are not part of a compact segment."""
        header, payload, signature = mock_token_generator.generate_identity_token().split(".")

        with pytest.raises(ClaimExtractionError):
            extract_claims(f"{header}==.{payload}.{signature}")

    @pytest.mark.parametrize("payload", [
        b'{"aud": "svc", "exp": NaN}',
        b'{"aud": "svc", "exp": Infinity}',
        b'{"aud": "svc", "exp": -Infinity}',
        b'{"aud": "svc", "exp": 1e400}',
        b'{"aud": "svc", "exp": 1' + b"0" * 400 + b"}",
    ])
    def test_non_finite_exp_rejected(self, payload):
        """Test exp values that are not finite JSON numbers."""
        token = MockTokenGenerator.generate_raw_token(payload)

        with pytest.raises(ClaimExtractionError):
            extract_claims(token)
