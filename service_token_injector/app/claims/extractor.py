"""
Unverified claim extraction for compact JWTs.
"""

import math
import re
from typing import Optional, Tuple

from jose import jwt
from jose.exceptions import JWTError

from shared.errors import ClaimExtractionError

# Unpadded base64url, as compact JWS segments are encoded
SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")


def _check_structure(token: str) -> None:
    segments = token.split(".")
    if len(segments) != 3:
        raise ClaimExtractionError(
            "Invalid token: expected 3 segments",
            details={"segments": len(segments)},
        )
    for name, segment in zip(("header", "payload"), segments[:2]):
        if not SEGMENT_PATTERN.match(segment):
            raise ClaimExtractionError(f"Invalid token: {name} segment is not base64url")


def _expiry(exp) -> Optional[float]:
    # bool is an int subclass but never a valid expiry
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        return None
    try:
        value = float(exp)
    except OverflowError:
        return None
    # NaN and Infinity are accepted by the JSON parser but are not JSON numbers
    return value if math.isfinite(value) else None


def extract_claims(token: str) -> Tuple[str, float]:
    """Return the ``(aud, exp)`` pair of ``token`` without verifying it.

    The payload segment is base64url-decoded and parsed as a JSON object.
    ``exp`` must be a finite number (seconds since the epoch) and ``aud``
    a string.

    Raises:
        ClaimExtractionError: the token is not a three-segment compact JWS,
            a segment is not base64url, the payload is not a JSON object,
            or either claim is missing or has the wrong type.
    """
    if not isinstance(token, str):
        raise ClaimExtractionError("Invalid token: not a string")
    _check_structure(token)

    try:
        claims = jwt.get_unverified_claims(token)
    except (JWTError, AttributeError, TypeError) as e:
        raise ClaimExtractionError(f"Invalid token: {e}") from e

    aud = claims.get("aud")
    expires_at = _expiry(claims.get("exp"))
    if expires_at is None or not isinstance(aud, str):
        raise ClaimExtractionError(
            "exp or aud claim not found or invalid",
            details={"has_exp": "exp" in claims, "has_aud": "aud" in claims},
        )

    return aud, expires_at
