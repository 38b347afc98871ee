"""
Claim extraction package.

Reads the ``aud`` and ``exp`` claims of a compact JWT without verifying
its signature. Tokens reaching this code are either mounted by the
platform or were just returned by a trusted upstream; callers must not
use it as a verifier.
"""

from .extractor import extract_claims

__all__ = ["extract_claims"]
