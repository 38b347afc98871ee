"""
Identity token cache package.

Tokens are keyed by their own ``aud`` claim and treated as expired once
a configurable share of their lifetime (75% by default) has elapsed.
"""

from .token_cache import CachedToken, TokenCache

__all__ = ["CachedToken", "TokenCache"]
