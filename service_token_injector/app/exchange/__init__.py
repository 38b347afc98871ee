"""
Token exchange package.

Turns the mounted Kubernetes service-account token into a Google identity
token in two calls:

1. STS token exchange: the local JWT becomes a federated access token.
2. IAM Credentials ``generateIdToken``: the access token impersonates the
   target service account and mints an identity token for the audience.

Nothing here caches; callers layer the token cache on top.
"""

from .pipeline import ExchangePipeline

__all__ = ["ExchangePipeline"]
