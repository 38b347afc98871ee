"""
Shared error handling for the Token Injector.
"""

from typing import Dict, Any, Optional


class InjectorException(Exception):
    """Base exception for Token Injector services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(InjectorException):
    """Missing or invalid process configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ClaimsError(InjectorException):
    """Required claim missing from the inbound check."""

    def __init__(self, message: str = "Required claim missing", details: Optional[Dict[str, Any]] = None):
        super().__init__("CLAIMS_ERROR", message, details)


class ClaimExtractionError(InjectorException):
    """A token's payload could not be read as ``aud``/``exp`` claims."""

    def __init__(self, message: str = "Invalid token claims", details: Optional[Dict[str, Any]] = None):
        super().__init__("CLAIM_EXTRACTION_ERROR", message, details)


class LocalCredentialError(InjectorException):
    """The locally mounted identity document could not be read."""

    def __init__(self, message: str = "Failed to read local token", details: Optional[Dict[str, Any]] = None):
        super().__init__("LOCAL_CREDENTIAL_ERROR", message, details)


class UpstreamError(InjectorException):
    """Base class for failures talking to the token endpoints."""

    def __init__(self, code: str, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__(code, f"{service}: {message}", details)

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class ExchangeError(UpstreamError):
    """Subject-token exchange (STS) failed."""

    def __init__(self, message: str = "Token exchange failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXCHANGE_ERROR", "STS", message, details)


class ImpersonationError(UpstreamError):
    """Service-account impersonation (IAM) failed."""

    def __init__(self, message: str = "Impersonation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("IMPERSONATION_ERROR", "IAM", message, details)


class UpstreamDecodeError(UpstreamError):
    """An upstream returned a body that is not the expected JSON document."""

    def __init__(self, stage: str, message: str = "Failed to decode response", details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["stage"] = stage
        super().__init__("UPSTREAM_DECODE_ERROR", stage.upper(), message, details)
