"""
External authorization package.

- models: proto3-JSON shapes of Envoy's ``CheckRequest``/``CheckResponse``
  and the metadata claim extraction.
- coordinator: turns metadata claims into an injected bearer header or
  the fixed denial.
"""

from .coordinator import RequestCoordinator
from .models import CheckRequest, CheckResponse, create_error_response, create_ok_response, extract_metadata_claims

__all__ = [
    "RequestCoordinator",
    "CheckRequest",
    "CheckResponse",
    "create_error_response",
    "create_ok_response",
    "extract_metadata_claims",
]
