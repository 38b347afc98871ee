"""
Envoy ``ext_authz`` check request and response shapes (proto3 JSON form).

Only the fields the injector reads or writes are modelled; unknown fields
in a check request are ignored.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# google.rpc.Code values
STATUS_OK = 0
STATUS_INTERNAL = 13

DENIED_MESSAGE = "Internal server error"
DENIED_HTTP_STATUS = 500
DENIED_BODY = "Failed to request token"


class EnvoyModel(BaseModel):
    """Accepts both camelCase and snake_case; serializes camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Metadata(EnvoyModel):
    filter_metadata: Dict[str, Dict[str, Any]] = {}


class AttributeContext(EnvoyModel):
    request: Optional[Dict[str, Any]] = None
    context_extensions: Dict[str, str] = {}
    metadata_context: Optional[Metadata] = None
    route_metadata_context: Optional[Metadata] = None


class CheckRequest(EnvoyModel):
    attributes: Optional[AttributeContext] = None

    @property
    def request_id(self) -> Optional[str]:
        """The proxy's ``x-request-id`` for the checked request, if present."""
        if not self.attributes or not self.attributes.request:
            return None
        http = self.attributes.request.get("http") or {}
        request_id = http.get("id")
        return request_id if isinstance(request_id, str) and request_id else None


class Status(EnvoyModel):
    code: int = STATUS_OK
    message: Optional[str] = None


class HeaderValue(EnvoyModel):
    key: str
    value: str


class HeaderValueOption(EnvoyModel):
    header: HeaderValue


class HttpStatus(EnvoyModel):
    code: int


class OkHttpResponse(EnvoyModel):
    headers: List[HeaderValueOption] = []


class DeniedHttpResponse(EnvoyModel):
    status: HttpStatus
    headers: List[HeaderValueOption] = []
    body: str = ""


class CheckResponse(EnvoyModel):
    status: Status
    ok_response: Optional[OkHttpResponse] = None
    denied_response: Optional[DeniedHttpResponse] = None

    @property
    def allowed(self) -> bool:
        return self.status.code == STATUS_OK and self.ok_response is not None

    def header(self, key: str) -> Optional[str]:
        """Value of an injected header, matched case-insensitively."""
        if self.ok_response is None:
            return None
        for option in self.ok_response.headers:
            if option.header.key.lower() == key.lower():
                return option.header.value
        return None


def extract_metadata_claims(request: CheckRequest, namespace: str) -> Dict[str, str]:
    """Collect the string values of the route metadata under ``namespace``."""
    claims: Dict[str, str] = {}
    attributes = request.attributes
    if attributes is None or attributes.route_metadata_context is None:
        return claims

    metadata = attributes.route_metadata_context.filter_metadata.get(namespace)
    if metadata is None:
        return claims

    for key, value in metadata.items():
        if isinstance(value, str):
            claims[key] = value
    return claims


def create_ok_response(token: str) -> CheckResponse:
    """Allow the request and inject ``Authorization: Bearer <token>``."""
    return CheckResponse(
        status=Status(code=STATUS_OK),
        ok_response=OkHttpResponse(
            headers=[
                HeaderValueOption(header=HeaderValue(key="Authorization", value=f"Bearer {token}"))
            ]
        ),
    )


def create_error_response() -> CheckResponse:
    """The single denial returned for every failure."""
    return CheckResponse(
        status=Status(code=STATUS_INTERNAL, message=DENIED_MESSAGE),
        denied_response=DeniedHttpResponse(
            status=HttpStatus(code=DENIED_HTTP_STATUS),
            body=DENIED_BODY,
        ),
    )
