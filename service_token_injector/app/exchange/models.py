"""
Wire models for the STS and IAM Credentials endpoints.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

GRANT_TYPE = "urn:ietf:params:oauth:grant-type:token-exchange"
SCOPE = "https://www.googleapis.com/auth/cloud-platform"
REQUESTED_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:access_token"
SUBJECT_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:jwt"

WORKLOAD_IDENTITY_AUDIENCE = (
    "//iam.googleapis.com/projects/{project}/locations/global"
    "/workloadIdentityPools/{pool}/providers/{provider}"
)
GENERATE_ID_TOKEN_PATH = "/v1/projects/-/serviceAccounts/{email}:generateIdToken"


class STSRequest(BaseModel):
    """Request payload for STS token exchange."""
    grant_type: str = GRANT_TYPE
    audience: str
    scope: str = SCOPE
    requested_token_type: str = REQUESTED_TOKEN_TYPE
    subject_token_type: str = SUBJECT_TOKEN_TYPE
    subject_token: str


class STSResponse(BaseModel):
    """Response from STS token exchange."""
    model_config = ConfigDict(extra="ignore")

    access_token: str = ""
    expires_in: Optional[int] = None
    token_type: Optional[str] = None


class IAMRequest(BaseModel):
    """Request payload for IAM impersonation."""
    model_config = ConfigDict(populate_by_name=True)

    audience: str
    include_email: bool = Field(default=True, alias="includeEmail")


class IAMResponse(BaseModel):
    """Response from IAM impersonation."""
    model_config = ConfigDict(extra="ignore")

    token: str = ""
