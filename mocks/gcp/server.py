"""
Mock Google STS and IAM Credentials server for local development and tests.
"""

import os
import secrets
import time
from collections import Counter
from typing import Optional, Set

import jwt
from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from shared.logging import get_logger

GRANT_TYPE = "urn:ietf:params:oauth:grant-type:token-exchange"
SUBJECT_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:jwt"


class TokenExchangeRequest(BaseModel):
    grant_type: str
    audience: str
    scope: str
    requested_token_type: str
    subject_token_type: str
    subject_token: str


class GenerateIdTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audience: str
    include_email: bool = Field(default=False, alias="includeEmail")


class MockGCPServer:
    """Mock STS + IAM Credentials implementation.

    Access tokens are opaque random strings remembered by the server;
    identity tokens are HS256 JWTs carrying ``aud``, ``exp``, ``iat``,
    ``sub`` and (when requested) ``email``.
    """

    def __init__(self, port: int = 8090, token_lifetime: int = 3600, signing_key: str = "mock-signing-key-for-local-testing-only"):
        self.port = port
        self.token_lifetime = token_lifetime
        self.signing_key = signing_key
        self.logger = get_logger("mock.gcp")
        self.app = FastAPI(title="Mock GCP", version="1.0.0")

        self.calls: Counter = Counter()
        self.issued_access_tokens: Set[str] = set()

        # Failure injection: status code to return instead of a token
        self.sts_failure_status: Optional[int] = None
        self.iam_failure_status: Optional[int] = None

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock GCP routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-gcp",
                "message": "Mock STS and IAM Credentials server",
                "version": "1.0.0"
            }

        @self.app.post("/v1/token")
        async def token_exchange(request: TokenExchangeRequest):
            """STS token exchange endpoint."""
            self.calls["sts"] += 1

            if self.sts_failure_status is not None:
                raise HTTPException(status_code=self.sts_failure_status, detail="Injected STS failure")
            if request.grant_type != GRANT_TYPE:
                raise HTTPException(status_code=400, detail="Unsupported grant type")
            if request.subject_token_type != SUBJECT_TOKEN_TYPE or not request.subject_token:
                raise HTTPException(status_code=400, detail="Invalid subject token")

            access_token = f"ya29.mock-{secrets.token_urlsafe(16)}"
            self.issued_access_tokens.add(access_token)

            self.logger.info("Issued federated access token", audience=request.audience)
            return {
                "access_token": access_token,
                "expires_in": self.token_lifetime,
                "token_type": "Bearer",
                "issued_token_type": request.requested_token_type
            }

        @self.app.post("/v1/projects/-/serviceAccounts/{account}:generateIdToken")
        async def generate_id_token(
            account: str,
            request: GenerateIdTokenRequest,
            authorization: Optional[str] = Header(None)
        ):
            """IAM Credentials generateIdToken endpoint."""
            self.calls["iam"] += 1

            if self.iam_failure_status is not None:
                raise HTTPException(status_code=self.iam_failure_status, detail="Injected IAM failure")
            if not authorization or not authorization.startswith("Bearer "):
                raise HTTPException(status_code=401, detail="Missing bearer credentials")
            if authorization[len("Bearer "):] not in self.issued_access_tokens:
                raise HTTPException(status_code=401, detail="Invalid access token")

            return {"token": self.mint_identity_token(account, request.audience, request.include_email)}

    def mint_identity_token(self, account: str, audience: str, include_email: bool = True) -> str:
        """Mint an identity token for ``account`` scoped to ``audience``."""
        now = int(time.time())
        payload = {
            "iss": "https://accounts.google.com",
            "sub": account,
            "aud": audience,
            "iat": now,
            "exp": now + self.token_lifetime,
        }
        if include_email:
            payload["email"] = account
            payload["email_verified"] = True
        return jwt.encode(payload, self.signing_key, algorithm="HS256")

    def run(self, host: str = "0.0.0.0"):
        """Serve the mock on its configured port."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=self.port)


if __name__ == "__main__":
    MockGCPServer(port=int(os.getenv("MOCK_GCP_PORT", "8090"))).run()
