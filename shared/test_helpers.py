"""
Test helper functions and factory methods for the Token Injector.
"""

import base64
import json
import time
from typing import Any, Dict, Optional

import jwt

from shared.config import InjectorConfig

TEST_AUDIENCE = "https://svc.example.com"
TEST_SERVICE_ACCOUNT = "injector@test-project.iam.gserviceaccount.com"


def b64url(data: bytes) -> str:
    """Base64url without padding, as used in compact JWTs."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class MockTokenGenerator:
    """Generate mock JWT tokens for testing."""

    def __init__(self, secret: str = "mock-secret-for-token-injector-tests"):
        self.secret = secret

    def generate_identity_token(
        self,
        audience: str = TEST_AUDIENCE,
        expires_in: int = 3600,
        now: Optional[float] = None,
        **claims: Any,
    ) -> str:
        """Signed identity token carrying ``aud`` and ``exp``."""
        issued_at = int(now if now is not None else time.time())
        payload = {
            "iss": "https://accounts.google.com",
            "sub": TEST_SERVICE_ACCOUNT,
            "email": TEST_SERVICE_ACCOUNT,
            "aud": audience,
            "iat": issued_at,
            "exp": issued_at + expires_in,
        }
        payload.update(claims)
        return jwt.encode(payload, self.secret, algorithm="HS256")

    def generate_service_account_token(self, expires_in: int = 3600) -> str:
        """Kubernetes projected service-account token."""
        now = int(time.time())
        payload = {
            "iss": "https://kubernetes.default.svc.cluster.local",
            "sub": "system:serviceaccount:default:injector",
            "aud": "//iam.googleapis.com/projects/123456789/locations/global/workloadIdentityPools/test-pool/providers/test-provider",
            "iat": now,
            "exp": now + expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm="HS256")

    @staticmethod
    def generate_unsigned_token(claims: Dict[str, Any]) -> str:
        """``alg: none`` token with an empty signature segment."""
        header = b64url(json.dumps({"alg": "none", "typ": "JWT"}).encode())
        payload = b64url(json.dumps(claims).encode())
        return f"{header}.{payload}."

    @staticmethod
    def generate_raw_token(payload: bytes) -> str:
        """Token whose payload segment encodes arbitrary bytes."""
        header = b64url(json.dumps({"alg": "none", "typ": "JWT"}).encode())
        return f"{header}.{b64url(payload)}."


class TestEnvironment:
    """Test environment configuration."""
    __test__ = False

    @staticmethod
    def get_mock_config(token_path: str = "/var/run/secrets/token") -> Dict[str, str]:
        """Get mock environment configuration."""
        return {
            "K8S_TOKEN_PATH": token_path,
            "PROJECT_NUMBER": "123456789",
            "WORKLOAD_IDENTITY_POOL": "test-pool",
            "WORKLOAD_PROVIDER": "test-provider",
            "SERVICE_ACCOUNT_EMAIL": TEST_SERVICE_ACCOUNT,
        }

    @staticmethod
    def create_config(token_path: str, **overrides: Any) -> InjectorConfig:
        """Build a config without consulting the process environment's .env file."""
        values: Dict[str, Any] = {
            "k8s_token_path": token_path,
            "project_number": "123456789",
            "workload_identity_pool": "test-pool",
            "workload_provider": "test-provider",
            "service_account_email": TEST_SERVICE_ACCOUNT,
            "sts_url": "http://mock-gcp/v1/token",
            "iam_credentials_url": "http://mock-gcp",
        }
        values.update(overrides)
        return InjectorConfig(_env_file=None, **values)


# Global instance for easy access
mock_token_generator = MockTokenGenerator()
