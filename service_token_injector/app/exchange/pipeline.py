"""
Workload identity federation client: STS exchange followed by IAM
service-account impersonation.
"""

from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from shared.config import InjectorConfig
from shared.errors import ExchangeError, ImpersonationError, UpstreamDecodeError, UpstreamError
from shared.logging import get_logger
from .models import (
    GENERATE_ID_TOKEN_PATH,
    WORKLOAD_IDENTITY_AUDIENCE,
    IAMRequest,
    IAMResponse,
    STSRequest,
    STSResponse,
)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

MAX_ERROR_BODY = 2048


class ExchangePipeline:
    """Obtains audience-scoped identity tokens for the configured service account.

    Both stages are single attempts with a bounded timeout. Failures raise
    ``ExchangeError`` (STS) or ``ImpersonationError`` (IAM) carrying the
    upstream status and body, or ``UpstreamDecodeError`` when a success
    response is not the expected JSON document.
    """

    def __init__(self, config: InjectorConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.logger = get_logger("injector.exchange")
        self._transport = transport

    @property
    def workload_identity_audience(self) -> str:
        return WORKLOAD_IDENTITY_AUDIENCE.format(
            project=self.config.project_number,
            pool=self.config.workload_identity_pool,
            provider=self.config.workload_provider,
        )

    @property
    def generate_id_token_url(self) -> str:
        base = self.config.iam_credentials_url.rstrip("/")
        return base + GENERATE_ID_TOKEN_PATH.format(email=self.config.service_account_email)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.exchange_timeout_seconds,
            transport=self._transport,
        )

    async def run(self, local_token: str, audience: str) -> str:
        """Exchange ``local_token`` and return an identity token for ``audience``."""
        access_token = await self.exchange_token(local_token)
        return await self.generate_identity_token(access_token, audience)

    async def exchange_token(self, subject_token: str) -> str:
        """Exchange the local JWT for a federated access token."""
        payload = STSRequest(
            audience=self.workload_identity_audience,
            subject_token=subject_token,
        )

        try:
            async with self._client() as client:
                response = await client.post(self.config.sts_url, json=payload.model_dump())
        except httpx.HTTPError as e:
            raise ExchangeError(f"failed to call STS: {e}", details={"error": str(e)}) from e

        self._raise_for_status(response, ExchangeError)
        sts_response = self._decode(response, STSResponse, stage="sts")

        if not sts_response.access_token:
            raise ExchangeError("empty access token received from STS")

        self.logger.debug(
            "STS exchange succeeded",
            expires_in=sts_response.expires_in,
            token_type=sts_response.token_type,
        )
        return sts_response.access_token

    async def generate_identity_token(self, access_token: str, audience: str) -> str:
        """Impersonate the service account and mint an identity token."""
        payload = IAMRequest(audience=audience, include_email=True)
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with self._client() as client:
                response = await client.post(
                    self.generate_id_token_url,
                    json=payload.model_dump(by_alias=True),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise ImpersonationError(f"failed to call IAM: {e}", details={"error": str(e)}) from e

        self._raise_for_status(response, ImpersonationError)
        iam_response = self._decode(response, IAMResponse, stage="iam")

        if not iam_response.token:
            raise ImpersonationError("empty identity token received from IAM")

        return iam_response.token

    @staticmethod
    def _raise_for_status(response: httpx.Response, error_cls: Type[UpstreamError]) -> None:
        if response.status_code == httpx.codes.OK:
            return
        body = response.text[:MAX_ERROR_BODY]
        raise error_cls(
            f"returned non-OK status: {response.status_code} {response.reason_phrase}, body: {body}",
            details={"status_code": response.status_code, "body": body},
        )

    @staticmethod
    def _decode(response: httpx.Response, model: Type[ResponseModel], stage: str) -> ResponseModel:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamDecodeError(
                stage,
                f"failed to decode response: {e}",
                details={"body": response.text[:MAX_ERROR_BODY]},
            ) from e
