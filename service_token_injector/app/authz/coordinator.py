"""
Check coordinator: audience lookup, cache, and single-flight refresh.
"""

import asyncio
import time
from pathlib import Path
from typing import Dict, Mapping

from shared.config import InjectorConfig
from shared.errors import ClaimsError, InjectorException, LocalCredentialError
from shared.logging import get_logger
from ..cache.token_cache import TokenCache
from ..exchange.pipeline import ExchangePipeline
from .models import CheckResponse, create_error_response, create_ok_response

AUDIENCE_CLAIM = "audience"


class RequestCoordinator:
    """Answers checks with a cached or freshly minted identity token.

    Cache hits never take a lock. Misses serialize on a lock for the
    requested audience and re-check the cache once it is held, so
    concurrent misses for one audience produce a single pipeline run
    while other audiences proceed independently.
    """

    def __init__(self, config: InjectorConfig, cache: TokenCache, pipeline: ExchangePipeline):
        self.config = config
        self.cache = cache
        self.pipeline = pipeline
        self.logger = get_logger("injector.coordinator")
        self._locks: Dict[str, asyncio.Lock] = {}

    async def check(self, claims: Mapping[str, str]) -> CheckResponse:
        """Return an OK response with the bearer header, or the denial."""
        try:
            audience = claims.get(AUDIENCE_CLAIM)
            if not audience:
                raise ClaimsError("audience not found in metadata")

            identity_token = await self.get_identity_token(audience)
        except InjectorException as e:
            self.logger.error(
                "Check denied",
                code=e.code,
                error=e.message,
                details=e.details,
            )
            return create_error_response()
        except Exception as e:
            self.logger.error("Unexpected error during check", error=str(e), exc_info=True)
            return create_error_response()

        return create_ok_response(identity_token)

    async def get_identity_token(self, audience: str) -> str:
        """Identity token for ``audience``, refreshing it on a cache miss."""
        identity_token = self.cache.get(audience)
        if identity_token is not None:
            self.logger.debug("Found token in cache", audience=audience)
            return identity_token

        # The refresh outlives a cancelled caller so its result still lands in the cache
        refresh = asyncio.ensure_future(self._refresh(audience))
        refresh.add_done_callback(_consume_exception)
        return await asyncio.shield(refresh)

    async def _refresh(self, audience: str) -> str:
        lock = self._locks.setdefault(audience, asyncio.Lock())
        async with lock:
            identity_token = self.cache.get(audience)
            if identity_token is not None:
                self.logger.debug("Found token in cache after waiting for refresh", audience=audience)
                return identity_token

            local_token = await asyncio.to_thread(self._read_local_token)

            start = time.perf_counter()
            identity_token = await self.pipeline.run(local_token, audience)
            self.logger.debug(
                "Identity token obtained",
                audience=audience,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )

            if self.cache.put(identity_token) is None:
                self.logger.warning("Identity token could not be cached", audience=audience)
            return identity_token

    def _read_local_token(self) -> str:
        """Read the mounted service-account token; it may rotate between calls."""
        path = Path(self.config.k8s_token_path)
        try:
            token = path.read_text().strip()
        except (OSError, UnicodeDecodeError) as e:
            raise LocalCredentialError(
                f"failed to read JWT: {e}",
                details={"path": str(path)},
            ) from e
        if not token:
            raise LocalCredentialError("local token file is empty", details={"path": str(path)})
        return token


def _consume_exception(task: "asyncio.Future[str]") -> None:
    # Marks a failure as retrieved when every waiter was cancelled
    if not task.cancelled():
        task.exception()
