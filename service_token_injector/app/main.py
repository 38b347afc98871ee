"""
Token Injector service.
"""

import os
import sys
from typing import Dict, Optional

import httpx

from shared.base_service import BaseService
from shared.config import InjectorConfig, load_config
from shared.errors import ConfigurationError
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from .authz.coordinator import RequestCoordinator
from .authz.models import CheckRequest, CheckResponse, extract_metadata_claims
from .cache.token_cache import TokenCache
from .exchange.pipeline import ExchangePipeline


class InjectorService(BaseService):
    """Injector service implementation."""

    def __init__(self, config: InjectorConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("injector", config)
        self.token_cache = TokenCache(refresh_threshold=config.refresh_threshold)
        self.pipeline = ExchangePipeline(config, transport=transport)
        self.coordinator = RequestCoordinator(config, self.token_cache, self.pipeline)

        self._setup_injector_routes()

    def _setup_injector_routes(self):
        """Set up injector-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "injector",
                "message": "Token Injector - Envoy external authorization",
                "version": "1.0.0"
            }

        @self.app.post("/check", response_model=CheckResponse, response_model_exclude_none=True)
        async def check(request: CheckRequest) -> CheckResponse:
            """Envoy ext_authz check: inject a bearer token or deny."""
            set_request_id(request.request_id)
            try:
                claims = extract_metadata_claims(request, self.config.metadata_namespace)
                if not claims:
                    self.logger.debug(
                        "No claims in route metadata",
                        namespace=self.config.metadata_namespace
                    )
                return await self.coordinator.check(claims)
            finally:
                clear_context()

    async def _check_dependencies(self) -> Dict[str, str]:
        """The mounted service-account token must be readable."""
        if os.access(self.config.k8s_token_path, os.R_OK):
            return {"k8s_token": "ok"}
        return {"k8s_token": "error"}


def create_app(config: Optional[InjectorConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create FastAPI application."""
    service = InjectorService(config or load_config(), transport=transport)
    return service.app


def main():
    try:
        config = load_config()
    except ConfigurationError as e:
        configure_logging("injector")
        get_logger("injector").critical("Configuration error", error=e.message, details=e.details)
        sys.exit(1)

    service = InjectorService(config)
    service.logger.info("Token injector listening", host=config.host, port=config.port)
    service.run()


if __name__ == "__main__":
    main()
