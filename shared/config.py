"""
Shared configuration management for the Token Injector.
"""

from typing import Any, Dict, List

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("INJECTOR_ENV", "injector_env"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    debug: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Listener
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("HOST", "host"))
    port: int = Field(default=50051, validation_alias=AliasChoices("PORT", "port"))

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if value < 1 or value > 65535:
            raise ValueError(f"invalid port: {value}")
        return value

    @property
    def effective_log_level(self) -> str:
        """DEBUG=true wins over LOG_LEVEL."""
        return "debug" if self.debug else self.log_level


class InjectorConfig(BaseConfig):
    """Token Injector configuration."""

    # Workload identity federation
    k8s_token_path: str = Field(validation_alias=AliasChoices("K8S_TOKEN_PATH", "k8s_token_path"))
    project_number: str = Field(validation_alias=AliasChoices("PROJECT_NUMBER", "project_number"))
    workload_identity_pool: str = Field(
        validation_alias=AliasChoices("WORKLOAD_IDENTITY_POOL", "workload_identity_pool")
    )
    workload_provider: str = Field(validation_alias=AliasChoices("WORKLOAD_PROVIDER", "workload_provider"))
    service_account_email: str = Field(
        validation_alias=AliasChoices("SERVICE_ACCOUNT_EMAIL", "service_account_email")
    )

    # Upstream endpoints
    sts_url: str = Field(
        default="https://sts.googleapis.com/v1/token",
        validation_alias=AliasChoices("STS_URL", "sts_url"),
    )
    iam_credentials_url: str = Field(
        default="https://iamcredentials.googleapis.com",
        validation_alias=AliasChoices("IAM_CREDENTIALS_URL", "iam_credentials_url"),
    )
    exchange_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("EXCHANGE_TIMEOUT_SECONDS", "exchange_timeout_seconds"),
    )

    # Cache policy
    refresh_threshold: float = Field(
        default=0.75,
        gt=0,
        le=1,
        validation_alias=AliasChoices("REFRESH_THRESHOLD", "refresh_threshold"),
    )

    # Proxy integration
    metadata_namespace: str = Field(
        default="com.unitvectory.authzgcpk8stokeninjector",
        validation_alias=AliasChoices("METADATA_NAMESPACE", "metadata_namespace"),
    )


REQUIRED_ENV_VARS: Dict[str, str] = {
    "k8s_token_path": "K8S_TOKEN_PATH",
    "project_number": "PROJECT_NUMBER",
    "workload_identity_pool": "WORKLOAD_IDENTITY_POOL",
    "workload_provider": "WORKLOAD_PROVIDER",
    "service_account_email": "SERVICE_ACCOUNT_EMAIL",
}


def _missing_env_vars(exc: ValidationError) -> List[str]:
    missing = []
    for error in exc.errors():
        if error.get("type") != "missing":
            continue
        # Aliased fields report the first alias choice in loc
        field = str(error["loc"][0]) if error.get("loc") else ""
        env_name = REQUIRED_ENV_VARS.get(field.lower(), field.upper())
        if env_name not in missing:
            missing.append(env_name)
    # Keep the declaration order for stable messages
    order = list(REQUIRED_ENV_VARS.values())
    return sorted(missing, key=lambda name: order.index(name) if name in order else len(order))


def load_config(**overrides: Any) -> InjectorConfig:
    """Load configuration from the environment (and ``.env``), raising
    ``ConfigurationError`` with the names of any missing variables."""
    try:
        return InjectorConfig(**overrides)
    except ValidationError as exc:
        missing = _missing_env_vars(exc)
        if missing:
            raise ConfigurationError(
                f"missing required environment variables: {', '.join(missing)}",
                details={"missing": missing},
            ) from exc
        raise ConfigurationError(
            "invalid configuration",
            details={"errors": [error.get("msg") for error in exc.errors()]},
        ) from exc
