"""Configuration management for the Swift driver using Pydantic Settings."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHUNK_SIZE = 20 * 1024 * 1024
MIN_CHUNK_SIZE = 1 << 20


class SwiftConfig(BaseSettings):
    """Swift connection and layout configuration.

    Field aliases accept the flat parameter names used by registry-style
    driver configuration (``authurl``, ``chunksize``, ...).
    """

    model_config = SettingsConfigDict(
        env_prefix="SWIFT_DRIVER_SWIFT_", populate_by_name=True, extra="ignore"
    )

    username: str = ""
    password: str = Field(default="", repr=False)
    auth_url: str = Field(default="", validation_alias=AliasChoices("auth_url", "authurl"))
    tenant: str = ""
    tenant_id: str = Field(default="", validation_alias=AliasChoices("tenant_id", "tenantid"))
    domain: str = ""
    domain_id: str = Field(default="", validation_alias=AliasChoices("domain_id", "domainid"))
    region: str = ""
    container: str = ""
    prefix: str = ""
    insecure_skip_verify: bool = Field(
        default=False,
        validation_alias=AliasChoices("insecure_skip_verify", "insecureskipverify"),
    )
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        ge=MIN_CHUNK_SIZE,
        validation_alias=AliasChoices("chunk_size", "chunksize"),
    )

    def missing_required(self) -> list[str]:
        """Names of required parameters that are empty."""
        required = {
            "username": self.username,
            "password": self.password,
            "authurl": self.auth_url,
            "container": self.container,
        }
        return [name for name, value in required.items() if not value]


class ServerConfig(BaseSettings):
    """REST adapter configuration."""

    model_config = SettingsConfigDict(env_prefix="SWIFT_DRIVER_SERVER_")

    host: str = "0.0.0.0"
    port: int = 5000


class ObservabilityConfig(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(env_prefix="SWIFT_DRIVER_OBSERVABILITY_")

    log_level: str = "info"
    log_format: str = "json"
    otlp_endpoint: str = ""
    environment: str = "development"


class Config(BaseSettings):
    """Root configuration for the Swift driver."""

    model_config = SettingsConfigDict(
        env_prefix="SWIFT_DRIVER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    swift: SwiftConfig = Field(default_factory=SwiftConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()
