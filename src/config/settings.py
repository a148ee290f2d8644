"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Pydantic's BaseSettings gives us type validation at startup and a single
place that documents what is required.

Mock mode enables local development without object storage credentials.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..infrastructure.storage.client import StorageConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "HQMX Storage Gateway API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="",
        description="Comma-separated API keys accepted in the X-API-Key header. Empty rejects every request."
    )

    # Uploads by path are only accepted from inside this directory
    downloads_dir: Path = Field(
        default=Path("downloads"),
        description="Directory where download jobs leave finished files."
    )

    # R2/S3 Storage Configuration
    r2_account_id: str = Field(
        default="",
        description="Cloudflare account ID for R2. Used to build the endpoint if R2_ENDPOINT_URL is unset."
    )
    r2_endpoint_url: Optional[str] = Field(
        default=None,
        description="Object store endpoint URL."
    )
    r2_access_key_id: str = Field(
        default="",
        description="R2 access key ID"
    )
    r2_secret_access_key: str = Field(
        default="",
        description="R2 secret access key"
    )
    r2_bucket_name: str = Field(
        default="",
        description="Bucket holding downloaded artifacts"
    )
    r2_region: str = Field(
        default="auto",
        description="Signing region. R2 uses 'auto'."
    )
    r2_verify_ssl: bool = Field(
        default=True,
        description="Verify the store's TLS certificate. Affects the storage client only."
    )
    r2_ca_bundle: Optional[str] = Field(
        default=None,
        description="Path to a CA bundle trusted for the store endpoint only."
    )
    r2_connect_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Connection timeout in seconds"
    )
    r2_read_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Read timeout in seconds"
    )
    r2_max_pool_connections: int = Field(
        default=50,
        ge=1,
        description="Maximum pooled connections shared by all storage operations"
    )
    r2_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real R2. Enables local dev without object storage."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def r2_endpoint(self) -> str:
        """
        Resolve the store endpoint.

        An explicit R2_ENDPOINT_URL wins. Otherwise R2 endpoints follow
        https://{account_id}.r2.cloudflarestorage.com. Empty if neither is set.
        """
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return ""

    def validate_required_fields(self) -> list[str]:
        """
        Return the environment variables that must be set but aren't.

        Storage credentials are only required outside mock mode.
        """
        missing = []

        if not self.r2_mock_mode:
            if not self.r2_endpoint:
                missing.append("R2_ENDPOINT_URL or R2_ACCOUNT_ID")
            if not self.r2_access_key_id:
                missing.append("R2_ACCESS_KEY_ID")
            if not self.r2_secret_access_key:
                missing.append("R2_SECRET_ACCESS_KEY")
            if not self.r2_bucket_name:
                missing.append("R2_BUCKET_NAME")

        return missing

    def storage_config(self) -> StorageConfig:
        """Build the storage client configuration."""
        return StorageConfig(
            access_key_id=self.r2_access_key_id,
            secret_access_key=self.r2_secret_access_key,
            bucket_name=self.r2_bucket_name,
            endpoint_url=self.r2_endpoint,
            region=self.r2_region,
            verify_ssl=self.r2_verify_ssl,
            ca_bundle=self.r2_ca_bundle,
            connect_timeout=self.r2_connect_timeout,
            read_timeout=self.r2_read_timeout,
            max_pool_connections=self.r2_max_pool_connections,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
