"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "dev"
    service_name: str = "blob-gateway"
    log_level: str = "INFO"

    # Redis (blob metadata records)
    redis_url: str = "redis://localhost:6379/0"
    metadata_key_prefix: str = "__BLOB"

    # Cloudflare R2 / S3-compatible storage
    r2_endpoint: Optional[str] = None  # e.g., https://<account_id>.r2.cloudflarestorage.com
    r2_account_id: Optional[str] = None  # Used to derive the endpoint when r2_endpoint is unset
    r2_access_key: Optional[str] = None
    r2_secret_key: Optional[str] = None
    r2_region: str = "auto"  # R2 uses "auto" for region
    r2_bucket: str = "federise-objects"  # Private blobs
    r2_public_bucket: str = "federise-objects-public"  # Public blobs
    presign_expiration: int = 3600  # Presigned upload URL lifetime in seconds

    # Download streaming
    download_chunk_size: int = 64 * 1024

    # Origin used for gateway download URLs; request origin when unset
    gateway_base_url: Optional[str] = None

    # Firebase Authentication
    firebase_project_id: Optional[str] = None
    firebase_credentials_json: Optional[str] = None  # Path to JSON file or JSON string

    cors_allow_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def r2_endpoint_url(self) -> Optional[str]:
        """Explicit endpoint, or the R2 endpoint derived from the account id."""
        if self.r2_endpoint:
            return self.r2_endpoint
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None

    @property
    def signing_configured(self) -> bool:
        """Presigned URLs need explicit credentials, not the ambient chain."""
        return all([self.r2_endpoint_url, self.r2_access_key, self.r2_secret_key])


# Global settings instance
settings = Settings()
