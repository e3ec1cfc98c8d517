"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Environment
    environment: str = "dev"
    log_level: str = "INFO"
    
    # Cloudflare R2 / S3-compatible storage
    r2_account_id: Optional[str] = None  # Used to derive the R2 endpoint
    r2_endpoint: Optional[str] = None  # Explicit override, e.g. AWS S3 or MinIO
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_public_url: str = ""  # Public base URL objects are served from
    r2_region: str = "auto"  # R2 uses "auto" for region
    r2_max_attempts: int = 3  # Total attempts per storage call (1 = no retry)
    
    # Client tooling (vgm-admin CLI)
    api_base_url: str = "http://localhost:4000"
    port: int = 4000
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    @field_validator("r2_public_url", "api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
    
    @property
    def storage_endpoint(self) -> Optional[str]:
        """Endpoint URL for the S3 API, explicit or derived from the R2 account id."""
        if self.r2_endpoint:
            return self.r2_endpoint
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None


# Global settings instance
settings = Settings()
