"""
Configuration management for the media storage API.

Settings are read from the environment (or a ``.env`` file) once at startup
and are immutable afterwards.
"""
import json
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
        frozen=True,
    )

    # Application
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    API_WORKERS: int = 1
    API_RELOAD: bool = False
    API_LOG_LEVEL: str = "info"

    # Profiles (comma-separated); "gcp" selects bucket storage
    ACTIVE_PROFILES: str = ""

    # Local storage
    MEDIA_STORAGE_DIR: str = "./data/media"
    PUBLIC_BASE_URL: str = ""

    # Cloud storage
    GCS_BUCKET: str = "eca-media-bucket"
    GCS_PROJECT: Optional[str] = None

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])

    # Monitoring
    ENABLE_METRICS: bool = True

    @validator("CORS_ORIGINS", pre=True)
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @validator("API_LOG_LEVEL")
    def normalize_log_level(cls, v):
        return v.lower()

    @property
    def active_profiles(self) -> List[str]:
        """Parse active profiles."""
        return [p.strip().lower() for p in self.ACTIVE_PROFILES.split(",") if p.strip()]

    @property
    def storage_profile(self) -> str:
        """Storage profile selected for this process."""
        return "gcp" if "gcp" in self.active_profiles else "local"

    @property
    def storage_backend_config(self) -> Dict[str, Any]:
        """Backend configuration for the selected storage profile."""
        if self.storage_profile == "gcp":
            return {
                "type": "gcs",
                "name": "gcs",
                "bucket": self.GCS_BUCKET,
                "project": self.GCS_PROJECT,
            }
        return {
            "type": "filesystem",
            "name": "local",
            "base_path": self.MEDIA_STORAGE_DIR,
            "public_base_url": self.PUBLIC_BASE_URL,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
