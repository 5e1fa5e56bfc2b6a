# stock_count/settings.py
"""
Stock Count Settings - blob storage selection, admin secret, logging.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices


@dataclass(frozen=True)
class BlobsConfig:
    """Everything backend resolution needs, resolved once at startup."""
    namespace_provider: str = "auto"
    site_id: Optional[str] = None
    api_token: Optional[str] = None
    api_url: str = "https://api.netlify.com/api/v1/blobs"
    timeout: float = 30.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.site_id and self.api_token)


class Settings(BaseSettings):
    # =========================================================================
    # Local storage (auto-context blobs, logs)
    # =========================================================================
    STOCK_COUNT_DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "stock-data"),
        validation_alias=AliasChoices("STOCK_COUNT_DATA_ROOT", "DATA_ROOT"),
    )

    # =========================================================================
    # Blob namespaces
    # =========================================================================
    NAMESPACE_PROVIDER: str = Field(default="auto", validation_alias="NAMESPACE_PROVIDER")
    NETLIFY_SITE_ID: str = Field(default="", validation_alias="NETLIFY_SITE_ID")
    NETLIFY_API_TOKEN: str = Field(default="", validation_alias="NETLIFY_API_TOKEN")
    BLOBS_API_URL: str = Field(
        default="https://api.netlify.com/api/v1/blobs",
        validation_alias="BLOBS_API_URL",
    )
    BLOBS_TIMEOUT: float = Field(default=30.0, validation_alias="BLOBS_TIMEOUT")

    # =========================================================================
    # Admin + HTTP
    # =========================================================================
    ADMIN_KEY: str = Field(default="", validation_alias="ADMIN_KEY")
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8000",
        ],
        validation_alias="CORS_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    def blobs_config(self) -> BlobsConfig:
        return BlobsConfig(
            namespace_provider=(self.NAMESPACE_PROVIDER or "auto").strip().lower(),
            site_id=self.NETLIFY_SITE_ID or None,
            api_token=self.NETLIFY_API_TOKEN or None,
            api_url=self.BLOBS_API_URL.rstrip("/"),
            timeout=self.BLOBS_TIMEOUT,
        )


settings = Settings()
