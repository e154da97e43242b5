"""
Application configuration using Pydantic Settings.

Supports loading from environment variables and .env files.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class StorageAccount:
    """One independently authenticated remote drive."""

    name: str
    refresh_secret: str = field(repr=False)
    account_ref: str = ""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============ Application ============
    app_name: str = "TaskShare Storage Gateway"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # ============ Server ============
    host: str = "0.0.0.0"
    port: int = 8000

    # ============ CORS ============
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # ============ OneDrive Accounts ============
    onedrive_client_id: Optional[str] = None
    onedrive_client_secret: Optional[str] = None
    onedrive_tenant_id: str = "common"
    onedrive_refresh_tokens: str = ""  # comma-separated, one per account
    onedrive_refresh_token_1: Optional[str] = None
    onedrive_account_names: str = ""  # comma-separated, optional
    onedrive_scope: str = "https://graph.microsoft.com/Files.ReadWrite.All offline_access"
    onedrive_app_folder: str = "TaskShare"
    onedrive_images_folder: str = "images"
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    login_base_url: str = "https://login.microsoftonline.com"

    # ============ Limits & Timeouts ============
    max_upload_mb: int = 10
    upload_timeout: float = 30.0
    token_timeout: float = 15.0
    download_timeout: float = 15.0
    token_cache_ttl: int = 0  # seconds, 0 disables caching

    # ============ Local Fallback ============
    local_upload_path: str = "server/uploads"

    # ============ Logging ============
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def storage_accounts(self) -> list[StorageAccount]:
        """
        Build the ordered account list.

        Order follows the refresh token order and determines the
        round-robin sequence. Accounts without a refresh token are dropped.
        """
        tokens = [t.strip() for t in self.onedrive_refresh_tokens.split(",") if t.strip()]
        if not tokens and self.onedrive_refresh_token_1:
            tokens = [self.onedrive_refresh_token_1.strip()]

        names = [n.strip() for n in self.onedrive_account_names.split(",") if n.strip()]

        accounts = []
        for i, token in enumerate(tokens):
            name = names[i] if i < len(names) else ("Primary Account" if i == 0 else f"Account {i + 1}")
            accounts.append(
                StorageAccount(name=name, refresh_secret=token, account_ref=f"user{i + 1}")
            )
        return accounts

    @property
    def is_gateway_configured(self) -> bool:
        """Check if remote storage has credentials and at least one account."""
        return all([
            self.onedrive_client_id,
            self.onedrive_client_secret,
            self.storage_accounts,
        ])


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
