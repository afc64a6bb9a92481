"""
Configuration Settings.

This module defines the bridge configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and a .env
file without explicit dotenv loading.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class SecretSourcesConfig(BaseModel):
    """Where the wallet private key may be resolved from, in priority order."""

    private_key: Optional[str] = Field(
        default=None, alias="PRIVATE_KEY", repr=False, description="Wallet private key (0x-prefixed hex)"
    )
    keychain_service: Optional[str] = Field(
        default=None, alias="PAYTOLL_KEYCHAIN_SERVICE", description="macOS keychain service holding the key"
    )
    keychain_account: str = Field(
        default="default", alias="PAYTOLL_KEYCHAIN_ACCOUNT", description="macOS keychain account name"
    )
    secret_service_service: Optional[str] = Field(
        default=None,
        alias="PAYTOLL_SECRET_SERVICE_SERVICE",
        description="Linux Secret Service 'service' attribute holding the key",
    )
    secret_service_account: str = Field(
        default="default",
        alias="PAYTOLL_SECRET_SERVICE_ACCOUNT",
        description="Linux Secret Service 'account' attribute",
    )
    private_key_command: Optional[str] = Field(
        default=None,
        alias="PAYTOLL_PRIVATE_KEY_COMMAND",
        description="Shell command whose stdout is the private key (e.g. a password manager CLI)",
    )

    model_config = {"populate_by_name": True}


class ChainConfig(BaseModel):
    """On-chain execution configuration."""

    rpc_urls: Dict[int, str] = Field(
        default_factory=dict,
        alias="PAYTOLL_RPC_URLS",
        description="JSON object mapping chain id to RPC URL, overriding the public defaults",
    )
    tx_confirmation_timeout: float = Field(
        default=60.0,
        alias="PAYTOLL_TX_CONFIRMATION_TIMEOUT",
        description="Seconds to wait for a transaction receipt",
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Bridge settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =====================================================================
    # PayToll API Configuration
    # =====================================================================
    api_url: str = Field(
        default="http://localhost:3000",
        description="PayToll API base URL",
        alias="PAYTOLL_API_URL",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request HTTP timeout in seconds",
        alias="PAYTOLL_REQUEST_TIMEOUT",
    )
    free_tier_daily_calls: int = Field(
        default=5,
        ge=0,
        description="Daily free-tier call allowance (informational, enforced server-side)",
        alias="PAYTOLL_FREE_TIER_DAILY_CALLS",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="PAYTOLL_LOG_LEVEL",
    )

    # =====================================================================
    # Wallet Configuration
    # =====================================================================
    private_key: Optional[str] = Field(default=None, alias="PRIVATE_KEY", repr=False)
    keychain_service: Optional[str] = Field(default=None, alias="PAYTOLL_KEYCHAIN_SERVICE")
    keychain_account: str = Field(default="default", alias="PAYTOLL_KEYCHAIN_ACCOUNT")
    secret_service_service: Optional[str] = Field(default=None, alias="PAYTOLL_SECRET_SERVICE_SERVICE")
    secret_service_account: str = Field(default="default", alias="PAYTOLL_SECRET_SERVICE_ACCOUNT")
    private_key_command: Optional[str] = Field(default=None, alias="PAYTOLL_PRIVATE_KEY_COMMAND")
    require_wallet: bool = Field(
        default=False,
        description="Fail startup instead of falling back to the free tier when no key is found",
        alias="PAYTOLL_REQUIRE_WALLET",
    )

    # =====================================================================
    # Chain Configuration
    # =====================================================================
    rpc_urls: Dict[int, str] = Field(default_factory=dict, alias="PAYTOLL_RPC_URLS")
    tx_confirmation_timeout: float = Field(default=60.0, gt=0, alias="PAYTOLL_TX_CONFIRMATION_TIMEOUT")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def secret_sources(self) -> SecretSourcesConfig:
        """Get wallet secret source configuration."""
        return SecretSourcesConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def chain(self) -> ChainConfig:
        """Get on-chain execution configuration."""
        return ChainConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
