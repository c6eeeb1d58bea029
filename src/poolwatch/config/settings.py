"""Application settings using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SNIPE_LIST_PATH = Path(__file__).resolve().parent.parent / "snipe-list.txt"


class Settings(BaseSettings):
    """PoolWatch configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Application
    app_name: str = Field(default="PoolWatch", description="Application name")
    debug: bool = Field(default=False, description="Pretty console logs instead of JSON")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum log level"
    )

    # Solana endpoints
    rpc_endpoint: str = Field(description="Solana JSON-RPC endpoint URL")
    rpc_websocket_endpoint: str = Field(description="Solana websocket endpoint URL")
    commitment_level: Literal["processed", "confirmed", "finalized"] = Field(
        default="confirmed", description="Commitment for subscriptions and fetches"
    )

    # Filters
    quote_mint: Literal["WSOL", "USDC"] = Field(
        default="WSOL", description="Quote token matched by server-side filters"
    )
    check_if_mint_is_renounced: bool = Field(
        default=True, description="Skip pools whose base mint can still be minted"
    )

    # Snipe list (allow-list mode)
    use_snipe_list: bool = Field(default=False, description="Only act on listed mints")
    snipe_list_path: Path = Field(
        default=DEFAULT_SNIPE_LIST_PATH, description="Newline-delimited mint list"
    )
    snipe_list_refresh_interval: int = Field(
        default=30000, ge=1, description="Milliseconds between snipe list reloads"
    )

    # Circuit Breaker
    circuit_breaker_threshold: int = Field(
        default=5, ge=1, description="Failures before circuit opens"
    )
    circuit_breaker_cooldown: int = Field(
        default=30, ge=1, description="Seconds before half-open"
    )

    @field_validator("rpc_endpoint")
    @classmethod
    def validate_rpc_endpoint(cls, v: str) -> str:
        """Validate RPC endpoint URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("RPC endpoint must start with http:// or https://")
        return v

    @field_validator("rpc_websocket_endpoint")
    @classmethod
    def validate_rpc_websocket_endpoint(cls, v: str) -> str:
        """Validate websocket endpoint URL format."""
        if not v.startswith(("ws://", "wss://")):
            raise ValueError("RPC websocket endpoint must start with ws:// or wss://")
        return v

    @property
    def snipe_list_refresh_seconds(self) -> float:
        """Refresh interval converted to seconds."""
        return self.snipe_list_refresh_interval / 1000.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]  # Values from env
