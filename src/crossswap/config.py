"""Application configuration using pydantic-settings.

The upstream API key lives only on the proxy side; the swap core talks to the
proxy through ``fusion_api_url``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Browser origins allowed to call the proxy (all origins in debug mode)",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/crossswap.db",
        description="Order record store connection URL",
    )

    # ======================
    # 1inch upstream (proxy side)
    # ======================
    oneinch_api_key: str = Field(default="", description="1inch developer portal API key")
    oneinch_api_url: str = Field(
        default="https://api.1inch.dev", description="1inch API base URL"
    )

    # ======================
    # Swap core
    # ======================
    fusion_api_url: str = Field(
        default="http://127.0.0.1:8000/api/v1",
        description="Base URL of the Fusion+ proxy used by the swap core",
    )
    http_timeout: float = Field(default=30.0, description="HTTP request timeout (seconds)")
    quote_debounce_seconds: float = Field(
        default=0.5, description="Delay before an amount edit triggers a quote request"
    )
    status_poll_interval: float = Field(
        default=5.0, description="Order status polling interval (seconds)"
    )
    receipt_timeout: float = Field(
        default=180.0, description="Maximum wait for an approval receipt (seconds)"
    )

    # ======================
    # Local wallet
    # ======================
    wallet_private_key: Optional[str] = Field(
        default=None, description="Hex private key for the local signing wallet"
    )

    # ======================
    # Chain RPC Endpoints
    # ======================
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com", description="Ethereum RPC URL")
    bsc_rpc_url: str = Field(
        default="https://bsc-dataseed.binance.org", description="BSC RPC URL"
    )
    matic_rpc_url: str = Field(default="https://polygon-rpc.com", description="Polygon RPC URL")
    arbitrum_rpc_url: str = Field(
        default="https://arb1.arbitrum.io/rpc", description="Arbitrum RPC URL"
    )
    optimism_rpc_url: str = Field(
        default="https://mainnet.optimism.io", description="Optimism RPC URL"
    )
    avax_rpc_url: str = Field(
        default="https://api.avax.network/ext/bc/C/rpc", description="Avalanche RPC URL"
    )
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def rpc_urls(self) -> dict[int, str]:
        """RPC URLs keyed by EVM chain id."""
        return {
            1: self.eth_rpc_url,
            56: self.bsc_rpc_url,
            137: self.matic_rpc_url,
            42161: self.arbitrum_rpc_url,
            10: self.optimism_rpc_url,
            43114: self.avax_rpc_url,
            8453: self.base_rpc_url,
        }

    def get_rpc_url(self, chain_id: int) -> str:
        """Get RPC URL for a chain id."""
        return self.rpc_urls.get(chain_id, "")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "cors_origins": self.cors_origins,
            "database_url": self._redact_url(self.database_url),
            "oneinch": {
                "url": self.oneinch_api_url,
                "api_key": "***" if self.oneinch_api_key else "(not set)",
            },
            "swap": {
                "fusion_api_url": self.fusion_api_url,
                "http_timeout": self.http_timeout,
                "quote_debounce_seconds": self.quote_debounce_seconds,
                "status_poll_interval": self.status_poll_interval,
            },
            "wallet_configured": bool(self.wallet_private_key),
            "chains": {str(chain_id): url for chain_id, url in self.rpc_urls.items()},
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
