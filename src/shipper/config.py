"""
Configuration management for the Fluent shipper.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShipperConfig(BaseSettings):
    """
    Configuration settings for the Fluent shipper.

    All settings can be configured via environment variables with the SHIPPER_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHIPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Collector settings
    host: str = Field(
        default="127.0.0.1",
        description="Host of the collector's HTTP input"
    )
    port: int = Field(
        default=9880,
        ge=1,
        le=65535,
        description="Port of the collector's HTTP input"
    )
    connection_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait when opening a connection (also bounds each read/write)"
    )

    # Batching parameters
    batch_size: int = Field(
        default=200,
        ge=1,
        description="Maximum number of records encoded into a single request"
    )
    batches_per_connection: int = Field(
        default=10,
        ge=1,
        description="Maximum number of requests sent over a single connection"
    )

    # Write retry settings
    write_retries: int = Field(
        default=3,
        ge=1,
        description="Consecutive zero-byte writes tolerated before giving up on a request"
    )
    write_retry_delay: float = Field(
        default=0.001,
        ge=0,
        description="Seconds to sleep between write retries"
    )

    # Serialization
    content_type: str = Field(
        default="application/json",
        description="Content type produced by the serializer"
    )

    # Response draining
    drain_block_size: int = Field(
        default=1024,
        ge=1,
        description="Read buffers are rounded up to a multiple of this many bytes"
    )
    response_size_estimate: int = Field(
        default=128,
        ge=1,
        description="Expected response bytes per written request"
    )

    # RPC settings
    rpc_endpoint: str = Field(
        default="http://127.0.0.1:24444",
        description="HTTP endpoint of the collector's RPC server"
    )
    rpc_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for RPC calls"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def address(self) -> str:
        """Get the collector address as host:port."""
        return f"{self.host}:{self.port}"


# Global config instance
_config: Optional[ShipperConfig] = None


def get_config() -> ShipperConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ShipperConfig()
    return _config


def set_config(config: ShipperConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
