"""
Shared configuration management for the zkLogin verifier.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ZKLOGIN_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Observability
    enable_tracing: bool = False
    otel_exporter: str = "http://localhost:4317"
    enable_console_tracing: bool = False

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    # Ledger network the deployment serves (mainnet, testnet, devnet, localnet)
    network: str = "testnet"

    # Identity-provider key refresh
    jwk_refresh_interval: int = 3600
    jwk_fetch_backoff: float = 30.0
    jwk_fetch_timeout: float = 10.0

    # Ledger RPC
    rpc_timeout: float = 10.0

    # Groth16 proof backend
    proof_backend_url: Optional[str] = None
    proof_backend_timeout: float = 10.0

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, default_port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    Keyword overrides (e.g. from the command line) win over the environment.
    Overrides set to None are ignored, including ``port``.
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}
    port = overrides.pop("port", default_port)
    return ServiceConfig(service_name=service_name, port=port, **overrides)
