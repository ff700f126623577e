"""
zkLogin verifier service.
"""

import argparse
from typing import Any, Dict, Optional, Sequence

from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from .epoch.resolver import EpochResolver
from .jwks.providers import JWKSFetcher, OIDCProvider
from .jwks.refresher import KeyRefresher
from .jwks.store import KeyStore
from .networks import NetworkConfig
from .validation.models import VerifyRequest, VerifyResponse
from .validation.pipeline import VerificationPipeline
from .zklogin.verifier import ProofVerifier, RemoteProofBackend, ZkLoginVerifier


SERVICE_NAME = "verifier"
DEFAULT_PORT = 8080


class VerifierService(BaseService):
    """zkLogin verifier service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        key_store: Optional[KeyStore] = None,
        fetcher: Optional[JWKSFetcher] = None,
        providers: Optional[Sequence[OIDCProvider]] = None,
        epoch_resolver: Optional[EpochResolver] = None,
        verifier: Optional[ProofVerifier] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config)
        self.network_config = NetworkConfig.for_name(self.config.network)

        self.key_store = key_store or KeyStore(metrics=self.metrics)
        self.fetcher = fetcher or JWKSFetcher(timeout=self.config.jwk_fetch_timeout)
        self.refresher = KeyRefresher(
            self.key_store,
            self.network_config.providers if providers is None else providers,
            self.fetcher,
            refresh_interval=self.config.jwk_refresh_interval,
            backoff=self.config.jwk_fetch_backoff,
            metrics=self.metrics,
        )
        self.epoch_resolver = epoch_resolver or EpochResolver(
            rpc_timeout=self.config.rpc_timeout, metrics=self.metrics
        )
        self.verifier = verifier or ZkLoginVerifier(
            RemoteProofBackend(self.config.proof_backend_url, timeout=self.config.proof_backend_timeout)
        )
        self.pipeline = VerificationPipeline(
            self.key_store, self.epoch_resolver, self.verifier, metrics=self.metrics
        )

        self._setup_verifier_routes()

    def _setup_verifier_routes(self):
        """Set up verifier-specific routes."""

        @self.app.get("/", response_class=PlainTextResponse)
        async def ping():
            """Ping endpoint."""
            return "Pong! zkLogin Verifier is running"

        @self.app.post("/verify", response_model=VerifyResponse)
        async def verify(request: VerifyRequest):
            """Verify a zkLogin signature."""
            return await self.pipeline.verify(request)

        @self.app.get("/config")
        async def network_config():
            """Show the deployment network configuration."""
            return self.network_config.to_dict()

    async def on_startup(self) -> None:
        self.logger.info(
            "Starting zkLogin verifier",
            network=self.network_config.name,
            rpc_url=self.network_config.rpc_url,
            port=self.config.port,
        )
        if not self.config.proof_backend_url:
            self.logger.warning("No proof backend configured, all proofs will be rejected")
        await self.refresher.start()

    async def on_shutdown(self) -> None:
        await self.refresher.stop()
        await self.fetcher.close()

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Check verifier dependencies."""
        return {
            "jwks": {
                "keys": len(self.key_store),
                "refresher": "running" if self.refresher.running else "stopped",
            },
            "ledger": self.epoch_resolver.circuit_breakers.states(),
            "proof_backend": "configured" if self.config.proof_backend_url else "missing",
        }


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = VerifierService(config)
    return service.app


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="zklogin-verifier", description="zkLogin verifier service")
    parser.add_argument("--network", choices=["mainnet", "testnet", "devnet", "localnet"], default=None,
                        help="Network to run on (default: testnet)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: 8080)")
    parser.add_argument("--jwk-refresh-interval", type=int, default=None,
                        help="JWK refresh interval in seconds (default: 3600)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    config = get_config(
        SERVICE_NAME,
        DEFAULT_PORT,
        network=args.network,
        port=args.port,
        jwk_refresh_interval=args.jwk_refresh_interval,
    )
    service = VerifierService(config)
    service.run()


if __name__ == "__main__":
    main()
