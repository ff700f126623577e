"""
Ledger networks.

``Network`` is what a verify request names; it selects the full node used to
resolve the current epoch and the proof-verification environment.
``NetworkConfig`` describes the deployment the service runs for and which
identity providers it refreshes keys from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from shared.errors import ConfigurationError
from .jwks.providers import OIDCProvider
from .zklogin.verifier import ZkLoginEnv


class Network(str, Enum):
    MAINNET = "Mainnet"
    TESTNET = "Testnet"
    DEVNET = "Devnet"
    LOCALNET = "Localnet"

    @property
    def fullnode_url(self) -> str:
        return _FULLNODES[self][0]

    @property
    def env(self) -> ZkLoginEnv:
        return _FULLNODES[self][1]


_FULLNODES = {
    Network.MAINNET: ("https://fullnode.mainnet.mysocial.network:8082", ZkLoginEnv.PROD),
    Network.TESTNET: ("https://fullnode.testnet.mysocial.network:8082", ZkLoginEnv.PROD),
    Network.DEVNET: ("https://fullnode.devnet.mysocial.network:8082", ZkLoginEnv.TEST),
    Network.LOCALNET: ("http://127.0.0.1:9000", ZkLoginEnv.TEST),
}

DEFAULT_NETWORK = Network.MAINNET


_ALL_PROVIDERS = (
    OIDCProvider.GOOGLE,
    OIDCProvider.FACEBOOK,
    OIDCProvider.APPLE,
    OIDCProvider.SLACK,
    OIDCProvider.TWITCH,
    OIDCProvider.KAKAO,
)


@dataclass(frozen=True)
class NetworkConfig:
    """Deployment settings selected by the ``--network`` flag."""
    name: str
    rpc_url: str
    faucet_url: Optional[str] = None
    providers: Tuple[OIDCProvider, ...] = field(default_factory=tuple)

    @classmethod
    def for_name(cls, name: str) -> "NetworkConfig":
        try:
            return NETWORK_CONFIGS[name.lower()]
        except KeyError:
            raise ConfigurationError(
                f"Unknown network: {name}",
                details={"supported": sorted(NETWORK_CONFIGS)},
            ) from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rpc_url": self.rpc_url,
            "faucet_url": self.faucet_url,
            "jwk_providers": [p.display_name for p in self.providers],
        }


NETWORK_CONFIGS = {
    "mainnet": NetworkConfig(
        name="mainnet",
        rpc_url="https://mainnet.mysocial.network/rpc",
        providers=_ALL_PROVIDERS,
    ),
    "testnet": NetworkConfig(
        name="testnet",
        rpc_url="https://testnet.mysocial.network/rpc",
        faucet_url="https://faucet.mysocial.network",
        providers=_ALL_PROVIDERS,
    ),
    "devnet": NetworkConfig(
        name="devnet",
        rpc_url="https://devnet.mysocial.network/rpc",
        faucet_url="https://devnet.mysocial.network/faucet",
        providers=(OIDCProvider.GOOGLE, OIDCProvider.FACEBOOK),
    ),
    "localnet": NetworkConfig(
        name="localnet",
        rpc_url="http://localhost:9000/rpc",
        faucet_url="http://localhost:9123/gas",
        providers=(OIDCProvider.GOOGLE,),
    ),
}
