"""
Epoch resolution for verify requests.
"""

from typing import Callable, Optional

from shared.circuit_breaker import CircuitBreakerManager, CircuitBreakerOpenException
from shared.logging import get_logger
from shared.tracing import trace_operation
from ..errors import EpochResolutionError
from ..networks import DEFAULT_NETWORK, Network
from .client import LedgerClient, LedgerClientError


ClientFactory = Callable[[str], LedgerClient]


class EpochResolver:
    """Trusts a caller-supplied epoch, otherwise asks the network's full node."""

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        circuit_breakers: Optional[CircuitBreakerManager] = None,
        rpc_timeout: float = 10.0,
        metrics=None,
    ):
        self.circuit_breakers = circuit_breakers or CircuitBreakerManager()
        self.rpc_timeout = rpc_timeout
        self.client_factory = client_factory or self._default_client
        self.metrics = metrics
        self.logger = get_logger("verifier.epoch.resolver")

    def _default_client(self, rpc_url: str) -> LedgerClient:
        breaker = self.circuit_breakers.get_circuit_breaker(f"ledger:{rpc_url}")
        return LedgerClient(rpc_url, timeout=self.rpc_timeout, circuit_breaker=breaker)

    async def resolve(self, curr_epoch: Optional[int], network: Optional[Network]) -> int:
        """Return ``curr_epoch`` when given, else the ledger's latest epoch.

        Raises EpochResolutionError when the ledger cannot be queried.
        """
        if curr_epoch is not None:
            self._record("request", "success")
            return curr_epoch

        network = network or DEFAULT_NETWORK
        rpc_url = network.fullnode_url

        with trace_operation("epoch.resolve", network=network.value, rpc_url=rpc_url):
            try:
                client = self.client_factory(rpc_url)
                epoch = await client.get_latest_epoch()
            except (LedgerClientError, CircuitBreakerOpenException) as e:
                self.logger.warning(
                    "Cannot get epoch", network=network.value, rpc_url=rpc_url, error=str(e)
                )
                self._record("ledger", "error")
                raise EpochResolutionError(details={"network": network.value}) from e

        self._record("ledger", "success")
        self.logger.debug("Epoch resolved", network=network.value, epoch=epoch)
        return epoch

    def _record(self, source: str, status: str):
        if self.metrics:
            self.metrics.increment_counter("epoch_resolutions_total", source=source, status=status)
