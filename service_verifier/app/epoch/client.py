"""
JSON-RPC client for ledger full nodes.
"""

from typing import Any, List, Optional

import httpx

from shared.circuit_breaker import CircuitBreaker
from shared.logging import get_logger


class LedgerClientError(Exception):
    """A ledger RPC call failed or returned an unusable result."""
    pass


class LedgerClient:
    """Minimal JSON-RPC 2.0 client for a single full node."""

    LATEST_SYSTEM_STATE = "mysx_getLatestMysSystemState"

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not rpc_url.startswith(("http://", "https://")):
            raise LedgerClientError(f"Invalid RPC URL: {rpc_url}")

        self.rpc_url = rpc_url
        self.timeout = timeout
        self.circuit_breaker = circuit_breaker
        self.transport = transport
        self.logger = get_logger("verifier.epoch.client")
        self._request_id = 0

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Invoke ``method`` and return its ``result`` member."""
        if self.circuit_breaker:
            return await self.circuit_breaker.call(self._call, method, params or [])
        return await self._call(method, params or [])

    async def _call(self, method: str, params: List[Any]) -> Any:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise LedgerClientError(f"RPC request failed: {e}") from e
        except ValueError as e:
            raise LedgerClientError("RPC response is not JSON") from e

        if not isinstance(body, dict):
            raise LedgerClientError("RPC response is not an object")
        if body.get("error") is not None:
            raise LedgerClientError(f"RPC error: {body['error']}")
        if "result" not in body:
            raise LedgerClientError("RPC response has no result")

        return body["result"]

    async def get_latest_epoch(self) -> int:
        """Return the epoch of the latest system state."""
        result = await self.call(self.LATEST_SYSTEM_STATE)
        epoch = result.get("epoch") if isinstance(result, dict) else None

        # Full nodes serialize u64 values as decimal strings
        if isinstance(epoch, bool):
            epoch = None
        if isinstance(epoch, str) and epoch.isdigit():
            epoch = int(epoch)
        if not isinstance(epoch, int) or epoch < 0:
            raise LedgerClientError(f"Invalid epoch in system state: {epoch!r}")

        self.logger.debug("Latest epoch fetched", rpc_url=self.rpc_url, epoch=epoch)
        return epoch
