"""
Periodic refresh of identity-provider keys into the key store.
"""

import asyncio
from typing import Any, Optional, Sequence

from shared.logging import get_logger
from .providers import JWKSFetcher, KeyFetchError, OIDCProvider
from .store import KeyStore


class KeyRefresher:
    """Pulls each provider's key set on an interval and merges it into the store."""

    def __init__(
        self,
        store: KeyStore,
        providers: Sequence[OIDCProvider],
        fetcher: JWKSFetcher,
        refresh_interval: float = 3600,
        backoff: float = 30.0,
        metrics: Optional[Any] = None,
    ):
        self.store = store
        self.providers = tuple(providers)
        self.fetcher = fetcher
        self.refresh_interval = refresh_interval
        self.backoff = backoff
        self.metrics = metrics
        self.logger = get_logger("verifier.jwks.refresher")

        self.refresh_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self.refresh_task is not None and not self.refresh_task.done()

    async def start(self):
        """Start the refresh loop."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self.refresh_task = asyncio.create_task(self.run())
        self.logger.info(
            "Key refresher started",
            providers=[p.display_name for p in self.providers],
            interval=self.refresh_interval,
        )

    async def stop(self):
        """Stop the refresh loop."""
        self._stop_event.set()
        if self.refresh_task:
            self.refresh_task.cancel()
            try:
                await self.refresh_task
            except asyncio.CancelledError:
                pass
            self.refresh_task = None

        self.logger.info("Key refresher stopped")

    async def run(self):
        """Refresh until stopped."""
        while not self._stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception as e:
                self.logger.error("Error in key refresh cycle", error=str(e), exc_info=e)
            await self._wait(self.refresh_interval)

    async def run_cycle(self) -> int:
        """Fetch every provider once. Returns the number of keys added."""
        added = 0
        for provider in self.providers:
            if self._stop_event.is_set():
                break

            try:
                keys = await self.fetcher.fetch(provider)
            except KeyFetchError as e:
                self.logger.warning(
                    "Error when fetching JWK",
                    provider=provider.display_name,
                    error=e.message,
                    details=e.details,
                )
                self._record(provider, "error")
                # The backoff holds up the remaining providers of this cycle
                await self._wait(self.backoff)
                continue
            except Exception as e:
                self.logger.error(
                    "Unexpected error when fetching JWK",
                    provider=provider.display_name,
                    error=str(e),
                    exc_info=e,
                )
                self._record(provider, "error")
                await self._wait(self.backoff)
                continue

            for key_id, material in keys:
                if self.store.merge_insert(key_id, material):
                    added += 1
            self._record(provider, "success")

        self.logger.debug("Key refresh cycle complete", keys_added=added, keys_count=len(self.store))
        return added

    async def _wait(self, seconds: float):
        """Sleep for ``seconds`` or until stop is requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _record(self, provider: OIDCProvider, status: str):
        if self.metrics:
            self.metrics.increment_counter("jwks_refresh_total", provider=provider.display_name, status=status)
