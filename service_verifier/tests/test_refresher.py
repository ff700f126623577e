"""
Unit tests for the JWKS fetcher and KeyRefresher.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from shared.test_helpers import GOOGLE_ISS, test_data_factory as factory
from service_verifier.app.jwks.providers import JWKSFetcher, KeyFetchError, OIDCProvider, parse_jwks
from service_verifier.app.jwks.refresher import KeyRefresher
from service_verifier.app.jwks.store import KeyId


def mock_transport(routes):
    """httpx transport answering JSON per URL; unknown URLs get 500."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(500, json={"error": "unavailable"})
        return httpx.Response(200, json=body)

    return httpx.MockTransport(handler)


class TestParseJwks:
    """Test cases for JWKS parsing."""

    def test_parses_rsa_keys(self):
        keys = parse_jwks(factory.create_jwks("k1", "k2"), OIDCProvider.GOOGLE)

        # Assertions
        assert [key_id for key_id, _ in keys] == [KeyId(GOOGLE_ISS, "k1"), KeyId(GOOGLE_ISS, "k2")]
        assert all(material.alg == "RS256" for _, material in keys)

    def test_missing_alg_defaults_to_rs256(self):
        document = factory.create_jwks("k1")
        del document["keys"][0]["alg"]

        keys = parse_jwks(document, OIDCProvider.GOOGLE)
        assert keys[0][1].alg == "RS256"

    def test_rejects_non_rsa_key(self):
        document = factory.create_jwks("k1")
        document["keys"][0]["kty"] = "EC"

        with pytest.raises(KeyFetchError):
            parse_jwks(document, OIDCProvider.GOOGLE)

    def test_rejects_unexpected_exponent(self):
        document = factory.create_jwks("k1")
        document["keys"][0]["e"] = "Aw"

        with pytest.raises(KeyFetchError):
            parse_jwks(document, OIDCProvider.GOOGLE)

    def test_rejects_document_without_keys(self):
        with pytest.raises(KeyFetchError):
            parse_jwks({"issuer": GOOGLE_ISS}, OIDCProvider.GOOGLE)


class TestJWKSFetcher:
    """Test cases for JWKSFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        transport = mock_transport({OIDCProvider.APPLE.jwks_url: factory.create_jwks("apple-1")})
        fetcher = JWKSFetcher(transport=transport)

        keys = await fetcher.fetch(OIDCProvider.APPLE)
        await fetcher.close()

        # Assertions
        assert keys[0][0] == KeyId("https://appleid.apple.com", "apple-1")

    @pytest.mark.asyncio
    async def test_fetch_http_error(self):
        fetcher = JWKSFetcher(transport=mock_transport({}))

        with pytest.raises(KeyFetchError) as exc_info:
            await fetcher.fetch(OIDCProvider.GOOGLE)
        await fetcher.close()

        assert exc_info.value.provider == OIDCProvider.GOOGLE


class TestKeyRefresher:
    """Test cases for KeyRefresher."""

    @pytest.fixture
    def fetcher(self):
        return JWKSFetcher(transport=mock_transport({
            OIDCProvider.GOOGLE.jwks_url: factory.create_jwks("g1", "g2"),
            OIDCProvider.FACEBOOK.jwks_url: factory.create_jwks("f1"),
        }))

    @pytest.mark.asyncio
    async def test_cycle_populates_store(self, key_store, fetcher, metrics):
        """One cycle stores every key of every provider."""
        refresher = KeyRefresher(
            key_store, [OIDCProvider.GOOGLE, OIDCProvider.FACEBOOK], fetcher, backoff=0, metrics=metrics
        )

        added = await refresher.run_cycle()

        # Assertions
        assert added == 3
        assert KeyId(GOOGLE_ISS, "g1") in key_store
        assert KeyId("https://www.facebook.com", "f1") in key_store
        assert metrics.registry.get_sample_value(
            "jwks_refresh_total", {"provider": "Google", "status": "success"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_cycle_is_idempotent(self, key_store, fetcher):
        """Re-running with unchanged responses leaves the snapshot unchanged."""
        refresher = KeyRefresher(key_store, [OIDCProvider.GOOGLE, OIDCProvider.FACEBOOK], fetcher, backoff=0)

        await refresher.run_cycle()
        first = dict(key_store.snapshot())
        added = await refresher.run_cycle()

        # Assertions
        assert added == 0
        assert dict(key_store.snapshot()) == first

    @pytest.mark.asyncio
    async def test_failed_provider_backs_off_and_continues(self, key_store, fetcher, metrics):
        """A failing provider waits the backoff, then the next provider is fetched."""
        refresher = KeyRefresher(
            key_store, [OIDCProvider.SLACK, OIDCProvider.GOOGLE], fetcher, backoff=0.05, metrics=metrics
        )
        refresher._wait = AsyncMock()

        added = await refresher.run_cycle()

        # Assertions
        refresher._wait.assert_awaited_once_with(0.05)
        assert added == 2
        assert KeyId(GOOGLE_ISS, "g1") in key_store
        assert metrics.registry.get_sample_value(
            "jwks_refresh_total", {"provider": "Slack", "status": "error"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_does_not_abort_cycle(self, key_store, metrics):
        """Errors other than KeyFetchError are also isolated to their provider."""
        apple_keys = parse_jwks(factory.create_jwks("a1"), OIDCProvider.APPLE)
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=[RuntimeError("client closed"), apple_keys])
        refresher = KeyRefresher(
            key_store, [OIDCProvider.GOOGLE, OIDCProvider.APPLE], fetcher, backoff=0.05, metrics=metrics
        )
        refresher._wait = AsyncMock()

        added = await refresher.run_cycle()

        # Assertions
        assert [call.args[0] for call in fetcher.fetch.await_args_list] == [OIDCProvider.GOOGLE, OIDCProvider.APPLE]
        refresher._wait.assert_awaited_once_with(0.05)
        assert added == 1
        assert KeyId(OIDCProvider.APPLE.iss, "a1") in key_store
        assert metrics.registry.get_sample_value(
            "jwks_refresh_total", {"provider": "Google", "status": "error"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_unexpected_payload_does_not_raise(self, key_store):
        """Invalid documents are treated as a failed fetch."""
        fetcher = JWKSFetcher(transport=mock_transport({OIDCProvider.GOOGLE.jwks_url: {"nope": []}}))
        refresher = KeyRefresher(key_store, [OIDCProvider.GOOGLE], fetcher, backoff=0)

        added = await refresher.run_cycle()

        assert added == 0
        assert len(key_store) == 0

    @pytest.mark.asyncio
    async def test_start_and_stop(self, key_store, fetcher):
        """stop() ends the loop promptly even during a long interval."""
        refresher = KeyRefresher(key_store, [OIDCProvider.GOOGLE], fetcher, refresh_interval=3600, backoff=0)

        await refresher.start()
        for _ in range(50):
            if len(key_store):
                break
            await asyncio.sleep(0.01)
        assert refresher.running

        await asyncio.wait_for(refresher.stop(), timeout=1)

        # Assertions
        assert not refresher.running
        assert len(key_store) == 2

    @pytest.mark.asyncio
    async def test_stop_interrupts_backoff(self, key_store):
        """A refresher waiting out a long backoff still stops promptly."""
        fetcher = JWKSFetcher(transport=mock_transport({}))
        refresher = KeyRefresher(key_store, [OIDCProvider.GOOGLE], fetcher, backoff=3600)

        await refresher.start()
        await asyncio.sleep(0.05)
        await asyncio.wait_for(refresher.stop(), timeout=1)

        assert not refresher.running
