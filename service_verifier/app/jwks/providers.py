"""
OpenID providers and the JWKS fetcher used by the key refresher.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import httpx
from jose import jwk
from jose.exceptions import JOSEError

from shared.errors import ExternalServiceError
from shared.logging import get_logger
from .store import KeyId, KeyMaterial


class OIDCProvider(Enum):
    """Supported identity providers as (issuer, JWKS URL)."""

    GOOGLE = ("https://accounts.google.com", "https://www.googleapis.com/oauth2/v2/certs")
    FACEBOOK = ("https://www.facebook.com", "https://www.facebook.com/.well-known/oauth/openid/jwks/")
    APPLE = ("https://appleid.apple.com", "https://appleid.apple.com/auth/keys")
    SLACK = ("https://slack.com", "https://slack.com/openid/connect/keys")
    TWITCH = ("https://id.twitch.tv/oauth2", "https://id.twitch.tv/oauth2/keys")
    KAKAO = ("https://kauth.kakao.com", "https://kauth.kakao.com/.well-known/jwks.json")

    @property
    def iss(self) -> str:
        return self.value[0]

    @property
    def jwks_url(self) -> str:
        return self.value[1]

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class KeyFetchError(ExternalServiceError):
    """A provider's key set could not be fetched or parsed."""

    def __init__(self, provider: OIDCProvider, message: str, details: Optional[Dict[str, Any]] = None):
        self.provider = provider
        super().__init__(provider.display_name, message, details)


def parse_jwks(payload: Any, provider: OIDCProvider) -> List[Tuple[KeyId, KeyMaterial]]:
    """Parse a JWKS document. Any invalid key rejects the whole set."""
    if not isinstance(payload, dict) or not isinstance(payload.get("keys"), list):
        raise KeyFetchError(provider, "Invalid JWK response")

    parsed = []
    for key in payload["keys"]:
        if not isinstance(key, dict):
            raise KeyFetchError(provider, "Parse error")
        try:
            kid = key["kid"]
            kty = key["kty"]
            e = key["e"].rstrip("=")
            n = key["n"].rstrip("=")
        except (KeyError, AttributeError) as exc:
            raise KeyFetchError(provider, "Parse error", details={"missing": str(exc)}) from exc

        alg = key.get("alg", "RS256")
        if kty != "RSA" or alg != "RS256" or e != "AQAB":
            raise KeyFetchError(provider, "Invalid JWK", details={"kid": kid})

        material = KeyMaterial(kty=kty, e=e, n=n, alg=alg)
        try:
            jwk.construct(material.to_dict(), algorithm="RS256")
        except (JOSEError, ValueError) as exc:
            raise KeyFetchError(provider, "Invalid JWK", details={"kid": kid, "error": str(exc)}) from exc

        parsed.append((KeyId(iss=provider.iss, kid=str(kid)), material))

    return parsed


class JWKSFetcher:
    """Fetches published key sets over HTTP."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.logger = get_logger("verifier.jwks.fetcher")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def fetch(self, provider: OIDCProvider) -> List[Tuple[KeyId, KeyMaterial]]:
        """Fetch and parse one provider's current key set."""
        try:
            response = await self._client.get(provider.jwks_url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise KeyFetchError(provider, "JWKS request failed", details={"error": str(exc)}) from exc
        except ValueError as exc:
            raise KeyFetchError(provider, "JWKS response is not JSON") from exc

        keys = parse_jwks(payload, provider)
        self.logger.debug("JWKS fetched", provider=provider.display_name, keys_count=len(keys))
        return keys
