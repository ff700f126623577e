"""
Identity-provider key management.

Keeps the signing keys of the supported OpenID providers in memory for the
zkLogin verifier.

Key points:
- The store only grows; a (iss, kid) pair never changes once seen.
- Readers work on immutable snapshots and never block.
- The refresher runs in the background and survives provider outages.
"""

from .providers import JWKSFetcher, KeyFetchError, OIDCProvider, parse_jwks
from .refresher import KeyRefresher
from .store import KeyId, KeyMaterial, KeyStore

__all__ = [
    "JWKSFetcher",
    "KeyFetchError",
    "KeyId",
    "KeyMaterial",
    "KeyRefresher",
    "KeyStore",
    "OIDCProvider",
    "parse_jwks",
]
