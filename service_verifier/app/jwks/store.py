"""
Concurrent store of identity-provider signing keys.
"""

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from shared.logging import get_logger


@dataclass(frozen=True)
class KeyId:
    """Key identifier: issuer plus the provider's key id (``kid``)."""
    iss: str
    kid: str


@dataclass(frozen=True)
class KeyMaterial:
    """Public RSA key as published in a provider's JWKS."""
    kty: str
    e: str
    n: str
    alg: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kty": self.kty, "e": self.e, "n": self.n, "alg": self.alg}


class KeyStore:
    """Grow-only, first-write-wins mapping of KeyId to KeyMaterial.

    Readers take lock-free snapshots: every write publishes a fresh immutable
    mapping, so a snapshot is never mutated after it is handed out. Writers
    serialize on a lock held for a single test-and-insert only.
    """

    def __init__(self, metrics: Optional[Any] = None):
        self._keys: Mapping[KeyId, KeyMaterial] = MappingProxyType({})
        self._write_lock = threading.Lock()
        self.metrics = metrics
        self.logger = get_logger("verifier.jwks.store")

    def snapshot(self) -> Mapping[KeyId, KeyMaterial]:
        """Return the current point-in-time mapping (read-only)."""
        return self._keys

    def merge_insert(self, key_id: KeyId, material: KeyMaterial) -> bool:
        """Insert ``material`` unless ``key_id`` is already present.

        Returns True when the key was added.
        """
        with self._write_lock:
            current = self._keys
            if key_id in current:
                return False
            updated = dict(current)
            updated[key_id] = material
            self._keys = MappingProxyType(updated)
            size = len(updated)

        if self.metrics:
            self.metrics.set_gauge("jwks_keys", size)
        self.logger.info("JWK added", iss=key_id.iss, kid=key_id.kid, keys_count=size)
        return True

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._keys
