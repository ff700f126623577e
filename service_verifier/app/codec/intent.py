"""
Intent-scoped messages: the canonical form of what a user signs.
"""

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .bcs import BcsWriter


class IntentScope(IntEnum):
    TRANSACTION_DATA = 0
    TRANSACTION_EFFECTS = 1
    CHECKPOINT_SUMMARY = 2
    PERSONAL_MESSAGE = 3
    SENDER_SIGNED_TRANSACTION = 4
    PROOF_OF_POSSESSION = 5
    HEADER_DIGEST = 6
    BRIDGE_EVENT_UNUSED = 7
    CONSENSUS_BLOCK = 8

    @classmethod
    def from_name(cls, name: str) -> Optional["IntentScope"]:
        """Look up a scope by its wire name, e.g. ``TransactionData``."""
        return _SCOPES_BY_NAME.get(name)

    @property
    def wire_name(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


_SCOPES_BY_NAME = {scope.wire_name: scope for scope in IntentScope}


class IntentVersion(IntEnum):
    V0 = 0


class AppId(IntEnum):
    MYS = 0
    NARWHAL = 1
    CONSENSUS = 2


@dataclass(frozen=True)
class Intent:
    scope: IntentScope
    version: IntentVersion = IntentVersion.V0
    app_id: AppId = AppId.MYS

    @classmethod
    def mys_transaction(cls) -> "Intent":
        return cls(IntentScope.TRANSACTION_DATA)

    @classmethod
    def personal_message(cls) -> "Intent":
        return cls(IntentScope.PERSONAL_MESSAGE)

    def to_bytes(self) -> bytes:
        return bytes([self.scope, self.version, self.app_id])


@dataclass(frozen=True)
class IntentMessage:
    """An intent followed by the BCS encoding of the signed value."""
    intent: Intent
    value: bytes

    @classmethod
    def transaction(cls, tx_bytes: bytes) -> "IntentMessage":
        # Transaction payloads are already canonical BCS
        return cls(Intent.mys_transaction(), tx_bytes)

    @classmethod
    def personal_message(cls, message: bytes) -> "IntentMessage":
        return cls(Intent.personal_message(), BcsWriter().bytes(message).to_bytes())

    def to_bytes(self) -> bytes:
        return self.intent.to_bytes() + self.value

    def digest(self) -> bytes:
        """Blake2b-256 digest, the value an ephemeral key signs."""
        return hashlib.blake2b(self.to_bytes(), digest_size=32).digest()
