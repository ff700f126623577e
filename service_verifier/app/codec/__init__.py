"""
Ledger wire formats used by the verifier.

- bcs: BCS reader/writer primitives.
- signature: generic signature flags and the zkLogin authenticator layout.
- transaction: user transaction data.
- intent: intent scopes and intent messages.
"""

from .bcs import BcsError, BcsReader, BcsWriter
from .intent import Intent, IntentMessage, IntentScope
from .signature import (
    GenericSignature,
    SignatureScheme,
    ZkLoginAuthenticator,
    decode_generic_signature,
)
from .transaction import TransactionData, decode_transaction_data

__all__ = [
    "BcsError",
    "BcsReader",
    "BcsWriter",
    "GenericSignature",
    "Intent",
    "IntentMessage",
    "IntentScope",
    "SignatureScheme",
    "TransactionData",
    "ZkLoginAuthenticator",
    "decode_generic_signature",
    "decode_transaction_data",
]
