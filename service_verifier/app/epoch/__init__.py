"""
Current-epoch resolution against ledger full nodes.
"""

from .client import LedgerClient, LedgerClientError
from .resolver import EpochResolver

__all__ = ["EpochResolver", "LedgerClient", "LedgerClientError"]
