"""
Errors returned to callers of the verify endpoint.
"""

from typing import Any, Dict, Optional

from shared.errors import ServiceException


class VerifyError(ServiceException):
    """Base for every failure reported by ``POST /verify``."""

    status_code = 400


class ParsingError(VerifyError):
    """The request could not be decoded."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("PARSING_ERROR", "Parsing error", details)


class GenericError(VerifyError):
    """The proof verifier rejected the authenticator."""

    def __init__(self, detail: str, details: Optional[Dict[str, Any]] = None):
        self.detail = detail
        super().__init__("GENERIC_ERROR", detail, details)


class EpochResolutionError(VerifyError):
    """The current epoch could not be obtained from the ledger."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("EPOCH_RESOLUTION_ERROR", "Cannot get epoch", details)
