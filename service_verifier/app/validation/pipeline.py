"""
Verification pipeline for zkLogin signatures.
"""

import base64
import binascii
import time
from typing import Any, Optional

from shared.logging import get_logger
from shared.tracing import add_span_attributes, trace_operation
from ..codec import (
    BcsError,
    IntentMessage,
    IntentScope,
    ZkLoginAuthenticator,
    decode_generic_signature,
    decode_transaction_data,
)
from ..epoch.resolver import EpochResolver
from ..errors import GenericError, ParsingError, VerifyError
from ..jwks.store import KeyStore
from ..networks import DEFAULT_NETWORK
from ..zklogin.verifier import ProofVerificationError, ProofVerifier, VerifyParams
from .models import VerifyRequest, VerifyResponse


ADDRESS_HEX_LENGTH = 64


def normalize_address(value: str) -> str:
    """Return ``value`` as a 0x-prefixed, 32-byte hex address."""
    digits = value[2:] if value.lower().startswith("0x") else value
    if not digits or len(digits) > ADDRESS_HEX_LENGTH:
        raise ValueError(f"invalid address length {len(digits)}")
    int(digits, 16)
    return "0x" + digits.lower().rjust(ADDRESS_HEX_LENGTH, "0")


def _b64decode(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ParsingError(details={"field": field}) from None


class VerificationPipeline:
    """Decodes a request, resolves the epoch and runs the proof verifier."""

    def __init__(
        self,
        key_store: KeyStore,
        epoch_resolver: EpochResolver,
        verifier: ProofVerifier,
        metrics: Optional[Any] = None,
    ):
        self.key_store = key_store
        self.epoch_resolver = epoch_resolver
        self.verifier = verifier
        self.metrics = metrics
        self.logger = get_logger("verifier.pipeline")

    async def verify(self, request: VerifyRequest) -> VerifyResponse:
        """Verify a request. Raises a VerifyError subclass on any failure."""
        start_time = time.time()
        outcome = "internal_error"
        try:
            with trace_operation(
                "zklogin.verify",
                intent_scope=request.intent_scope,
                network=request.network.value if request.network else None,
            ):
                await self._verify(request)
            outcome = "verified"
        except VerifyError as e:
            outcome = e.code.lower()
            raise
        finally:
            self._record(outcome, time.time() - start_time)

        return VerifyResponse(is_verified=True)

    async def _verify(self, request: VerifyRequest):
        signature_bytes = _b64decode(request.signature, "signature")
        payload = _b64decode(request.payload, "bytes")

        authenticator = self._decode_authenticator(signature_bytes)
        intent_msg, author = self._build_intent_message(request, payload)
        self.logger.debug(
            "Intent message built",
            intent_scope=request.intent_scope,
            author=author,
            digest=intent_msg.digest().hex(),
        )

        epoch = await self.epoch_resolver.resolve(request.curr_epoch, request.network)
        add_span_attributes(epoch=epoch, max_epoch=authenticator.max_epoch)

        network = request.network or DEFAULT_NETWORK
        params = VerifyParams(
            jwks=self.key_store.snapshot(),
            supported_providers=(),
            env=network.env,
            verify_legacy_zklogin_address=True,
            accept_zklogin_in_multisig=True,
            zklogin_max_epoch_upper_bound_delta=None,
        )

        try:
            await self.verifier.verify(epoch, params, authenticator)
        except ProofVerificationError as e:
            self.logger.info("zkLogin verification failed", error=e.detail, epoch=epoch)
            raise GenericError(e.detail) from e

        self.logger.info("zkLogin signature verified", epoch=epoch, network=network.value)

    def _decode_authenticator(self, data: bytes) -> ZkLoginAuthenticator:
        try:
            signature = decode_generic_signature(data)
        except BcsError as e:
            raise ParsingError(details={"field": "signature", "error": str(e)}) from e

        if not isinstance(signature, ZkLoginAuthenticator):
            raise ParsingError(details={"field": "signature", "scheme": signature.scheme.name})
        return signature

    def _build_intent_message(self, request: VerifyRequest, payload: bytes):
        scope = IntentScope.from_name(request.intent_scope)

        if scope == IntentScope.TRANSACTION_DATA:
            try:
                tx_data = decode_transaction_data(payload)
            except BcsError as e:
                raise ParsingError(details={"field": "bytes", "error": str(e)}) from e
            return IntentMessage.transaction(payload), tx_data.sender

        if scope == IntentScope.PERSONAL_MESSAGE:
            if request.author is None:
                raise ParsingError(details={"field": "author"})
            try:
                author = normalize_address(request.author)
            except ValueError as e:
                raise ParsingError(details={"field": "author", "error": str(e)}) from e
            return IntentMessage.personal_message(payload), author

        raise ParsingError(details={"field": "intent_scope", "value": request.intent_scope})

    def _record(self, outcome: str, duration: float):
        if self.metrics:
            self.metrics.increment_counter("verifications_total", outcome=outcome)
            self.metrics.observe_histogram("verification_duration_seconds", duration, outcome=outcome)
