"""
zkLogin authenticator verification.

``ZkLoginVerifier`` performs the checks that only need the authenticator, the
epoch and the cached provider keys. The Groth16 proof check is handed to a
``ProofBackend``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple

import httpx

from shared.logging import get_logger
from shared.tracing import trace_operation
from ..codec.signature import ZkLoginAuthenticator
from ..jwks.store import KeyId, KeyMaterial
from .claims import ClaimError, JWTHeader, recover_iss


class ZkLoginEnv(str, Enum):
    """Selects the verifying key used for the proof."""
    PROD = "Prod"
    TEST = "Test"


class ProofVerificationError(Exception):
    """The authenticator was rejected. The message is reported to the caller."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


@dataclass(frozen=True)
class VerifyParams:
    jwks: Mapping[KeyId, KeyMaterial]
    supported_providers: Tuple[str, ...]
    env: ZkLoginEnv
    verify_legacy_zklogin_address: bool
    accept_zklogin_in_multisig: bool
    zklogin_max_epoch_upper_bound_delta: Optional[int]


class ProofVerifier(Protocol):
    async def verify(self, epoch: int, params: VerifyParams, authenticator: ZkLoginAuthenticator) -> None:
        ...


class ProofBackend(Protocol):
    async def verify_proof(
        self,
        authenticator: ZkLoginAuthenticator,
        iss: str,
        key: KeyMaterial,
        env: ZkLoginEnv,
    ) -> None:
        ...


class RemoteProofBackend:
    """Checks Groth16 proofs through an HTTP proof service.

    The service receives the proof inputs and the provider key as JSON and
    answers ``{"valid": bool, "error": str}``. Without a URL every proof is
    rejected.
    """

    def __init__(
        self,
        url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("verifier.zklogin.backend")

    async def verify_proof(
        self,
        authenticator: ZkLoginAuthenticator,
        iss: str,
        key: KeyMaterial,
        env: ZkLoginEnv,
    ) -> None:
        if not self.url:
            raise ProofVerificationError("Proof backend not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=_proof_request(authenticator, iss, key, env))
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            self.logger.warning("Proof backend request failed", url=self.url, error=str(e))
            raise ProofVerificationError("Proof backend unavailable") from e
        except ValueError as e:
            raise ProofVerificationError("Proof backend returned invalid response") from e

        if not isinstance(body, dict) or body.get("valid") is not True:
            error = body.get("error") if isinstance(body, dict) else None
            raise ProofVerificationError(error or "Groth16 proof verify failed")


def _proof_request(
    authenticator: ZkLoginAuthenticator, iss: str, key: KeyMaterial, env: ZkLoginEnv
) -> Dict[str, Any]:
    inputs = authenticator.inputs
    return {
        "proof_points": inputs.proof_points.to_dict(),
        "iss_base64_details": {
            "value": inputs.iss_base64_details.value,
            "index_mod_4": inputs.iss_base64_details.index_mod_4,
        },
        "header_base64": inputs.header_base64,
        "address_seed": inputs.address_seed,
        "max_epoch": authenticator.max_epoch,
        "iss": iss,
        "jwk": key.to_dict(),
        "env": env.value,
    }


class ZkLoginVerifier:
    """Default proof verifier."""

    def __init__(self, backend: ProofBackend):
        self.backend = backend
        self.logger = get_logger("verifier.zklogin")

    async def verify(self, epoch: int, params: VerifyParams, authenticator: ZkLoginAuthenticator) -> None:
        """Raise ProofVerificationError unless the authenticator is valid at ``epoch``."""
        max_epoch = authenticator.max_epoch
        if max_epoch < epoch:
            raise ProofVerificationError(f"ZKLogin expired at epoch {max_epoch}")

        delta = params.zklogin_max_epoch_upper_bound_delta
        if delta is not None and max_epoch - epoch > delta:
            raise ProofVerificationError(
                f"ZKLogin max epoch too large {max_epoch}, current epoch {epoch}, "
                f"max accepted: {epoch + delta}"
            )

        inputs = authenticator.inputs
        try:
            iss = recover_iss(inputs.iss_base64_details.value, inputs.iss_base64_details.index_mod_4)
            header = JWTHeader.from_base64(inputs.header_base64)
        except ClaimError as e:
            raise ProofVerificationError(str(e)) from e

        if params.supported_providers and iss not in params.supported_providers:
            raise ProofVerificationError(f"OIDC provider not supported: {iss}")

        key_id = KeyId(iss=iss, kid=header.kid)
        key = params.jwks.get(key_id)
        if key is None:
            raise ProofVerificationError(f"JWK not found ({iss} - {header.kid})")

        with trace_operation("zklogin.verify_proof", iss=iss, kid=header.kid, env=params.env.value):
            await self.backend.verify_proof(authenticator, iss, key, params.env)

        self.logger.debug("zkLogin proof verified", iss=iss, kid=header.kid, epoch=epoch)
