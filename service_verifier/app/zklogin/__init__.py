"""
zkLogin proof verification.
"""

from .claims import ClaimError, JWTHeader, decode_base64_url, recover_iss, verify_extended_claim
from .verifier import (
    ProofBackend,
    ProofVerificationError,
    ProofVerifier,
    RemoteProofBackend,
    VerifyParams,
    ZkLoginEnv,
    ZkLoginVerifier,
)

__all__ = [
    "ClaimError",
    "JWTHeader",
    "ProofBackend",
    "ProofVerificationError",
    "ProofVerifier",
    "RemoteProofBackend",
    "VerifyParams",
    "ZkLoginEnv",
    "ZkLoginVerifier",
    "decode_base64_url",
    "recover_iss",
    "verify_extended_claim",
]
