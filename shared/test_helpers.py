"""
Test helper functions and factory methods for the zkLogin verifier.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from jose.utils import base64url_encode


# 255 bytes of 0xC3, a syntactically valid RSA modulus for key parsing tests
TEST_RSA_MODULUS = "w8PD" * 85
TEST_RSA_EXPONENT = "AQAB"

GOOGLE_ISS = "https://accounts.google.com"
FACEBOOK_ISS = "https://www.facebook.com"


def b64url(data: bytes) -> str:
    """Unpadded base64url encoding."""
    return base64url_encode(data).decode("ascii")


@dataclass
class TestJWK:
    """Test provider key."""
    kid: str
    n: str = TEST_RSA_MODULUS
    e: str = TEST_RSA_EXPONENT
    kty: str = "RSA"
    alg: Optional[str] = "RS256"

    def to_dict(self) -> Dict[str, Any]:
        key = {"kty": self.kty, "kid": self.kid, "n": self.n, "e": self.e, "use": "sig"}
        if self.alg is not None:
            key["alg"] = self.alg
        return key


class TestDataFactory:
    """Factory for creating test data."""

    @staticmethod
    def create_jwks(*kids: str) -> Dict[str, Any]:
        """Create a JWKS document with one RS256 key per kid."""
        return {"keys": [TestJWK(kid).to_dict() for kid in kids]}

    @staticmethod
    def create_jwt_header(kid: str, alg: str = "RS256") -> str:
        """Create a base64url JWT header."""
        header = {"alg": alg, "kid": kid, "typ": "JWT"}
        return b64url(json.dumps(header, separators=(",", ":")).encode())

    @staticmethod
    def create_jwt_payload(iss: str = GOOGLE_ISS, **claims: Any) -> Dict[str, Any]:
        """Create a JWT payload with ``iss`` first and any extra claims after it."""
        payload = {"iss": iss, "aud": "zklogin-test", "sub": "1234567890", "nonce": "test-nonce"}
        payload.update(claims)
        return payload

    @staticmethod
    def encode_claim(payload: Dict[str, Any], claim: str = "iss") -> Tuple[str, int]:
        """Return the base64url slice of ``payload`` covering ``claim``.

        The slice covers ``"claim":value`` plus the following ``,`` or ``}``,
        and is returned with its start index modulo 4.
        """
        payload_json = json.dumps(payload, separators=(",", ":"))
        encoded = b64url(payload_json.encode())

        key = json.dumps(claim) + ":"
        start_byte = payload_json.index(key)
        end_byte = start_byte + len(key) + len(json.dumps(payload[claim], separators=(",", ":"))) + 1

        start = (4 * start_byte) // 3
        end = (4 * end_byte + 2) // 3
        return encoded[start:end], start % 4

    @staticmethod
    def create_jsonrpc_result(result: Any, request_id: int = 1) -> Dict[str, Any]:
        """Create a JSON-RPC success response."""
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    @staticmethod
    def create_jsonrpc_error(code: int = -32000, message: str = "Internal error", request_id: int = 1) -> Dict[str, Any]:
        """Create a JSON-RPC error response."""
        return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}

    @staticmethod
    def create_system_state(epoch: Any = 42) -> Dict[str, Any]:
        """Create a latest system state result."""
        return {"epoch": str(epoch) if isinstance(epoch, int) else epoch, "protocolVersion": "1"}

    @staticmethod
    def create_proof_points() -> Dict[str, List[Any]]:
        """Create Groth16 proof points as decimal strings."""
        return {
            "a": ["1", "2", "1"],
            "b": [["1", "2"], ["3", "4"], ["1", "0"]],
            "c": ["5", "6", "1"],
        }


class TestEnvironment:
    """Test environment configuration."""

    @staticmethod
    def get_mock_config() -> Dict[str, str]:
        """Get mock environment configuration."""
        return {
            "ZKLOGIN_ENV": "test",
            "ZKLOGIN_LOG_LEVEL": "debug",
            "ZKLOGIN_NETWORK": "localnet",
            "ZKLOGIN_JWK_FETCH_BACKOFF": "0",
            "ZKLOGIN_ENABLE_TRACING": "false",
        }


# Global instances for easy access
test_data_factory = TestDataFactory()
test_environment = TestEnvironment()
