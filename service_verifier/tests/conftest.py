"""
Shared fixtures for verifier tests.
"""

import base64

import pytest
from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from shared.test_helpers import GOOGLE_ISS, TestJWK, test_data_factory as factory
from service_verifier.app.codec import BcsWriter, ZkLoginAuthenticator
from service_verifier.app.codec.signature import Claim, ZkLoginInputs, ZkLoginProof
from service_verifier.app.jwks.store import KeyId, KeyMaterial, KeyStore


SENDER = "0x" + "ab" * 32
GAS_OWNER = "0x" + "cd" * 32
GAS_COIN = "0x" + "01" * 32
TEST_KID = "test-kid-1"


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def make_authenticator(
    kid: str = TEST_KID,
    iss: str = GOOGLE_ISS,
    max_epoch: int = 10,
    header_alg: str = "RS256",
) -> ZkLoginAuthenticator:
    """Build a zkLogin authenticator whose claims name ``iss`` and ``kid``."""
    value, index_mod_4 = factory.encode_claim(factory.create_jwt_payload(iss))
    points = factory.create_proof_points()
    inputs = ZkLoginInputs(
        proof_points=ZkLoginProof(
            a=tuple(points["a"]),
            b=tuple(tuple(row) for row in points["b"]),
            c=tuple(points["c"]),
        ),
        iss_base64_details=Claim(value=value, index_mod_4=index_mod_4),
        header_base64=factory.create_jwt_header(kid, alg=header_alg),
        address_seed="1234567890",
    )
    return ZkLoginAuthenticator(inputs=inputs, max_epoch=max_epoch, user_signature=bytes([0]) + b"\x11" * 96)


def make_transaction_bytes(sender: str = SENDER, expiration: int = None) -> bytes:
    """Build BCS transaction data: one pure input, one transfer command."""
    writer = BcsWriter()
    writer.uleb128(0)  # TransactionData::V1
    writer.uleb128(0)  # ProgrammableTransaction
    writer.uleb128(1).uleb128(0).bytes(b"\x05" * 8)  # inputs: [Pure(u64)]
    writer.uleb128(1).uleb128(1)  # commands: [TransferObjects]
    writer.uleb128(1).uleb128(0)  # objects: [GasCoin]
    writer.uleb128(1).u16(0)  # recipient: Input(0)
    writer.address(sender)
    writer.uleb128(1).address(GAS_COIN).u64(7).bytes(b"\x22" * 32)  # payment
    writer.address(GAS_OWNER).u64(1000).u64(5000000)
    if expiration is None:
        writer.uleb128(0)
    else:
        writer.uleb128(1).u64(expiration)
    return writer.to_bytes()


def make_ed25519_signature() -> bytes:
    return bytes([0x00]) + b"\x01" * 64 + b"\x02" * 32


def key_material(n: str = None) -> KeyMaterial:
    jwk = TestJWK(TEST_KID) if n is None else TestJWK(TEST_KID, n=n)
    return KeyMaterial(kty=jwk.kty, e=jwk.e, n=jwk.n, alg=jwk.alg)


@pytest.fixture
def metrics():
    """Verifier metrics on an isolated registry."""
    return MetricsCollector("verifier", registry=CollectorRegistry())


@pytest.fixture
def key_store(metrics):
    """Empty key store."""
    return KeyStore(metrics=metrics)


@pytest.fixture
def google_key_id():
    return KeyId(iss=GOOGLE_ISS, kid=TEST_KID)


@pytest.fixture
def populated_store(key_store, google_key_id):
    """Key store holding the key the default authenticator names."""
    key_store.merge_insert(google_key_id, key_material())
    return key_store


@pytest.fixture
def authenticator():
    return make_authenticator()


@pytest.fixture
def zklogin_signature(authenticator):
    """Base64 zkLogin signature as carried in a request."""
    return b64(authenticator.to_bytes())


@pytest.fixture
def transaction_bytes():
    return make_transaction_bytes()


@pytest.fixture
def authenticator_factory():
    return make_authenticator


@pytest.fixture
def transaction_factory():
    return make_transaction_bytes


@pytest.fixture
def ed25519_signature():
    return b64(make_ed25519_signature())


@pytest.fixture
def material_factory():
    return key_material
