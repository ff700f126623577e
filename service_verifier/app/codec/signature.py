"""
Generic signature decoding.

A serialized signature starts with a one-byte scheme flag. Simple schemes carry
``flag || signature || public_key`` with fixed lengths; the multisig, zkLogin
and passkey schemes carry a BCS-encoded body after the flag.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple, Union

from .bcs import BcsError, BcsReader, BcsWriter


class SignatureScheme(IntEnum):
    """Signature scheme flags."""
    ED25519 = 0x00
    SECP256K1 = 0x01
    SECP256R1 = 0x02
    MULTISIG = 0x03
    BLS12381 = 0x04
    ZKLOGIN = 0x05
    PASSKEY = 0x06


SIGNATURE_LENGTH = 64

PUBLIC_KEY_LENGTHS = {
    SignatureScheme.ED25519: 32,
    SignatureScheme.SECP256K1: 33,
    SignatureScheme.SECP256R1: 33,
}


@dataclass(frozen=True)
class SimpleSignature:
    """Single-key signature (Ed25519, Secp256k1 or Secp256r1)."""
    scheme: SignatureScheme
    signature: bytes
    public_key: bytes


@dataclass(frozen=True)
class OpaqueSignature:
    """Multisig or passkey signature, recognised by flag only."""
    scheme: SignatureScheme
    body: bytes


@dataclass(frozen=True)
class ZkLoginProof:
    """Groth16 proof points as decimal field-element strings."""
    a: Tuple[str, ...]
    b: Tuple[Tuple[str, ...], ...]
    c: Tuple[str, ...]

    def to_dict(self):
        return {"a": list(self.a), "b": [list(row) for row in self.b], "c": list(self.c)}


@dataclass(frozen=True)
class Claim:
    """Base64url fragment of the JWT payload plus its offset modulo 4."""
    value: str
    index_mod_4: int


@dataclass(frozen=True)
class ZkLoginInputs:
    proof_points: ZkLoginProof
    iss_base64_details: Claim
    header_base64: str
    address_seed: str


@dataclass(frozen=True)
class ZkLoginAuthenticator:
    """zkLogin signature: proof inputs, expiry epoch and the ephemeral signature."""
    inputs: ZkLoginInputs
    max_epoch: int
    user_signature: bytes

    @property
    def scheme(self) -> SignatureScheme:
        return SignatureScheme.ZKLOGIN

    @classmethod
    def from_bcs(cls, reader: BcsReader) -> "ZkLoginAuthenticator":
        proof = ZkLoginProof(
            a=tuple(reader.vector(BcsReader.string)),
            b=tuple(tuple(row) for row in reader.vector(lambda r: r.vector(BcsReader.string))),
            c=tuple(reader.vector(BcsReader.string)),
        )
        claim = Claim(value=reader.string(), index_mod_4=reader.u8())
        inputs = ZkLoginInputs(
            proof_points=proof,
            iss_base64_details=claim,
            header_base64=reader.string(),
            address_seed=reader.string(),
        )
        return cls(inputs=inputs, max_epoch=reader.u64(), user_signature=reader.bytes())

    def to_bytes(self) -> bytes:
        """Serialize with the scheme flag, as carried in a request."""
        writer = BcsWriter().u8(SignatureScheme.ZKLOGIN)
        proof = self.inputs.proof_points
        _write_strings(writer, proof.a)
        writer.uleb128(len(proof.b))
        for row in proof.b:
            _write_strings(writer, row)
        _write_strings(writer, proof.c)
        claim = self.inputs.iss_base64_details
        writer.string(claim.value).u8(claim.index_mod_4)
        writer.string(self.inputs.header_base64).string(self.inputs.address_seed)
        writer.u64(self.max_epoch).bytes(self.user_signature)
        return writer.to_bytes()


def _write_strings(writer: BcsWriter, items: Tuple[str, ...]) -> None:
    writer.uleb128(len(items))
    for item in items:
        writer.string(item)


GenericSignature = Union[SimpleSignature, OpaqueSignature, ZkLoginAuthenticator]


def decode_generic_signature(data: bytes) -> GenericSignature:
    """Decode a flagged signature. Raises BcsError on any malformed input."""
    if not data:
        raise BcsError("empty signature")

    try:
        scheme = SignatureScheme(data[0])
    except ValueError as exc:
        raise BcsError(f"unknown signature flag {data[0]:#04x}") from exc
    body = data[1:]

    if scheme in PUBLIC_KEY_LENGTHS:
        pk_length = PUBLIC_KEY_LENGTHS[scheme]
        if len(body) != SIGNATURE_LENGTH + pk_length:
            raise BcsError(f"invalid {scheme.name} signature length {len(body)}")
        return SimpleSignature(scheme, body[:SIGNATURE_LENGTH], body[SIGNATURE_LENGTH:])

    if scheme == SignatureScheme.ZKLOGIN:
        reader = BcsReader(body)
        authenticator = ZkLoginAuthenticator.from_bcs(reader)
        reader.finish()
        return authenticator

    if scheme in (SignatureScheme.MULTISIG, SignatureScheme.PASSKEY):
        if not body:
            raise BcsError(f"empty {scheme.name} signature body")
        return OpaqueSignature(scheme, body)

    # BLS12381 is a committee scheme, never a user signature
    raise BcsError(f"unsupported signature scheme {scheme.name}")
