"""
Decoding of the JWT fragments carried by a zkLogin authenticator.

The authenticator does not carry the whole JWT. It carries the base64url
header and a base64url slice of the payload that covers one claim (the
issuer). The slice may start and end in the middle of a base64 quantum, so the
bits contributed by neighbouring characters have to be dropped before the
bytes can be read back.
"""

import json
from dataclasses import dataclass
from typing import Dict

from jose.utils import base64url_decode


class ClaimError(ValueError):
    """A claim or header fragment could not be decoded."""
    pass


_BASE64URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
_BASE64URL_INDEX: Dict[str, int] = {c: i for i, c in enumerate(_BASE64URL_ALPHABET)}


def _to_bits(value: str) -> str:
    try:
        return "".join(format(_BASE64URL_INDEX[c], "06b") for c in value)
    except KeyError as exc:
        raise ClaimError(f"Invalid base64url character {exc.args[0]!r}") from None


def decode_base64_url(value: str, index_mod_4: int) -> str:
    """Decode a base64url slice that starts at ``index_mod_4`` within its quantum."""
    if len(value) < 2:
        raise ClaimError("Base64 string smaller than 2")

    bits = _to_bits(value)

    first_offset = index_mod_4 % 4
    if first_offset == 1:
        bits = bits[2:]
    elif first_offset == 2:
        bits = bits[4:]
    elif first_offset == 3:
        raise ClaimError("Invalid first_char_offset")

    last_offset = (index_mod_4 + len(value) - 1) % 4
    if last_offset == 2:
        bits = bits[:-2]
    elif last_offset == 1:
        bits = bits[:-4]
    elif last_offset == 0:
        raise ClaimError("Invalid last_char_offset")

    if len(bits) % 8 != 0:
        raise ClaimError("Invalid bits length")

    raw = bytes(int(bits[i:i + 8], 2) for i in range(0, len(bits), 8))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ClaimError("Invalid UTF8 string") from exc


def verify_extended_claim(extended_claim: str, expected_key: str) -> str:
    """Parse ``"key":"value",`` (or ``...}``) and return the string value."""
    if not extended_claim.endswith((",", "}")):
        raise ClaimError("Invalid extended claim")

    try:
        parsed = json.loads("{" + extended_claim[:-1] + "}")
    except ValueError as exc:
        raise ClaimError("Invalid extended claim") from exc

    if not isinstance(parsed, dict) or len(parsed) != 1:
        raise ClaimError("Invalid extended claim")
    value = parsed.get(expected_key)
    if not isinstance(value, str):
        raise ClaimError("Invalid extended claim")
    return value


@dataclass(frozen=True)
class JWTHeader:
    alg: str
    kid: str
    typ: str = "JWT"

    @classmethod
    def from_base64(cls, header_base64: str) -> "JWTHeader":
        """Decode and check a JWT header. Only RS256 is accepted."""
        try:
            header = json.loads(base64url_decode(header_base64.encode("ascii")))
        except (UnicodeError, ValueError) as exc:
            raise ClaimError("Invalid header string") from exc

        if not isinstance(header, dict):
            raise ClaimError("Invalid header string")
        alg = header.get("alg")
        kid = header.get("kid")
        if alg != "RS256" or not isinstance(kid, str):
            raise ClaimError("Invalid header")
        return cls(alg=alg, kid=kid, typ=str(header.get("typ", "JWT")))


def recover_iss(value: str, index_mod_4: int) -> str:
    """Return the issuer carried by an ``iss`` claim slice."""
    return verify_extended_claim(decode_base64_url(value, index_mod_4), "iss")
