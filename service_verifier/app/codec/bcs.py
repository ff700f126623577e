"""
Minimal BCS (Binary Canonical Serialization) reader and writer.

Only the primitives needed by the ledger types in this package are covered:
fixed-width little-endian integers, ULEB128 lengths, byte strings, UTF-8
strings, vectors and options. The reader is strict: ``finish()`` rejects
trailing input, and over-long or non-canonical lengths are refused.
"""

from __future__ import annotations

import struct
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")

MAX_SEQUENCE_LENGTH = (1 << 31) - 1
ADDRESS_LENGTH = 32


class BcsError(ValueError):
    """Raised when input is not valid BCS for the expected type."""


class BcsReader:
    """Cursor over a BCS-encoded buffer."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def fixed(self, length: int) -> bytes:
        if length < 0 or self._pos + length > len(self._data):
            raise BcsError(f"unexpected end of input reading {length} bytes at offset {self._pos}")
        chunk = self._data[self._pos:self._pos + length]
        self._pos += length
        return chunk

    def u8(self) -> int:
        return self.fixed(1)[0]

    def u16(self) -> int:
        return struct.unpack("<H", self.fixed(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.fixed(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.fixed(8))[0]

    def u128(self) -> int:
        return int.from_bytes(self.fixed(16), "little")

    def u256(self) -> int:
        return int.from_bytes(self.fixed(32), "little")

    def bool(self) -> bool:
        value = self.u8()
        if value > 1:
            raise BcsError(f"invalid bool byte {value}")
        return value == 1

    def uleb128(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self.u8()
            value |= (byte & 0x7F) << shift
            if not byte & 0x80:
                # Reject non-minimal encodings such as 0x80 0x00
                if shift > 0 and byte == 0:
                    raise BcsError("non-canonical ULEB128 encoding")
                break
            shift += 7
            if shift > 28:
                raise BcsError("ULEB128 value overflows u32")
        if value > MAX_SEQUENCE_LENGTH:
            raise BcsError(f"sequence length {value} exceeds maximum")
        return value

    def variant(self) -> int:
        return self.uleb128()

    def bytes(self) -> bytes:
        return self.fixed(self.uleb128())

    def string(self) -> str:
        raw = self.bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BcsError("invalid UTF-8 string") from exc

    def address(self) -> str:
        return "0x" + self.fixed(ADDRESS_LENGTH).hex()

    def vector(self, read_item: Callable[["BcsReader"], T]) -> List[T]:
        return [read_item(self) for _ in range(self.uleb128())]

    def option(self, read_item: Callable[["BcsReader"], T]) -> Optional[T]:
        tag = self.u8()
        if tag == 0:
            return None
        if tag == 1:
            return read_item(self)
        raise BcsError(f"invalid option tag {tag}")

    def finish(self) -> None:
        if self.remaining:
            raise BcsError(f"{self.remaining} trailing bytes after value")


class BcsWriter:
    """Append-only BCS encoder."""

    def __init__(self):
        self._buf = bytearray()

    def fixed(self, data: bytes) -> "BcsWriter":
        self._buf += data
        return self

    def u8(self, value: int) -> "BcsWriter":
        return self.fixed(struct.pack("<B", value))

    def u16(self, value: int) -> "BcsWriter":
        return self.fixed(struct.pack("<H", value))

    def u64(self, value: int) -> "BcsWriter":
        return self.fixed(struct.pack("<Q", value))

    def bool(self, value: bool) -> "BcsWriter":
        return self.u8(1 if value else 0)

    def uleb128(self, value: int) -> "BcsWriter":
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                self._buf.append(byte | 0x80)
            else:
                self._buf.append(byte)
                return self

    def bytes(self, data: bytes) -> "BcsWriter":
        return self.uleb128(len(data)).fixed(data)

    def string(self, value: str) -> "BcsWriter":
        return self.bytes(value.encode("utf-8"))

    def address(self, value: str) -> "BcsWriter":
        return self.fixed(bytes.fromhex(value[2:] if value.startswith("0x") else value))

    def to_bytes(self) -> bytes:
        return bytes(self._buf)
