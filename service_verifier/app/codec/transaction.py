"""
Transaction data decoding.

Decodes the canonical BCS form of user transaction data far enough to validate
the whole payload and recover its execution parts (kind, sender, gas data).
Only programmable transactions can be signed by users; system transaction
kinds are rejected.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .bcs import BcsError, BcsReader


@dataclass(frozen=True)
class ObjectRef:
    object_id: str
    version: int
    digest: bytes


@dataclass(frozen=True)
class SharedObject:
    object_id: str
    initial_shared_version: int
    mutable: bool


@dataclass(frozen=True)
class PureArg:
    value: bytes


@dataclass(frozen=True)
class ObjectArg:
    kind: str
    object: Union[ObjectRef, SharedObject]


CallArg = Union[PureArg, ObjectArg]


@dataclass(frozen=True)
class Argument:
    kind: str
    index: Optional[int] = None
    result_index: Optional[int] = None


@dataclass(frozen=True)
class Command:
    kind: str
    fields: tuple


@dataclass(frozen=True)
class ProgrammableTransaction:
    inputs: Tuple[CallArg, ...]
    commands: Tuple[Command, ...]


@dataclass(frozen=True)
class GasData:
    payment: Tuple[ObjectRef, ...]
    owner: str
    price: int
    budget: int


@dataclass(frozen=True)
class TransactionData:
    kind: ProgrammableTransaction
    sender: str
    gas_data: GasData
    expiration_epoch: Optional[int]

    def execution_parts(self) -> Tuple[ProgrammableTransaction, str, GasData]:
        return self.kind, self.sender, self.gas_data


DIGEST_LENGTH = 32
MAX_TYPE_TAG_DEPTH = 16

TYPE_TAG_PRIMITIVES = {
    0: "bool", 1: "u8", 2: "u64", 3: "u128", 4: "address", 5: "signer",
    8: "u16", 9: "u32", 10: "u256",
}


def _object_ref(reader: BcsReader) -> ObjectRef:
    object_id = reader.address()
    version = reader.u64()
    digest = reader.bytes()
    if len(digest) != DIGEST_LENGTH:
        raise BcsError(f"invalid object digest length {len(digest)}")
    return ObjectRef(object_id, version, digest)


def _call_arg(reader: BcsReader) -> CallArg:
    tag = reader.variant()
    if tag == 0:
        return PureArg(reader.bytes())
    if tag != 1:
        raise BcsError(f"unknown call arg variant {tag}")

    object_tag = reader.variant()
    if object_tag == 0:
        return ObjectArg("imm_or_owned", _object_ref(reader))
    if object_tag == 1:
        return ObjectArg("shared", SharedObject(reader.address(), reader.u64(), reader.bool()))
    if object_tag == 2:
        return ObjectArg("receiving", _object_ref(reader))
    raise BcsError(f"unknown object arg variant {object_tag}")


def _type_tag(reader: BcsReader, depth: int = 0) -> str:
    if depth > MAX_TYPE_TAG_DEPTH:
        raise BcsError("type tag nesting too deep")
    tag = reader.variant()
    if tag in TYPE_TAG_PRIMITIVES:
        return TYPE_TAG_PRIMITIVES[tag]
    if tag == 6:
        return f"vector<{_type_tag(reader, depth + 1)}>"
    if tag == 7:
        address = reader.address()
        module = reader.string()
        name = reader.string()
        params = reader.vector(lambda r: _type_tag(r, depth + 1))
        suffix = f"<{', '.join(params)}>" if params else ""
        return f"{address}::{module}::{name}{suffix}"
    raise BcsError(f"unknown type tag variant {tag}")


def _argument(reader: BcsReader) -> Argument:
    tag = reader.variant()
    if tag == 0:
        return Argument("gas_coin")
    if tag == 1:
        return Argument("input", reader.u16())
    if tag == 2:
        return Argument("result", reader.u16())
    if tag == 3:
        return Argument("nested_result", reader.u16(), reader.u16())
    raise BcsError(f"unknown argument variant {tag}")


def _modules(reader: BcsReader) -> tuple:
    return tuple(reader.vector(BcsReader.bytes))


def _dependencies(reader: BcsReader) -> tuple:
    return tuple(reader.vector(BcsReader.address))


def _arguments(reader: BcsReader) -> tuple:
    return tuple(reader.vector(_argument))


def _command(reader: BcsReader) -> Command:
    tag = reader.variant()
    if tag == 0:
        package = reader.address()
        module = reader.string()
        function = reader.string()
        type_arguments = tuple(reader.vector(_type_tag))
        return Command("move_call", (package, module, function, type_arguments, _arguments(reader)))
    if tag == 1:
        return Command("transfer_objects", (_arguments(reader), _argument(reader)))
    if tag == 2:
        return Command("split_coins", (_argument(reader), _arguments(reader)))
    if tag == 3:
        return Command("merge_coins", (_argument(reader), _arguments(reader)))
    if tag == 4:
        return Command("publish", (_modules(reader), _dependencies(reader)))
    if tag == 5:
        return Command("make_move_vec", (reader.option(_type_tag), _arguments(reader)))
    if tag == 6:
        return Command("upgrade", (_modules(reader), _dependencies(reader), reader.address(), _argument(reader)))
    raise BcsError(f"unknown command variant {tag}")


def _transaction_kind(reader: BcsReader) -> ProgrammableTransaction:
    tag = reader.variant()
    if tag != 0:
        raise BcsError(f"transaction kind {tag} is not user-signable")
    inputs = tuple(reader.vector(_call_arg))
    commands = tuple(reader.vector(_command))
    return ProgrammableTransaction(inputs, commands)


def _gas_data(reader: BcsReader) -> GasData:
    payment = tuple(reader.vector(_object_ref))
    return GasData(payment=payment, owner=reader.address(), price=reader.u64(), budget=reader.u64())


def _expiration(reader: BcsReader) -> Optional[int]:
    tag = reader.variant()
    if tag == 0:
        return None
    if tag == 1:
        return reader.u64()
    raise BcsError(f"unknown expiration variant {tag}")


def decode_transaction_data(data: bytes) -> TransactionData:
    """Decode BCS transaction data. Raises BcsError on malformed input."""
    reader = BcsReader(data)
    version = reader.variant()
    if version != 0:
        raise BcsError(f"unknown transaction data version {version}")

    kind = _transaction_kind(reader)
    sender = reader.address()
    gas_data = _gas_data(reader)
    expiration = _expiration(reader)
    reader.finish()

    return TransactionData(kind=kind, sender=sender, gas_data=gas_data, expiration_epoch=expiration)
