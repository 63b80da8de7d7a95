"""
Sui value types and their BCS encodings.

Covers the pieces the transaction builder needs: 32-byte addresses and
object ids, object references, and Move type tags parsed from their
canonical string form (``0x2::kiosk::Kiosk``, ``vector<u8>``,
``0x2::coin::Coin<0x2::sui::SUI>``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import base58
from aptos_sdk.bcs import Serializer

SUI_ADDRESS_LENGTH = 32
SUI_TYPE = "0x2::sui::SUI"

_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]+$")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def normalize_sui_address(value: str) -> str:
    """Left-pad a hex address or object id to 32 bytes, lower-cased.

    Raises:
        ValueError: If the value is not hex or longer than 32 bytes
    """
    value = value.strip()
    if not _HEX_RE.match(value):
        raise ValueError(f"Invalid Sui address: {value!r}")
    body = value[2:] if value.lower().startswith("0x") else value
    if len(body) > SUI_ADDRESS_LENGTH * 2:
        raise ValueError(f"Sui address too long: {value!r}")
    return "0x" + body.lower().rjust(SUI_ADDRESS_LENGTH * 2, "0")


normalize_sui_object_id = normalize_sui_address


def address_bytes(value: str) -> bytes:
    """Raw 32 bytes of an address."""
    return bytes.fromhex(normalize_sui_address(value)[2:])


def is_valid_sui_address(value: str) -> bool:
    """Whether ``value`` parses as an address."""
    try:
        normalize_sui_address(value)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class ObjectRef:
    """Reference to a specific version of an owned or immutable object."""

    object_id: str
    version: int
    digest: str

    def serialize(self, serializer: Serializer) -> None:
        serializer.fixed_bytes(address_bytes(self.object_id))
        serializer.u64(self.version)
        serializer.to_bytes(base58.b58decode(self.digest))


# Type tags -----------------------------------------------------------------

_PRIMITIVE_TAGS = {
    "bool": 0,
    "u8": 1,
    "u64": 2,
    "u128": 3,
    "address": 4,
    "signer": 5,
    "u16": 8,
    "u32": 9,
    "u256": 10,
}
_VECTOR_TAG = 6
_STRUCT_TAG = 7


@dataclass(frozen=True)
class StructTag:
    """A fully-qualified Move struct type."""

    address: str
    module: str
    name: str
    type_params: tuple[TypeTag, ...] = field(default_factory=tuple)

    def serialize(self, serializer: Serializer) -> None:
        serializer.fixed_bytes(address_bytes(self.address))
        serializer.str(self.module)
        serializer.str(self.name)
        serializer.uleb128(len(self.type_params))
        for param in self.type_params:
            param.serialize(serializer)

    def __str__(self) -> str:
        base = f"{normalize_sui_address(self.address)}::{self.module}::{self.name}"
        if self.type_params:
            base += "<" + ", ".join(str(p) for p in self.type_params) + ">"
        return base


@dataclass(frozen=True)
class TypeTag:
    """A Move type: primitive name, ``vector`` of an inner tag, or a struct."""

    kind: str
    inner: TypeTag | None = None
    struct: StructTag | None = None

    def serialize(self, serializer: Serializer) -> None:
        if self.kind == "vector":
            serializer.uleb128(_VECTOR_TAG)
            self.inner.serialize(serializer)
        elif self.kind == "struct":
            serializer.uleb128(_STRUCT_TAG)
            self.struct.serialize(serializer)
        else:
            serializer.uleb128(_PRIMITIVE_TAGS[self.kind])

    def __str__(self) -> str:
        if self.kind == "vector":
            return f"vector<{self.inner}>"
        if self.kind == "struct":
            return str(self.struct)
        return self.kind


def _split_type_args(body: str) -> list[str]:
    """Split ``A, B<C, D>, E`` on top-level commas."""
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in body:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


def parse_type_tag(value: str) -> TypeTag:
    """Parse a Move type from its string form.

    Raises:
        ValueError: If the string is not a valid type
    """
    value = value.strip()
    if value in _PRIMITIVE_TAGS:
        return TypeTag(kind=value)

    if value.startswith("vector<") and value.endswith(">"):
        return TypeTag(kind="vector", inner=parse_type_tag(value[len("vector<") : -1]))

    params: tuple[TypeTag, ...] = ()
    if "<" in value:
        if not value.endswith(">"):
            raise ValueError(f"Unbalanced type arguments: {value!r}")
        open_idx = value.index("<")
        params = tuple(parse_type_tag(p) for p in _split_type_args(value[open_idx + 1 : -1]))
        value = value[:open_idx]

    parts = value.split("::")
    if len(parts) != 3:
        raise ValueError(f"Invalid struct type: {value!r}")
    address, module, name = parts
    if not _IDENTIFIER_RE.match(module) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid identifier in type: {value!r}")

    return TypeTag(
        kind="struct",
        struct=StructTag(
            address=normalize_sui_address(address),
            module=module,
            name=name,
            type_params=params,
        ),
    )


def normalize_struct_type(value: str) -> str:
    """Canonical string of a type with every address padded to 32 bytes."""
    return str(parse_type_tag(value))


def parse_move_target(target: str) -> tuple[str, str, str]:
    """Split ``package::module::function``.

    Raises:
        ValueError: If the target is malformed
    """
    parts = target.split("::")
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"Invalid move call target: {target!r}")
    package, module, function = parts
    return normalize_sui_object_id(package), module, function
