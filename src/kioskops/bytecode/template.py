"""
Move Bytecode Template.

Reads and writes compiled Move modules so a pre-compiled template can be
re-branded before it is published: identifiers are renamed (the identifier
table stays sorted and every reference is remapped) and constants in the
constant pool are replaced.

Only the tables that reference identifiers or hold constants are decoded;
all other tables are carried as raw bytes, so an unmodified module
serializes back byte-for-byte.

Binary layout:
    magic (4 bytes) | version (u32 LE) | table count (uleb128)
    table headers: kind (u8), offset (uleb128), length (uleb128)
    table contents
    self module handle index (uleb128)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from aptos_sdk.bcs import Deserializer, Serializer

logger = logging.getLogger(__name__)

MOVE_MAGIC = bytes.fromhex("a11ceb0b")
ADDRESS_LENGTH = 32
VERSION_MASK = 0x00FFFFFF

_IDENTIFIER_RE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9_]*|_[A-Za-z0-9_]+)$")


class TemplateError(Exception):
    """Raised for malformed modules or invalid template edits."""

    pass


class TableKind(IntEnum):
    MODULE_HANDLES = 0x1
    STRUCT_HANDLES = 0x2
    FUNCTION_HANDLES = 0x3
    FUNCTION_INST = 0x4
    SIGNATURES = 0x5
    CONSTANT_POOL = 0x6
    IDENTIFIERS = 0x7
    ADDRESS_IDENTIFIERS = 0x8
    STRUCT_DEFS = 0xA
    STRUCT_DEF_INST = 0xB
    FUNCTION_DEFS = 0xC
    FIELD_HANDLE = 0xD
    FIELD_INST = 0xE
    FRIEND_DECLS = 0xF
    METADATA = 0x10
    ENUM_DEFS = 0x11
    ENUM_DEF_INST = 0x12
    VARIANT_HANDLES = 0x13
    VARIANT_INST_HANDLES = 0x14


# Tables whose entries name identifiers this module does not decode
_UNSUPPORTED_FOR_RENAME = {
    TableKind.ENUM_DEFS,
    TableKind.ENUM_DEF_INST,
    TableKind.VARIANT_HANDLES,
    TableKind.VARIANT_INST_HANDLES,
}


# Signature tokens ------------------------------------------------------------


class TokenKind(IntEnum):
    BOOL = 0x1
    U8 = 0x2
    U64 = 0x3
    U128 = 0x4
    ADDRESS = 0x5
    REFERENCE = 0x6
    MUTABLE_REFERENCE = 0x7
    STRUCT = 0x8
    TYPE_PARAMETER = 0x9
    VECTOR = 0xA
    STRUCT_INST = 0xB
    SIGNER = 0xC
    U16 = 0xD
    U32 = 0xE
    U256 = 0xF


_TOKEN_NAMES = {
    TokenKind.BOOL: "Bool",
    TokenKind.U8: "U8",
    TokenKind.U16: "U16",
    TokenKind.U32: "U32",
    TokenKind.U64: "U64",
    TokenKind.U128: "U128",
    TokenKind.U256: "U256",
    TokenKind.ADDRESS: "Address",
    TokenKind.SIGNER: "Signer",
}
_TOKENS_BY_NAME = {name.lower(): kind for kind, name in _TOKEN_NAMES.items()}
_WRAPPER_NAMES = {
    TokenKind.VECTOR: "Vector",
    TokenKind.REFERENCE: "Reference",
    TokenKind.MUTABLE_REFERENCE: "MutableReference",
}


@dataclass(frozen=True)
class SignatureToken:
    """A Move type as it appears in signatures and the constant pool."""

    kind: TokenKind
    index: int | None = None
    inner: tuple[SignatureToken, ...] = ()

    @classmethod
    def deserialize(cls, deserializer: Deserializer) -> SignatureToken:
        kind = TokenKind(deserializer.u8())
        if kind in _WRAPPER_NAMES:
            return cls(kind, inner=(cls.deserialize(deserializer),))
        if kind in (TokenKind.STRUCT, TokenKind.TYPE_PARAMETER):
            return cls(kind, index=deserializer.uleb128())
        if kind == TokenKind.STRUCT_INST:
            index = deserializer.uleb128()
            count = deserializer.uleb128()
            return cls(kind, index=index, inner=tuple(cls.deserialize(deserializer) for _ in range(count)))
        return cls(kind)

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(self.kind)
        if self.kind in _WRAPPER_NAMES:
            self.inner[0].serialize(serializer)
        elif self.kind in (TokenKind.STRUCT, TokenKind.TYPE_PARAMETER):
            serializer.uleb128(self.index)
        elif self.kind == TokenKind.STRUCT_INST:
            serializer.uleb128(self.index)
            serializer.uleb128(len(self.inner))
            for token in self.inner:
                token.serialize(serializer)

    def __str__(self) -> str:
        if self.kind in _WRAPPER_NAMES:
            return f"{_WRAPPER_NAMES[self.kind]}({self.inner[0]})"
        if self.kind == TokenKind.STRUCT:
            return f"Struct({self.index})"
        if self.kind == TokenKind.TYPE_PARAMETER:
            return f"TypeParameter({self.index})"
        if self.kind == TokenKind.STRUCT_INST:
            return f"StructInstantiation({self.index}, [{', '.join(str(t) for t in self.inner)}])"
        return _TOKEN_NAMES[self.kind]


def parse_constant_type(value: str) -> SignatureToken:
    """Parse a constant type such as ``U64``, ``Bool`` or ``Vector(U8)``.

    Raises:
        TemplateError: If the type is not a valid constant type
    """
    text = value.strip()
    lowered = text.lower()
    if lowered in _TOKENS_BY_NAME and lowered != "signer":
        return SignatureToken(_TOKENS_BY_NAME[lowered])
    if lowered.startswith("vector(") and lowered.endswith(")"):
        return SignatureToken(TokenKind.VECTOR, inner=(parse_constant_type(text[len("vector(") : -1]),))
    raise TemplateError(f"Unsupported constant type: {value!r}")


# Table entries ---------------------------------------------------------------


@dataclass
class ModuleHandle:
    address: int
    name: int


@dataclass
class StructHandle:
    module: int
    name: int
    abilities: int
    type_parameters: list[tuple[int, bool]] = field(default_factory=list)


@dataclass
class FunctionHandle:
    module: int
    name: int
    parameters: int
    return_: int
    type_parameters: list[int] = field(default_factory=list)


@dataclass
class FieldDefinition:
    name: int
    signature: SignatureToken


@dataclass
class StructDefinition:
    struct_handle: int
    native: bool = False
    fields: list[FieldDefinition] = field(default_factory=list)


@dataclass
class Constant:
    """An entry of the constant pool: its type and BCS-encoded value."""

    type_: SignatureToken
    data: bytes

    def to_dict(self) -> dict[str, Any]:
        return {"type": str(self.type_), "data": self.data.hex()}


_STRUCT_NATIVE = 0x1
_STRUCT_DECLARED = 0x2


def _read_entries(data: bytes, read: Callable[[Deserializer], Any]) -> list[Any]:
    deserializer = Deserializer(data)
    entries = []
    while deserializer.remaining() > 0:
        entries.append(read(deserializer))
    return entries


def _read_module_handle(d: Deserializer) -> ModuleHandle:
    return ModuleHandle(address=d.uleb128(), name=d.uleb128())


def _read_struct_handle(d: Deserializer) -> StructHandle:
    handle = StructHandle(module=d.uleb128(), name=d.uleb128(), abilities=d.u8())
    count = d.uleb128()
    handle.type_parameters = [(d.u8(), bool(d.u8())) for _ in range(count)]
    return handle


def _read_function_handle(d: Deserializer) -> FunctionHandle:
    handle = FunctionHandle(
        module=d.uleb128(),
        name=d.uleb128(),
        parameters=d.uleb128(),
        return_=d.uleb128(),
    )
    count = d.uleb128()
    handle.type_parameters = [d.u8() for _ in range(count)]
    return handle


def _read_struct_def(d: Deserializer) -> StructDefinition:
    struct_def = StructDefinition(struct_handle=d.uleb128())
    tag = d.u8()
    if tag == _STRUCT_NATIVE:
        struct_def.native = True
    elif tag == _STRUCT_DECLARED:
        count = d.uleb128()
        struct_def.fields = [
            FieldDefinition(name=d.uleb128(), signature=SignatureToken.deserialize(d))
            for _ in range(count)
        ]
    else:
        raise TemplateError(f"Unknown struct field information tag: {tag}")
    return struct_def


def _read_constant(d: Deserializer) -> Constant:
    return Constant(type_=SignatureToken.deserialize(d), data=d.to_bytes())


def _write_module_handle(s: Serializer, handle: ModuleHandle) -> None:
    s.uleb128(handle.address)
    s.uleb128(handle.name)


def _write_struct_handle(s: Serializer, handle: StructHandle) -> None:
    s.uleb128(handle.module)
    s.uleb128(handle.name)
    s.u8(handle.abilities)
    s.uleb128(len(handle.type_parameters))
    for constraints, is_phantom in handle.type_parameters:
        s.u8(constraints)
        s.u8(int(is_phantom))


def _write_function_handle(s: Serializer, handle: FunctionHandle) -> None:
    s.uleb128(handle.module)
    s.uleb128(handle.name)
    s.uleb128(handle.parameters)
    s.uleb128(handle.return_)
    s.uleb128(len(handle.type_parameters))
    for abilities in handle.type_parameters:
        s.u8(abilities)


def _write_struct_def(s: Serializer, struct_def: StructDefinition) -> None:
    s.uleb128(struct_def.struct_handle)
    if struct_def.native:
        s.u8(_STRUCT_NATIVE)
        return
    s.u8(_STRUCT_DECLARED)
    s.uleb128(len(struct_def.fields))
    for field_def in struct_def.fields:
        s.uleb128(field_def.name)
        field_def.signature.serialize(s)


def _write_constant(s: Serializer, constant: Constant) -> None:
    constant.type_.serialize(s)
    s.to_bytes(constant.data)


def _write_identifier(s: Serializer, identifier: str) -> None:
    s.str(identifier)


def _write_address(s: Serializer, address: bytes) -> None:
    s.fixed_bytes(address)


# (attribute, reader, writer) for every decoded table
_DECODED_TABLES: dict[TableKind, tuple[str, Callable, Callable]] = {
    TableKind.MODULE_HANDLES: ("module_handles", _read_module_handle, _write_module_handle),
    TableKind.STRUCT_HANDLES: ("struct_handles", _read_struct_handle, _write_struct_handle),
    TableKind.FUNCTION_HANDLES: ("function_handles", _read_function_handle, _write_function_handle),
    TableKind.CONSTANT_POOL: ("constant_pool", _read_constant, _write_constant),
    TableKind.IDENTIFIERS: ("identifiers", lambda d: d.str(), _write_identifier),
    TableKind.ADDRESS_IDENTIFIERS: (
        "address_identifiers",
        lambda d: d.fixed_bytes(ADDRESS_LENGTH),
        _write_address,
    ),
    TableKind.STRUCT_DEFS: ("struct_defs", _read_struct_def, _write_struct_def),
    TableKind.FRIEND_DECLS: ("friend_decls", _read_module_handle, _write_module_handle),
}


@dataclass
class CompiledModule:
    """A compiled Move module.

    Attributes:
        version: Raw version word (the upper byte holds the binary flavor)
        table_order: Table kinds in the order they appear in the binary
        raw_tables: Contents of the tables that are not decoded
        self_module_handle_idx: Index of the module's own handle
    """

    version: int
    table_order: list[TableKind] = field(default_factory=list)
    raw_tables: dict[TableKind, bytes] = field(default_factory=dict)
    module_handles: list[ModuleHandle] = field(default_factory=list)
    struct_handles: list[StructHandle] = field(default_factory=list)
    function_handles: list[FunctionHandle] = field(default_factory=list)
    constant_pool: list[Constant] = field(default_factory=list)
    identifiers: list[str] = field(default_factory=list)
    address_identifiers: list[bytes] = field(default_factory=list)
    struct_defs: list[StructDefinition] = field(default_factory=list)
    friend_decls: list[ModuleHandle] = field(default_factory=list)
    self_module_handle_idx: int = 0

    @property
    def bytecode_version(self) -> int:
        return self.version & VERSION_MASK

    @property
    def name(self) -> str:
        """Name of the module itself."""
        return self.identifiers[self.module_handles[self.self_module_handle_idx].name]

    @classmethod
    def deserialize(cls, data: bytes) -> CompiledModule:
        """Parse a compiled module.

        Raises:
            TemplateError: If the bytes are not a well-formed module
        """
        data = bytes(data)
        if data[: len(MOVE_MAGIC)] != MOVE_MAGIC:
            raise TemplateError("Bad magic: not a compiled Move module")
        try:
            return cls._deserialize(data)
        except TemplateError:
            raise
        except Exception as e:
            raise TemplateError(f"Malformed module: {e}") from e

    @classmethod
    def _deserialize(cls, data: bytes) -> CompiledModule:
        header = Deserializer(data)
        header.fixed_bytes(len(MOVE_MAGIC))
        module = cls(version=header.u32())
        count = header.uleb128()

        layout: list[tuple[TableKind, int, int]] = []
        for _ in range(count):
            kind = TableKind(header.u8())
            layout.append((kind, header.uleb128(), header.uleb128()))
        content_start = len(data) - header.remaining()

        end = content_start
        for kind, offset, length in layout:
            start = content_start + offset
            end = max(end, start + length)
            if start + length > len(data):
                raise TemplateError(f"Table {kind.name} runs past the end of the module")
            table = data[start : start + length]
            module.table_order.append(kind)
            if kind in _DECODED_TABLES:
                attribute, read, _ = _DECODED_TABLES[kind]
                setattr(module, attribute, _read_entries(table, read))
            else:
                module.raw_tables[kind] = table

        trailer = Deserializer(data[end:])
        module.self_module_handle_idx = trailer.uleb128()
        if trailer.remaining():
            raise TemplateError(f"{trailer.remaining()} trailing bytes after module")
        return module

    def serialize(self) -> bytes:
        """Encode the module, laying tables out contiguously in their original order."""
        tables: list[tuple[TableKind, bytes]] = []
        for kind in self.table_order:
            if kind in _DECODED_TABLES:
                attribute, _, write = _DECODED_TABLES[kind]
                serializer = Serializer()
                for entry in getattr(self, attribute):
                    write(serializer, entry)
                tables.append((kind, serializer.output()))
            else:
                tables.append((kind, self.raw_tables[kind]))

        out = Serializer()
        out.fixed_bytes(MOVE_MAGIC)
        out.u32(self.version)
        out.uleb128(len(tables))
        offset = 0
        for kind, content in tables:
            out.u8(kind)
            out.uleb128(offset)
            out.uleb128(len(content))
            offset += len(content)
        for _, content in tables:
            out.fixed_bytes(content)
        out.uleb128(self.self_module_handle_idx)
        return out.output()

    def change_identifiers(self, mapping: dict[str, str]) -> CompiledModule:
        """Rename identifiers and remap every reference to the sorted table.

        Raises:
            TemplateError: If a new name is invalid or collides with another identifier
        """
        unsupported = _UNSUPPORTED_FOR_RENAME.intersection(self.table_order)
        if unsupported:
            names = ", ".join(sorted(k.name for k in unsupported))
            raise TemplateError(f"Renaming identifiers is not supported for modules with {names}")
        for new_name in mapping.values():
            if not _IDENTIFIER_RE.match(new_name):
                raise TemplateError(f"Invalid Move identifier: {new_name!r}")

        renamed = [mapping.get(ident, ident) for ident in self.identifiers]
        if len(set(renamed)) != len(renamed):
            duplicates = sorted({i for i in renamed if renamed.count(i) > 1})
            raise TemplateError(f"Duplicate identifiers after renaming: {', '.join(duplicates)}")

        # Identifiers must stay sorted by byte order
        ordered = sorted(renamed, key=lambda ident: ident.encode())
        position = {ident: idx for idx, ident in enumerate(ordered)}
        remap = [position[ident] for ident in renamed]

        for handle in (*self.module_handles, *self.friend_decls, *self.struct_handles, *self.function_handles):
            handle.name = remap[handle.name]
        for struct_def in self.struct_defs:
            for field_def in struct_def.fields:
                field_def.name = remap[field_def.name]
        self.identifiers = ordered
        return self

    def find_constants(self, expected_value: bytes, expected_type: str | SignatureToken) -> list[int]:
        """Indexes of the constants with the given type and value."""
        if isinstance(expected_type, str):
            expected_type = parse_constant_type(expected_type)
        expected_value = bytes(expected_value)
        return [
            idx
            for idx, constant in enumerate(self.constant_pool)
            if constant.type_ == expected_type and constant.data == expected_value
        ]

    def duplicate_constants(self) -> list[Constant]:
        """Constants whose type and value also appear earlier in the pool.

        The bytecode verifier rejects a module with a repeated constant.
        """
        seen: set[tuple[str, bytes]] = set()
        duplicates = []
        for constant in self.constant_pool:
            key = (str(constant.type_), bytes(constant.data))
            if key in seen:
                duplicates.append(constant)
            seen.add(key)
        return duplicates

    def update_constant(
        self,
        new_value: bytes,
        expected_value: bytes,
        expected_type: str | SignatureToken,
    ) -> int:
        """Replace every constant with the given type and current value.

        Returns:
            Number of constants replaced

        Raises:
            TemplateError: If no constant matches
        """
        if isinstance(expected_type, str):
            expected_type = parse_constant_type(expected_type)
        indexes = self.find_constants(expected_value, expected_type)
        for idx in indexes:
            self.constant_pool[idx].data = bytes(new_value)
        replaced = len(indexes)
        if not replaced:
            raise TemplateError(
                f"No {expected_type} constant with value 0x{bytes(expected_value).hex()}"
            )
        logger.debug("Replaced %d %s constant(s)", replaced, expected_type)
        return replaced

    def to_dict(self) -> dict[str, Any]:
        """Summary suitable for display."""
        return {
            "name": self.name,
            "version": self.bytecode_version,
            "tables": [kind.name for kind in self.table_order],
            "identifiers": list(self.identifiers),
            "addresses": ["0x" + a.hex() for a in self.address_identifiers],
            "constants": [c.to_dict() for c in self.constant_pool],
        }


def update_identifiers(bytecode: bytes, mapping: dict[str, str]) -> bytes:
    """Rename identifiers in a compiled module."""
    module = CompiledModule.deserialize(bytecode)
    module.change_identifiers(mapping)
    return module.serialize()


def update_constants(
    bytecode: bytes,
    new_value: bytes,
    expected_value: bytes,
    expected_type: str,
) -> bytes:
    """Replace constants of ``expected_type`` whose value is ``expected_value``."""
    module = CompiledModule.deserialize(bytecode)
    module.update_constant(new_value, expected_value, expected_type)
    return module.serialize()


def get_constants(bytecode: bytes) -> list[Constant]:
    """The constant pool of a compiled module."""
    return list(CompiledModule.deserialize(bytecode).constant_pool)
