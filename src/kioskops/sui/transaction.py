"""
Programmable transaction builder.

A small builder for the commands the operator needs: ``MoveCall``,
``TransferObjects`` and ``Publish``. Inputs are collected as pure BCS values
or object ids; object ids are resolved against the fullnode at build time
(shared objects become ``SharedObject`` inputs, everything else an
``ImmOrOwnedObject`` reference), gas coins are selected to cover the budget
and the result is BCS-encoded ``TransactionData::V1``.

Example:
    tx = Transaction()
    item = tx.move_call(
        target=f"{package}::tokenized_asset::mint",
        type_arguments=[otw],
        arguments=[tx.object(asset_cap), tx.pure_vector_string([]), ...],
    )
    tx.transfer_objects([item], tx.pure_address(sender))
    tx_bytes = await tx.build(client, sender, gas_budget=50_000_000)
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aptos_sdk.bcs import Serializer

from kioskops.sui.types import (
    ObjectRef,
    TypeTag,
    address_bytes,
    normalize_sui_address,
    normalize_sui_object_id,
    parse_move_target,
    parse_type_tag,
)

if TYPE_CHECKING:
    from kioskops.sui.client import AsyncSuiClient

logger = logging.getLogger(__name__)

# Sui caps the number of gas payment coins
MAX_GAS_OBJECTS = 256


class TransactionBuildError(Exception):
    """Raised when a transaction cannot be built."""

    pass


class InsufficientGasError(TransactionBuildError):
    """Raised when the sender's SUI coins do not cover the gas budget."""

    def __init__(self, owner: str, budget: int, available: int):
        super().__init__(
            f"Address {owner} holds {available} MIST in SUI coins, gas budget is {budget}"
        )
        self.owner = owner
        self.budget = budget
        self.available = available


# Arguments -----------------------------------------------------------------


@dataclass(frozen=True)
class Argument:
    """Reference to a value inside the transaction.

    ``kind`` is one of ``GasCoin``, ``Input``, ``Result``, ``NestedResult``.
    """

    kind: str
    index: int = 0
    nested: int = 0

    def serialize(self, serializer: Serializer) -> None:
        if self.kind == "GasCoin":
            serializer.uleb128(0)
        elif self.kind == "Input":
            serializer.uleb128(1)
            serializer.u16(self.index)
        elif self.kind == "Result":
            serializer.uleb128(2)
            serializer.u16(self.index)
        elif self.kind == "NestedResult":
            serializer.uleb128(3)
            serializer.u16(self.index)
            serializer.u16(self.nested)
        else:
            raise TransactionBuildError(f"Unknown argument kind: {self.kind}")


GAS_COIN = Argument("GasCoin")


class CommandResult(Argument):
    """Result of a command; index it to address one value of a tuple result."""

    def __getitem__(self, nested: int) -> Argument:
        return Argument("NestedResult", self.index, nested)


# Inputs --------------------------------------------------------------------


@dataclass
class _PureInput:
    value: bytes

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(0)
        serializer.to_bytes(self.value)


@dataclass
class _ObjectInput:
    object_id: str
    mutable: bool = True
    ref: ObjectRef | None = None
    initial_shared_version: int | None = None

    @property
    def resolved(self) -> bool:
        return self.ref is not None or self.initial_shared_version is not None

    def serialize(self, serializer: Serializer) -> None:
        if not self.resolved:
            raise TransactionBuildError(f"Object input {self.object_id} was not resolved")
        serializer.uleb128(1)
        if self.initial_shared_version is not None:
            serializer.uleb128(1)
            serializer.fixed_bytes(address_bytes(self.object_id))
            serializer.u64(self.initial_shared_version)
            serializer.bool(self.mutable)
        else:
            serializer.uleb128(0)
            self.ref.serialize(serializer)


# Commands ------------------------------------------------------------------


@dataclass
class _MoveCall:
    package: str
    module: str
    function: str
    type_arguments: list[TypeTag]
    arguments: list[Argument]

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(0)
        serializer.fixed_bytes(address_bytes(self.package))
        serializer.str(self.module)
        serializer.str(self.function)
        serializer.uleb128(len(self.type_arguments))
        for tag in self.type_arguments:
            tag.serialize(serializer)
        _serialize_arguments(serializer, self.arguments)


@dataclass
class _TransferObjects:
    objects: list[Argument]
    recipient: Argument

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(1)
        _serialize_arguments(serializer, self.objects)
        self.recipient.serialize(serializer)


@dataclass
class _Publish:
    modules: list[bytes]
    dependencies: list[str]

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(4)
        serializer.uleb128(len(self.modules))
        for module in self.modules:
            serializer.to_bytes(module)
        serializer.uleb128(len(self.dependencies))
        for dep in self.dependencies:
            serializer.fixed_bytes(address_bytes(dep))


def _serialize_arguments(serializer: Serializer, arguments: list[Argument]) -> None:
    serializer.uleb128(len(arguments))
    for argument in arguments:
        argument.serialize(serializer)


def _bcs(encode) -> bytes:
    serializer = Serializer()
    encode(serializer)
    return serializer.output()


class Transaction:
    """Builder for a single programmable transaction block."""

    def __init__(self) -> None:
        self._inputs: list[_PureInput | _ObjectInput] = []
        self._commands: list[_MoveCall | _TransferObjects | _Publish] = []
        self._object_inputs: dict[str, int] = {}

    @property
    def commands(self) -> list:
        return list(self._commands)

    @property
    def inputs(self) -> list:
        return list(self._inputs)

    # Inputs

    def pure(self, value: bytes) -> Argument:
        """Add a pre-encoded BCS value."""
        self._inputs.append(_PureInput(value))
        return Argument("Input", len(self._inputs) - 1)

    def pure_u16(self, value: int) -> Argument:
        return self.pure(_bcs(lambda s: s.u16(value)))

    def pure_u64(self, value: int) -> Argument:
        return self.pure(_bcs(lambda s: s.u64(int(value))))

    def pure_bool(self, value: bool) -> Argument:
        return self.pure(_bcs(lambda s: s.bool(value)))

    def pure_address(self, value: str) -> Argument:
        return self.pure(address_bytes(value))

    pure_id = pure_address

    def pure_string(self, value: str) -> Argument:
        return self.pure(_bcs(lambda s: s.str(value)))

    def pure_vector_string(self, values: list[str]) -> Argument:
        return self.pure(_bcs(lambda s: s.sequence(values, Serializer.str)))

    def object(self, object_id: str, mutable: bool = True) -> Argument:
        """Add an object input, resolved against the fullnode at build time.

        The same id passed twice yields the same input; mutability is the
        union of both uses.
        """
        object_id = normalize_sui_object_id(object_id)
        if object_id in self._object_inputs:
            index = self._object_inputs[object_id]
            self._inputs[index].mutable = self._inputs[index].mutable or mutable
            return Argument("Input", index)
        self._inputs.append(_ObjectInput(object_id, mutable))
        self._object_inputs[object_id] = len(self._inputs) - 1
        return Argument("Input", len(self._inputs) - 1)

    def object_ref(self, ref: ObjectRef) -> Argument:
        """Add an already-resolved owned object."""
        argument = self.object(ref.object_id)
        self._inputs[argument.index].ref = ObjectRef(
            normalize_sui_object_id(ref.object_id), ref.version, ref.digest
        )
        return argument

    def shared_object(self, object_id: str, initial_shared_version: int, mutable: bool = True) -> Argument:
        """Add an already-resolved shared object."""
        argument = self.object(object_id, mutable)
        self._inputs[argument.index].initial_shared_version = initial_shared_version
        return argument

    # Commands

    def _add_command(self, command) -> CommandResult:
        self._commands.append(command)
        return CommandResult("Result", len(self._commands) - 1)

    def move_call(
        self,
        target: str,
        arguments: list[Argument] | None = None,
        type_arguments: list[str] | None = None,
    ) -> CommandResult:
        """Call ``package::module::function``."""
        package, module, function = parse_move_target(target)
        return self._add_command(
            _MoveCall(
                package=package,
                module=module,
                function=function,
                type_arguments=[parse_type_tag(t) for t in type_arguments or []],
                arguments=list(arguments or []),
            )
        )

    def transfer_objects(self, objects: list[Argument], recipient: Argument | str) -> CommandResult:
        """Transfer objects to an address (an Argument or a plain address)."""
        if isinstance(recipient, str):
            recipient = self.pure_address(recipient)
        return self._add_command(_TransferObjects(list(objects), recipient))

    def publish(self, modules: list[bytes], dependencies: list[str]) -> CommandResult:
        """Publish a package; the result is its UpgradeCap."""
        if not modules:
            raise TransactionBuildError("Publish requires at least one module")
        return self._add_command(
            _Publish(
                modules=[bytes(m) for m in modules],
                dependencies=[normalize_sui_object_id(d) for d in dependencies],
            )
        )

    # Building

    async def _resolve_objects(self, client: AsyncSuiClient) -> None:
        pending = [i for i in self._inputs if isinstance(i, _ObjectInput) and not i.resolved]
        if not pending:
            return
        objects = await client.multi_get_objects(
            [i.object_id for i in pending], show_type=False, show_owner=True
        )
        for item, obj in zip(pending, objects):
            if obj.is_shared:
                item.initial_shared_version = obj.initial_shared_version
            else:
                item.ref = obj.ref
            logger.debug("Resolved input %s as %s", item.object_id, obj.owner_kind)

    async def _select_gas(self, client: AsyncSuiClient, owner: str, budget: int) -> list[ObjectRef]:
        used = set(self._object_inputs)
        coins = await client.get_coins(owner)
        payment: list[ObjectRef] = []
        total = 0
        for coin in coins:
            coin_id = normalize_sui_object_id(coin["coinObjectId"])
            if coin_id in used:
                continue
            payment.append(ObjectRef(coin_id, int(coin["version"]), coin["digest"]))
            total += int(coin["balance"])
            if total >= budget or len(payment) == MAX_GAS_OBJECTS:
                break
        if total < budget:
            raise InsufficientGasError(owner, budget, total)
        return payment

    def serialize_data(
        self,
        sender: str,
        gas_payment: list[ObjectRef],
        gas_price: int,
        gas_budget: int,
    ) -> bytes:
        """BCS-encode ``TransactionData::V1`` for fully resolved inputs."""
        serializer = Serializer()
        serializer.uleb128(0)  # TransactionData::V1
        serializer.uleb128(0)  # TransactionKind::ProgrammableTransaction
        serializer.uleb128(len(self._inputs))
        for item in self._inputs:
            item.serialize(serializer)
        serializer.uleb128(len(self._commands))
        for command in self._commands:
            command.serialize(serializer)
        serializer.fixed_bytes(address_bytes(sender))
        # GasData
        serializer.uleb128(len(gas_payment))
        for ref in gas_payment:
            ref.serialize(serializer)
        serializer.fixed_bytes(address_bytes(sender))
        serializer.u64(gas_price)
        serializer.u64(gas_budget)
        serializer.uleb128(0)  # TransactionExpiration::None
        return serializer.output()

    async def build(self, client: AsyncSuiClient, sender: str, gas_budget: int) -> bytes:
        """Resolve inputs and gas, then encode the transaction.

        Raises:
            InsufficientGasError: If the sender cannot cover the budget
            ObjectNotFoundError: If an object input does not exist
        """
        if not self._commands:
            raise TransactionBuildError("Transaction has no commands")
        sender = normalize_sui_address(sender)
        await self._resolve_objects(client)
        gas_price = await client.get_reference_gas_price()
        payment = await self._select_gas(client, sender, gas_budget)
        tx_bytes = self.serialize_data(sender, payment, gas_price, gas_budget)
        logger.debug(
            "Built transaction: %d inputs, %d commands, %d bytes",
            len(self._inputs),
            len(self._commands),
            len(tx_bytes),
        )
        return tx_bytes


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode()
