"""
Typed views over fullnode responses.

Only the fields the operator commands read are extracted; the raw payload
is kept on every view for inspection and display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kioskops.sui.types import ObjectRef, normalize_struct_type


def _owner_kind(owner: Any) -> str:
    if isinstance(owner, str):
        return owner
    if isinstance(owner, dict) and owner:
        return next(iter(owner))
    return "Unknown"


@dataclass
class SuiObject:
    """An object as returned by ``sui_getObject``.

    Attributes:
        object_id: Object id
        version: Current version
        digest: Current digest (base58)
        type: Move type string, when requested
        owner: Owner payload (dict or the string ``"Immutable"``)
        fields: Move struct fields, when content was requested
        raw: Raw ``data`` payload
    """

    object_id: str
    version: int
    digest: str
    type: str | None = None
    owner: Any = None
    fields: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> SuiObject:
        content = data.get("content") or {}
        fields = content.get("fields", {}) if content.get("dataType") == "moveObject" else {}
        return cls(
            object_id=data["objectId"],
            version=int(data["version"]),
            digest=data["digest"],
            type=data.get("type") or content.get("type"),
            owner=data.get("owner"),
            fields=fields,
            raw=data,
        )

    @property
    def ref(self) -> ObjectRef:
        return ObjectRef(self.object_id, self.version, self.digest)

    @property
    def owner_kind(self) -> str:
        """``AddressOwner``, ``ObjectOwner``, ``Shared``, ``Immutable`` ..."""
        return _owner_kind(self.owner)

    @property
    def is_shared(self) -> bool:
        return self.owner_kind == "Shared"

    @property
    def initial_shared_version(self) -> int | None:
        if not self.is_shared:
            return None
        return int(self.owner["Shared"]["initial_shared_version"])

    def has_type(self, type_: str) -> bool:
        """Compare types ignoring address padding."""
        if self.type is None:
            return False
        return normalize_struct_type(self.type) == normalize_struct_type(type_)


@dataclass
class CreatedObject:
    """One entry of ``effects.created``."""

    object_id: str
    owner: Any
    version: int | None = None

    @property
    def owner_kind(self) -> str:
        return _owner_kind(self.owner)


@dataclass
class TransactionResult:
    """Outcome of executing (or dry-running) a transaction.

    Attributes:
        digest: Transaction digest (empty for dry runs)
        status: ``success`` or ``failure``
        error: Abort / execution error when the status is a failure
        created: Objects created by the transaction, in effects order
        created_types: Types of created objects, from the object changes
        raw: Raw response
    """

    digest: str
    status: str
    error: str | None = None
    created: list[CreatedObject] = field(default_factory=list)
    created_types: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> TransactionResult:
        effects = data.get("effects") or {}
        status = effects.get("status") or {}
        created = [
            CreatedObject(
                object_id=item["reference"]["objectId"],
                owner=item.get("owner"),
                version=int(item["reference"]["version"]) if "version" in item["reference"] else None,
            )
            for item in effects.get("created") or []
        ]
        created_types = {
            change["objectId"]: change["objectType"]
            for change in data.get("objectChanges") or []
            if change.get("type") == "created" and "objectType" in change
        }
        return cls(
            digest=data.get("digest") or effects.get("transactionDigest", ""),
            status=status.get("status", "unknown"),
            error=status.get("error"),
            created=created,
            created_types=created_types,
            raw=data,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def created_ids(self) -> list[str]:
        return [obj.object_id for obj in self.created]

    def first_created(self) -> str | None:
        """Id of the first created object, the way listing and minting report it."""
        return self.created[0].object_id if self.created else None

    def created_with_owner(self, owner_kind: str) -> str | None:
        """Id of the first created object with the given owner kind."""
        for obj in self.created:
            if obj.owner_kind == owner_kind:
                return obj.object_id
        return None
