"""
Kiosk Client.

Looks up the kiosk owner caps and transfer policy caps an address holds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from kioskops.config.models import KioskNetwork
from kioskops.kiosk.constants import (
    KIOSK_OWNER_CAP,
    get_rules_package_id,
    personal_kiosk_cap_type,
    transfer_policy_cap_type,
)
from kioskops.kiosk.errors import KioskError, KioskNotFoundError, TransferPolicyNotFoundError
from kioskops.sui.client import AsyncSuiClient
from kioskops.sui.results import SuiObject
from kioskops.sui.types import ObjectRef, normalize_sui_object_id

logger = logging.getLogger(__name__)


@dataclass
class KioskOwnerCap:
    """A kiosk owner cap held by an address.

    Attributes:
        object_id: Cap object id
        kiosk_id: Kiosk the cap controls
        is_personal: Whether the cap is a PersonalKioskCap wrapping the owner cap
        ref: Current object reference
    """

    object_id: str
    kiosk_id: str
    is_personal: bool
    ref: ObjectRef

    @classmethod
    def from_object(cls, obj: SuiObject) -> KioskOwnerCap:
        fields = obj.fields
        kiosk_id = fields.get("for") or fields.get("kiosk")
        if kiosk_id is None:
            kiosk_id = _nested_field(fields, "cap", "for")
        if kiosk_id is None:
            raise KioskError(f"Cap {obj.object_id} does not reference a kiosk")
        return cls(
            object_id=obj.object_id,
            kiosk_id=normalize_sui_object_id(kiosk_id),
            is_personal=not obj.has_type(KIOSK_OWNER_CAP),
            ref=obj.ref,
        )


@dataclass
class TransferPolicyCap:
    """A transfer policy cap held by an address."""

    object_id: str
    policy_id: str
    type: str
    ref: ObjectRef

    @classmethod
    def from_object(cls, obj: SuiObject) -> TransferPolicyCap:
        return cls(
            object_id=obj.object_id,
            policy_id=normalize_sui_object_id(obj.fields["policy_id"]),
            type=obj.type,
            ref=obj.ref,
        )


def _nested_field(fields: dict[str, Any], *path: str) -> Any:
    value: Any = fields
    for key in path:
        if isinstance(value, dict) and "fields" in value:
            value = value["fields"]
        if not isinstance(value, dict) or key not in value:
            return None
        value = value[key]
    return value


class KioskClient:
    """Kiosk lookups for one network.

    Example:
        kiosk_client = KioskClient(client, KioskNetwork.TESTNET)
        caps = await kiosk_client.get_owned_kiosks(address)
    """

    def __init__(
        self,
        client: AsyncSuiClient,
        network: KioskNetwork | str = KioskNetwork.TESTNET,
        rules_package_id: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            client: Fullnode client
            network: Network whose kiosk extension package is used
            rules_package_id: Override for the extension package id
        """
        self._client = client
        self._network = KioskNetwork(network)
        self._rules_package_id = normalize_sui_object_id(
            rules_package_id or get_rules_package_id(self._network)
        )

    @property
    def client(self) -> AsyncSuiClient:
        return self._client

    @property
    def network(self) -> KioskNetwork:
        return self._network

    @property
    def rules_package_id(self) -> str:
        """Package hosting personal_kiosk and the standard rules."""
        return self._rules_package_id

    async def get_owned_kiosks(self, address: str) -> list[KioskOwnerCap]:
        """Owner caps (regular and personal) held by an address."""
        objects = await self._client.get_owned_objects(
            address,
            struct_types=[KIOSK_OWNER_CAP, personal_kiosk_cap_type(self._rules_package_id)],
            show_content=True,
        )
        caps = [KioskOwnerCap.from_object(obj) for obj in objects]
        logger.debug("Address %s owns %d kiosk cap(s)", address, len(caps))
        return caps

    async def get_kiosk_cap(self, address: str, kiosk_id: str) -> KioskOwnerCap:
        """The owner cap for a given kiosk.

        Raises:
            KioskNotFoundError: If the address holds no cap for the kiosk
        """
        kiosk_id = normalize_sui_object_id(kiosk_id)
        for cap in await self.get_owned_kiosks(address):
            if cap.kiosk_id == kiosk_id:
                logger.info("Target kiosk owner cap: %s (personal=%s)", cap.object_id, cap.is_personal)
                return cap
        raise KioskNotFoundError(kiosk_id, address)

    async def get_owned_transfer_policies_by_type(
        self, item_type: str, address: str
    ) -> list[TransferPolicyCap]:
        """Transfer policy caps for ``item_type`` held by an address."""
        objects = await self._client.get_owned_objects(
            address,
            struct_types=[transfer_policy_cap_type(item_type)],
            show_content=True,
        )
        return [TransferPolicyCap.from_object(obj) for obj in objects]

    async def get_policy_cap(self, item_type: str, address: str, policy_id: str) -> TransferPolicyCap:
        """The cap of a given transfer policy.

        Raises:
            TransferPolicyNotFoundError: If the address holds no cap for the policy
        """
        policy_id = normalize_sui_object_id(policy_id)
        for cap in await self.get_owned_transfer_policies_by_type(item_type, address):
            if cap.policy_id == policy_id:
                return cap
        raise TransferPolicyNotFoundError(policy_id, address)
