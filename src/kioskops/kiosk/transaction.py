"""
Kiosk Transaction.

Adds kiosk commands to a programmable transaction. A kiosk transaction works
on one kiosk, identified by an owner cap the signer holds or by a kiosk
created in the same transaction. When the cap is personal it is borrowed at
the start and must be returned, which ``finalize`` does; ``finalize`` is
always the last call.
"""

from __future__ import annotations

import logging

from kioskops.kiosk.client import KioskClient, KioskOwnerCap
from kioskops.kiosk.constants import KIOSK_MODULE, KIOSK_TYPE
from kioskops.kiosk.errors import KioskError
from kioskops.sui.transaction import Argument, Transaction

logger = logging.getLogger(__name__)


class KioskTransaction:
    """Kiosk commands for one kiosk inside a transaction.

    Example:
        kiosk_tx = KioskTransaction(tx, kiosk_client, cap)
        kiosk_tx.place(item_type, item_id).finalize()
    """

    def __init__(
        self,
        transaction: Transaction,
        kiosk_client: KioskClient,
        cap: KioskOwnerCap | None = None,
    ) -> None:
        self._tx = transaction
        self._kiosk_client = kiosk_client
        self._kiosk: Argument | None = None
        self._kiosk_cap: Argument | None = None
        self._personal_cap: Argument | None = None
        self._borrow: Argument | None = None
        self._pending_share = False
        self._pending_transfer_to: str | None = None
        self._pending_personal_transfer = False
        self._finalized = False
        if cap is not None:
            self.set_cap(cap)

    @property
    def transaction(self) -> Transaction:
        return self._tx

    @property
    def is_personal(self) -> bool:
        return self._personal_cap is not None

    @property
    def _package(self) -> str:
        return self._kiosk_client.rules_package_id

    def set_cap(self, cap: KioskOwnerCap) -> None:
        """Use an existing kiosk through the owner cap the signer holds."""
        self._kiosk = self._tx.object(cap.kiosk_id)
        if not cap.is_personal:
            self._kiosk_cap = self._tx.object_ref(cap.ref)
            return
        self._borrow_from_personal_cap(self._tx.object_ref(cap.ref))

    def _borrow_from_personal_cap(self, personal_cap: Argument) -> None:
        result = self._tx.move_call(
            target=f"{self._package}::personal_kiosk::borrow_val",
            arguments=[personal_cap],
        )
        self._kiosk_cap = result[0]
        self._borrow = result[1]
        self._personal_cap = personal_cap

    def _validate(self) -> None:
        if self._finalized:
            raise KioskError("Kiosk transaction is already finalized")
        if self._kiosk is None or self._kiosk_cap is None:
            raise KioskError("Kiosk transaction has no kiosk; pass a cap or create one")

    # Creation

    def create(self) -> KioskTransaction:
        """Create a new kiosk; pair with ``share_and_transfer_cap``."""
        if self._kiosk is not None:
            raise KioskError("Kiosk transaction already has a kiosk")
        result = self._tx.move_call(target=f"{KIOSK_MODULE}::new")
        self._kiosk = result[0]
        self._kiosk_cap = result[1]
        self._pending_share = True
        return self

    def share_and_transfer_cap(self, address: str) -> KioskTransaction:
        """Share the new kiosk and send its owner cap to ``address`` on finalize."""
        if not self._pending_share:
            raise KioskError("Only a kiosk created in this transaction can be shared")
        self._pending_transfer_to = address
        return self

    def create_personal(self, borrow: bool = False) -> KioskTransaction:
        """Create a new kiosk and turn its cap into a personal cap."""
        self.create()
        return self.convert_to_personal(borrow)

    def convert_to_personal(self, borrow: bool = False) -> KioskTransaction:
        """Wrap the owner cap into a PersonalKioskCap kept by the sender.

        With ``borrow`` the new personal cap is borrowed so the kiosk can be
        used further in the same transaction; it reaches the sender on
        ``finalize``, once the owner cap is back in it.
        """
        self._validate()
        if self.is_personal:
            raise KioskError("Kiosk is already personal")
        personal_cap = self._tx.move_call(
            target=f"{self._package}::personal_kiosk::new",
            arguments=[self._kiosk, self._kiosk_cap],
        )
        if borrow:
            self._borrow_from_personal_cap(personal_cap)
            self._pending_personal_transfer = True
        else:
            self._transfer_personal_cap(personal_cap)
            self._kiosk_cap = None
        return self

    def _transfer_personal_cap(self, personal_cap: Argument) -> None:
        self._tx.move_call(
            target=f"{self._package}::personal_kiosk::transfer_to_sender",
            arguments=[personal_cap],
        )

    # Items

    def place(self, item_type: str, item_id: str) -> KioskTransaction:
        """Place an item into the kiosk."""
        self._validate()
        self._tx.move_call(
            target=f"{KIOSK_MODULE}::place",
            type_arguments=[item_type],
            arguments=[self._kiosk, self._kiosk_cap, self._tx.object(item_id)],
        )
        return self

    def lock(self, item_type: str, item_id: str, policy_id: str) -> KioskTransaction:
        """Lock an item into the kiosk; the policy is read only."""
        self._validate()
        self._tx.move_call(
            target=f"{KIOSK_MODULE}::lock",
            type_arguments=[item_type],
            arguments=[
                self._kiosk,
                self._kiosk_cap,
                self._tx.object(policy_id, mutable=False),
                self._tx.object(item_id),
            ],
        )
        return self

    def list(self, item_type: str, item_id: str, price: int) -> KioskTransaction:
        """List an item in the kiosk for ``price`` MIST."""
        self._validate()
        self._tx.move_call(
            target=f"{KIOSK_MODULE}::list",
            type_arguments=[item_type],
            arguments=[
                self._kiosk,
                self._kiosk_cap,
                self._tx.pure_id(item_id),
                self._tx.pure_u64(price),
            ],
        )
        return self

    def delist(self, item_type: str, item_id: str) -> KioskTransaction:
        """Remove the listing of an item."""
        self._validate()
        self._tx.move_call(
            target=f"{KIOSK_MODULE}::delist",
            type_arguments=[item_type],
            arguments=[self._kiosk, self._kiosk_cap, self._tx.pure_id(item_id)],
        )
        return self

    def finalize(self) -> None:
        """Share a new kiosk, hand its cap over and return a borrowed personal cap."""
        if self._finalized:
            raise KioskError("Kiosk transaction is already finalized")
        # The owner cap of a new kiosk has no drop ability
        if (
            self._pending_share
            and not self.is_personal
            and self._kiosk_cap is not None
            and self._pending_transfer_to is None
        ):
            raise KioskError("New kiosk owner cap has no recipient; call share_and_transfer_cap")
        if self._pending_share:
            self._tx.move_call(
                target="0x2::transfer::public_share_object",
                type_arguments=[KIOSK_TYPE],
                arguments=[self._kiosk],
            )
            if self._pending_transfer_to is not None:
                if self._kiosk_cap is None:
                    raise KioskError("Owner cap was converted and cannot be transferred")
                self._tx.transfer_objects([self._kiosk_cap], self._pending_transfer_to)
        if self._personal_cap is not None:
            self._tx.move_call(
                target=f"{self._package}::personal_kiosk::return_val",
                arguments=[self._personal_cap, self._kiosk_cap, self._borrow],
            )
            if self._pending_personal_transfer:
                self._transfer_personal_cap(self._personal_cap)
        self._finalized = True
        logger.debug("Kiosk transaction finalized (%d commands)", len(self._tx.commands))
