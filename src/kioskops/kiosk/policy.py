"""
Transfer Policy Transaction.

Adds and removes the standard transfer policy rules from the kiosk
extension package.
"""

from __future__ import annotations

from kioskops.kiosk.client import KioskClient, TransferPolicyCap
from kioskops.kiosk.constants import TRANSFER_POLICY_MODULE
from kioskops.sui.transaction import Transaction


def percentage_to_basis_points(percentage: float) -> int:
    """Convert a royalty percentage (0-100) to basis points.

    Raises:
        ValueError: If the percentage is out of range
    """
    if percentage < 0 or percentage > 100:
        raise ValueError(f"Percentage must be between 0 and 100, got {percentage}")
    return round(percentage * 100)


class TransferPolicyTransaction:
    """Rule edits on one transfer policy inside a transaction.

    Calls chain:
        TransferPolicyTransaction(tx, kiosk_client, cap).add_floor_price_rule(1000).add_lock_rule()
    """

    def __init__(
        self,
        transaction: Transaction,
        kiosk_client: KioskClient,
        cap: TransferPolicyCap,
        item_type: str,
    ) -> None:
        self._tx = transaction
        self._kiosk_client = kiosk_client
        self._item_type = item_type
        self._policy = transaction.object(cap.policy_id)
        self._policy_cap = transaction.object_ref(cap.ref)

    @property
    def transaction(self) -> Transaction:
        return self._tx

    def _add(self, module: str, *extra) -> TransferPolicyTransaction:
        self._tx.move_call(
            target=f"{self._kiosk_client.rules_package_id}::{module}::add",
            type_arguments=[self._item_type],
            arguments=[self._policy, self._policy_cap, *extra],
        )
        return self

    def _remove(self, module: str, config_type: str | None = None) -> TransferPolicyTransaction:
        package = self._kiosk_client.rules_package_id
        self._tx.move_call(
            target=f"{TRANSFER_POLICY_MODULE}::remove_rule",
            type_arguments=[
                self._item_type,
                f"{package}::{module}::Rule",
                config_type or f"{package}::{module}::Config",
            ],
            arguments=[self._policy, self._policy_cap],
        )
        return self

    def add_floor_price_rule(self, min_price: int) -> TransferPolicyTransaction:
        return self._add("floor_price_rule", self._tx.pure_u64(min_price))

    def add_lock_rule(self) -> TransferPolicyTransaction:
        return self._add("kiosk_lock_rule")

    def add_royalty_rule(self, basis_points: int, min_amount: int = 0) -> TransferPolicyTransaction:
        """Royalty of ``basis_points`` of the price, at least ``min_amount`` MIST."""
        return self._add(
            "royalty_rule",
            self._tx.pure_u16(basis_points),
            self._tx.pure_u64(min_amount),
        )

    def add_personal_kiosk_rule(self) -> TransferPolicyTransaction:
        return self._add("personal_kiosk_rule")

    def remove_floor_price_rule(self) -> TransferPolicyTransaction:
        return self._remove("floor_price_rule")

    def remove_lock_rule(self) -> TransferPolicyTransaction:
        return self._remove("kiosk_lock_rule")

    def remove_royalty_rule(self) -> TransferPolicyTransaction:
        return self._remove("royalty_rule")

    def remove_personal_kiosk_rule(self) -> TransferPolicyTransaction:
        return self._remove("personal_kiosk_rule", config_type="bool")
