"""
Kiosk and transfer policy support.

This package provides:
- Lookups of owned kiosk caps and transfer policy caps
- Kiosk commands (create, personal kiosks, place, lock, list, delist)
- Transfer policy rule edits
"""

from kioskops.kiosk.client import KioskClient, KioskOwnerCap, TransferPolicyCap
from kioskops.kiosk.constants import (
    KIOSK_ITEM_FIELD_TYPE,
    KIOSK_LOCK_FIELD_TYPE,
    KIOSK_OWNER_CAP,
    KIOSK_RULES_PACKAGES,
    KIOSK_TYPE,
    get_rules_package_id,
)
from kioskops.kiosk.errors import KioskError, KioskNotFoundError, TransferPolicyNotFoundError
from kioskops.kiosk.policy import TransferPolicyTransaction, percentage_to_basis_points
from kioskops.kiosk.transaction import KioskTransaction

__all__ = [
    "KIOSK_ITEM_FIELD_TYPE",
    "KIOSK_LOCK_FIELD_TYPE",
    "KIOSK_OWNER_CAP",
    "KIOSK_RULES_PACKAGES",
    "KIOSK_TYPE",
    "KioskClient",
    "KioskError",
    "KioskNotFoundError",
    "KioskOwnerCap",
    "KioskTransaction",
    "TransferPolicyCap",
    "TransferPolicyNotFoundError",
    "TransferPolicyTransaction",
    "get_rules_package_id",
    "percentage_to_basis_points",
]
