"""
Operator commands.

Each operation builds and executes one transaction (or performs one read)
through an OperatorContext.
"""

from kioskops.operations.asset_ops import AssetCapError, get_supply, get_total_supply, mint
from kioskops.operations.context import OperatorContext, TransactionFailedError
from kioskops.operations.kiosk_ops import (
    convert_kiosk_to_personal,
    create_personal_kiosk,
    delist_item,
    list_item,
    lock_item,
    place_item,
)
from kioskops.operations.policy_ops import DEFAULT_RULES, PolicyRule, set_transfer_policy_rules
from kioskops.operations.publish import AssetTemplateParams, build_asset_module, publish_asset

__all__ = [
    # Context
    "OperatorContext",
    "TransactionFailedError",
    # Kiosk
    "convert_kiosk_to_personal",
    "create_personal_kiosk",
    "delist_item",
    "list_item",
    "lock_item",
    "place_item",
    # Transfer policy
    "DEFAULT_RULES",
    "PolicyRule",
    "set_transfer_policy_rules",
    # Asset
    "AssetCapError",
    "get_supply",
    "get_total_supply",
    "mint",
    # Publishing
    "AssetTemplateParams",
    "build_asset_module",
    "publish_asset",
]
