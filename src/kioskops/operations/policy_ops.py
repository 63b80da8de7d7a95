"""
Transfer policy operations.
"""

import logging
from collections.abc import Sequence
from enum import Enum

from kioskops.config.loader import require
from kioskops.kiosk.policy import TransferPolicyTransaction, percentage_to_basis_points
from kioskops.operations.context import OperatorContext
from kioskops.sui.results import TransactionResult
from kioskops.sui.transaction import Transaction

logger = logging.getLogger(__name__)


class PolicyRule(str, Enum):
    """Standard transfer policy rules."""

    FLOOR_PRICE = "floor_price"
    KIOSK_LOCK = "kiosk_lock"
    ROYALTY = "royalty"
    PERSONAL_KIOSK = "personal_kiosk"


DEFAULT_RULES = (PolicyRule.FLOOR_PRICE, PolicyRule.KIOSK_LOCK, PolicyRule.ROYALTY)


async def set_transfer_policy_rules(
    ctx: OperatorContext,
    policy_id: str | None = None,
    add: Sequence[PolicyRule | str] = DEFAULT_RULES,
    remove: Sequence[PolicyRule | str] = (),
) -> TransactionResult:
    """Add and remove rules on a transfer policy in one transaction.

    Floor price and royalty parameters come from the ``policy`` config
    section.

    Raises:
        ValueError: If no rule change was requested
        TransferPolicyNotFoundError: If the signer does not hold the policy cap
    """
    add = [PolicyRule(r) for r in add]
    remove = [PolicyRule(r) for r in remove]
    if not add and not remove:
        raise ValueError("No transfer policy rule changes requested")

    policy = ctx.config.policy
    policy_id = policy_id or require(policy.transfer_policy_id, "policy.transfer_policy_id")
    item_type = require(ctx.config.asset.tokenized_asset_type, "asset.tokenized_asset_type")
    cap = await ctx.kiosk_client.get_policy_cap(item_type, ctx.address, policy_id)

    tp_tx = TransferPolicyTransaction(Transaction(), ctx.kiosk_client, cap, item_type)
    for rule in add:
        if rule == PolicyRule.FLOOR_PRICE:
            tp_tx.add_floor_price_rule(policy.floor_price)
        elif rule == PolicyRule.KIOSK_LOCK:
            tp_tx.add_lock_rule()
        elif rule == PolicyRule.ROYALTY:
            tp_tx.add_royalty_rule(
                percentage_to_basis_points(policy.royalty_percentage),
                policy.royalty_min_amount,
            )
        else:
            tp_tx.add_personal_kiosk_rule()
    for rule in remove:
        if rule == PolicyRule.FLOOR_PRICE:
            tp_tx.remove_floor_price_rule()
        elif rule == PolicyRule.KIOSK_LOCK:
            tp_tx.remove_lock_rule()
        elif rule == PolicyRule.ROYALTY:
            tp_tx.remove_royalty_rule()
        else:
            tp_tx.remove_personal_kiosk_rule()

    result = await ctx.execute(tp_tx.transaction)
    logger.info(
        "Policy %s: added [%s], removed [%s]",
        policy_id,
        ", ".join(r.value for r in add),
        ", ".join(r.value for r in remove),
    )
    return result
