"""
Kiosk operations.

Each operation builds one transaction against the target kiosk (or a new
one), executes it as the context's signer and reports the object it
created.
"""

import logging

from kioskops.config.loader import require
from kioskops.kiosk.constants import KIOSK_ITEM_FIELD_TYPE, KIOSK_LOCK_FIELD_TYPE, KIOSK_TYPE
from kioskops.kiosk.transaction import KioskTransaction
from kioskops.operations.context import OperatorContext
from kioskops.sui.results import TransactionResult
from kioskops.sui.transaction import Transaction

logger = logging.getLogger(__name__)


def _item_type(ctx: OperatorContext) -> str:
    return require(ctx.config.asset.tokenized_asset_type, "asset.tokenized_asset_type")


def _item_id(ctx: OperatorContext, item_id: str | None) -> str:
    return item_id or require(ctx.config.asset.tokenized_asset_id, "asset.tokenized_asset_id")


async def _kiosk_transaction(ctx: OperatorContext, kiosk_id: str | None = None) -> KioskTransaction:
    cap = await ctx.get_kiosk_cap(kiosk_id)
    return KioskTransaction(Transaction(), ctx.kiosk_client, cap)


async def create_personal_kiosk(ctx: OperatorContext) -> str | None:
    """Create a new kiosk owned through a personal cap.

    Returns:
        Id of the new kiosk
    """
    kiosk_tx = KioskTransaction(Transaction(), ctx.kiosk_client)
    kiosk_tx.create_personal().finalize()
    result = await ctx.execute(kiosk_tx.transaction)

    kiosk_id = await ctx.find_created_of_type(result, KIOSK_TYPE)
    logger.info("Kiosk ID: %s", kiosk_id)
    return kiosk_id


async def convert_kiosk_to_personal(ctx: OperatorContext, kiosk_id: str | None = None) -> TransactionResult:
    """Turn the owner cap of a kiosk into a personal cap."""
    kiosk_tx = await _kiosk_transaction(ctx, kiosk_id)
    kiosk_tx.convert_to_personal(borrow=False).finalize()
    result = await ctx.execute(kiosk_tx.transaction)
    logger.info("Kiosk converted to personal: %s %s", result.status, result.digest)
    return result


async def place_item(ctx: OperatorContext, item_id: str | None = None) -> str | None:
    """Place a tokenized asset into the target kiosk.

    Returns:
        Id of the dynamic object field holding the item
    """
    kiosk_tx = await _kiosk_transaction(ctx)
    kiosk_tx.place(_item_type(ctx), _item_id(ctx, item_id)).finalize()
    result = await ctx.execute(kiosk_tx.transaction)

    field_id = await ctx.find_created_of_type(result, KIOSK_ITEM_FIELD_TYPE)
    logger.info("Dynamic object field: %s", field_id)
    return field_id


async def lock_item(ctx: OperatorContext, item_id: str | None = None) -> str | None:
    """Lock a tokenized asset into the target kiosk under the transfer policy.

    Returns:
        Id of the lock dynamic field
    """
    policy_id = require(ctx.config.policy.transfer_policy_id, "policy.transfer_policy_id")
    kiosk_tx = await _kiosk_transaction(ctx)
    kiosk_tx.lock(_item_type(ctx), _item_id(ctx, item_id), policy_id).finalize()
    result = await ctx.execute(kiosk_tx.transaction)

    field_id = await ctx.find_created_of_type(result, KIOSK_LOCK_FIELD_TYPE)
    logger.info("Lock dynamic field: %s", field_id)
    return field_id


async def list_item(
    ctx: OperatorContext,
    item_id: str | None = None,
    price: int | None = None,
) -> str | None:
    """List a tokenized asset for sale.

    Returns:
        Id of the listing dynamic field (first created object)
    """
    price = ctx.config.kiosk.listing_price if price is None else price
    kiosk_tx = await _kiosk_transaction(ctx)
    kiosk_tx.list(_item_type(ctx), _item_id(ctx, item_id), price).finalize()
    result = await ctx.execute(kiosk_tx.transaction)

    listing_id = result.first_created()
    logger.info("Listing dynamic field: %s", listing_id)
    return listing_id


async def delist_item(ctx: OperatorContext, item_id: str | None = None) -> str:
    """Remove the listing of a tokenized asset.

    Returns:
        The delisted item id
    """
    item_id = _item_id(ctx, item_id)
    kiosk_tx = await _kiosk_transaction(ctx)
    kiosk_tx.delist(_item_type(ctx), item_id).finalize()
    await ctx.execute(kiosk_tx.transaction)
    logger.info("Delisted item: %s", item_id)
    return item_id
