"""
Asset tokenization operations: minting and supply queries.
"""

import logging
from collections.abc import Sequence

from kioskops.config.loader import require
from kioskops.operations.context import OperatorContext
from kioskops.sui.transaction import Transaction

logger = logging.getLogger(__name__)

DEFAULT_MINT_VALUE = 3


class AssetCapError(Exception):
    """Raised when an object read as an AssetCap lacks an AssetCap field."""

    def __init__(self, object_id: str, field: str):
        super().__init__(f"Object {object_id} is not an AssetCap: missing field '{field}'")
        self.object_id = object_id
        self.field = field


async def mint(
    ctx: OperatorContext,
    keys: Sequence[str] = (),
    values: Sequence[str] = (),
    value: int = DEFAULT_MINT_VALUE,
) -> str | None:
    """Mint a tokenized asset and send it to the signer.

    Args:
        ctx: Operator context
        keys: Metadata keys of the asset
        values: Metadata values, one per key
        value: Balance of the minted asset

    Returns:
        Id of the minted asset (first created object)
    """
    if len(keys) != len(values):
        raise ValueError(f"Got {len(keys)} metadata keys but {len(values)} values")
    asset = ctx.config.asset
    package_id = require(asset.package_id, "asset.package_id")
    otw_type = require(asset.otw_type, "asset.otw_type")
    asset_cap_id = require(asset.asset_cap_id, "asset.asset_cap_id")

    tx = Transaction()
    tokenized_asset = tx.move_call(
        target=f"{package_id}::tokenized_asset::mint",
        type_arguments=[otw_type],
        arguments=[
            tx.object(asset_cap_id),
            tx.pure_vector_string(list(keys)),
            tx.pure_vector_string(list(values)),
            tx.pure_u64(value),
        ],
    )
    tx.transfer_objects([tokenized_asset], ctx.address)

    result = await ctx.execute(tx)
    asset_id = result.first_created()
    logger.info("Minted tokenized asset: %s", asset_id)
    return asset_id


async def _read_asset_cap(ctx: OperatorContext, asset_cap_id: str | None, *path: str) -> int:
    """Integer at ``path`` inside the AssetCap's Move fields."""
    asset_cap_id = asset_cap_id or require(ctx.config.asset.asset_cap_id, "asset.asset_cap_id")
    obj = await ctx.client.get_object(asset_cap_id, show_owner=False, show_content=True)
    value = obj.fields
    for depth, key in enumerate(path):
        if not isinstance(value, dict) or key not in value:
            raise AssetCapError(asset_cap_id, ".".join(path[: depth + 1]))
        value = value[key]
    return int(value)


async def get_supply(ctx: OperatorContext, asset_cap_id: str | None = None) -> int:
    """Current circulating supply of the asset."""
    supply = await _read_asset_cap(ctx, asset_cap_id, "supply", "fields", "value")
    logger.info("Current supply: %d", supply)
    return supply


async def get_total_supply(ctx: OperatorContext, asset_cap_id: str | None = None) -> int:
    """Maximum supply of the asset."""
    total_supply = await _read_asset_cap(ctx, asset_cap_id, "total_supply")
    logger.info("Total supply: %d", total_supply)
    return total_supply
