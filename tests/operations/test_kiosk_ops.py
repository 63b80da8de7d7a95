"""Tests for kiosk operations."""

import pytest

from kioskops.config import ConfigurationError, PolicyConfig
from kioskops.kiosk import KIOSK_ITEM_FIELD_TYPE, KIOSK_LOCK_FIELD_TYPE, KioskNotFoundError
from kioskops.operations import (
    convert_kiosk_to_personal,
    create_personal_kiosk,
    delist_item,
    list_item,
    lock_item,
    place_item,
)
from tests.conftest import ITEM_ID, KIOSK_ID, POLICY_ID, TEST_ADDRESS, make_effects
from tests.operations.conftest import executed_tx_bytes

FIELD_ID = "0x" + "5f" * 32
OTHER_ID = "0x" + "6f" * 32


def effects_creating(created_types: dict[str, str]):
    return make_effects(
        [(oid, {"ObjectOwner": KIOSK_ID}) for oid in created_types],
        created_types=created_types,
    )


class TestCreateKiosk:
    """Tests for personal kiosk creation."""

    @pytest.mark.asyncio
    async def test_returns_new_kiosk(self, ctx, rpc):
        rpc.gas()
        rpc.on(
            "sui_executeTransactionBlock",
            effects_creating(
                {
                    OTHER_ID: "0xbd::personal_kiosk::PersonalKioskCap",
                    KIOSK_ID: "0x2::kiosk::Kiosk",
                }
            ),
        )
        async with ctx:
            assert await create_personal_kiosk(ctx) == KIOSK_ID
        # Nothing to resolve: every argument is created in the transaction
        assert not rpc.params("sui_multiGetObjects")
        assert not rpc.params("suix_getOwnedObjects")


class TestConvertKiosk:
    """Tests for converting a kiosk to personal."""

    @pytest.mark.asyncio
    async def test_convert(self, ctx, chain):
        async with ctx:
            result = await convert_kiosk_to_personal(ctx)
        assert result.succeeded
        assert b"personal_kiosk" in executed_tx_bytes(chain)

    @pytest.mark.asyncio
    async def test_unknown_kiosk(self, ctx, chain):
        async with ctx:
            with pytest.raises(KioskNotFoundError):
                await convert_kiosk_to_personal(ctx, "0x" + "77" * 32)
        assert not chain.params("sui_executeTransactionBlock")


class TestItems:
    """Tests for place, lock, list and delist."""

    @pytest.mark.asyncio
    async def test_place(self, ctx, chain):
        chain.on("sui_executeTransactionBlock", effects_creating({FIELD_ID: KIOSK_ITEM_FIELD_TYPE}))
        async with ctx:
            assert await place_item(ctx) == FIELD_ID
        # kiosk and item resolved in one call, the cap came with the lookup
        (params,) = chain.params("sui_multiGetObjects")
        assert params[0] == [KIOSK_ID, ITEM_ID]
        assert b"\x05place" in executed_tx_bytes(chain)

    @pytest.mark.asyncio
    async def test_place_explicit_item(self, ctx, chain):
        other_item = "0x" + "d2" * 32
        chain.objects(
            *[{"objectId": oid, "version": "1", "digest": "1" * 32, "owner": {"AddressOwner": TEST_ADDRESS}} for oid in (KIOSK_ID, other_item)]
        )
        async with ctx:
            await place_item(ctx, other_item)
        assert chain.params("sui_multiGetObjects")[0][0] == [KIOSK_ID, other_item]

    @pytest.mark.asyncio
    async def test_lock(self, ctx, chain):
        chain.on(
            "sui_executeTransactionBlock",
            effects_creating({OTHER_ID: KIOSK_ITEM_FIELD_TYPE, FIELD_ID: KIOSK_LOCK_FIELD_TYPE}),
        )
        async with ctx:
            assert await lock_item(ctx) == FIELD_ID
        tx_bytes = executed_tx_bytes(chain)
        # The policy goes in as an immutable shared object
        assert bytes.fromhex(POLICY_ID[2:]) + (5).to_bytes(8, "little") + b"\x00" in tx_bytes

    @pytest.mark.asyncio
    async def test_lock_requires_policy(self, ctx, chain):
        ctx.config.policy = PolicyConfig()
        async with ctx:
            with pytest.raises(ConfigurationError, match="policy.transfer_policy_id"):
                await lock_item(ctx)

    @pytest.mark.asyncio
    async def test_list_default_price(self, ctx, chain):
        chain.on("sui_executeTransactionBlock", effects_creating({FIELD_ID: "0x2::dynamic_field::Field<0x2::kiosk::Listing, u64>"}))
        async with ctx:
            assert await list_item(ctx) == FIELD_ID
        assert b"\x08" + (100000).to_bytes(8, "little") in executed_tx_bytes(chain)

    @pytest.mark.asyncio
    async def test_list_explicit_price(self, ctx, chain):
        async with ctx:
            await list_item(ctx, price=777)
        assert b"\x08" + (777).to_bytes(8, "little") in executed_tx_bytes(chain)

    @pytest.mark.asyncio
    async def test_delist(self, ctx, chain):
        async with ctx:
            assert await delist_item(ctx) == ITEM_ID
        assert b"\x06delist" in executed_tx_bytes(chain)

    @pytest.mark.asyncio
    async def test_item_type_required(self, ctx, chain):
        ctx.config.asset.tokenized_asset_type = None
        async with ctx:
            with pytest.raises(ConfigurationError, match="asset.tokenized_asset_type"):
                await place_item(ctx)
