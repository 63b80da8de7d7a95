"""Fixtures for operation tests: a signing context against the mocked fullnode."""

import base64

import pytest

from kioskops.operations import OperatorContext
from kioskops.sui.client import AsyncSuiClient
from tests.conftest import (
    ITEM_ID,
    ITEM_TYPE,
    KIOSK_CAP_ID,
    KIOSK_ID,
    POLICY_CAP_ID,
    POLICY_ID,
    RPC_URL,
    make_effects,
    make_object,
    shared_owner,
)


@pytest.fixture
def ctx(config, keypair):
    """Context signing as the test account."""
    return OperatorContext(config, AsyncSuiClient(RPC_URL, max_retries=1), keypair)


@pytest.fixture
def chain(rpc):
    """Fullnode holding the test kiosk, item, policy and their caps."""
    rpc.objects(
        make_object(KIOSK_ID, "0x2::kiosk::Kiosk", owner=shared_owner(3)),
        make_object(ITEM_ID, ITEM_TYPE),
        make_object(POLICY_ID, f"0x2::transfer_policy::TransferPolicy<{ITEM_TYPE}>", owner=shared_owner(5)),
    )
    rpc.gas()

    def owned_objects(params):
        struct_types = params[1]["filter"]
        if "MatchAny" in struct_types:
            objects = [
                make_object(
                    KIOSK_CAP_ID,
                    "0x2::kiosk::KioskOwnerCap",
                    fields={"id": {"id": KIOSK_CAP_ID}, "for": KIOSK_ID},
                )
            ]
        else:
            objects = [
                make_object(
                    POLICY_CAP_ID,
                    f"0x2::transfer_policy::TransferPolicyCap<{ITEM_TYPE}>",
                    fields={"id": {"id": POLICY_CAP_ID}, "policy_id": POLICY_ID},
                )
            ]
        return {"data": [{"data": o} for o in objects], "hasNextPage": False}

    rpc.on("suix_getOwnedObjects", handler=owned_objects)
    rpc.on("sui_executeTransactionBlock", make_effects())
    return rpc


def executed_tx_bytes(rpc, method: str = "sui_executeTransactionBlock") -> bytes:
    """Decoded TransactionData of the single executed transaction."""
    (params,) = rpc.params(method)
    return base64.b64decode(params[0])
