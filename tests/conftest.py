"""
KioskOps Test Configuration and Fixtures

This module provides pytest fixtures for testing the operator commands.
All fixtures avoid real network calls: the fullnode is replaced by a respx
route that answers JSON-RPC methods from registered handlers.

Fixture Categories:
- Environment: isolation from .env files and KIOSKOPS_* variables
- Accounts: a fixed test mnemonic and its keypair
- Fullnode: a JSON-RPC mock and object/coin payload builders
- Configuration: a fully populated KioskOpsConfig
"""

import json
from collections.abc import Callable
from typing import Any

import pytest
import respx
from httpx import Request, Response

from kioskops.config import (
    ENV_VAR_OVERRIDES,
    AssetConfig,
    KioskConfig,
    KioskOpsConfig,
    NetworkConfig,
    PolicyConfig,
    reset_config,
    reset_environment,
)

RPC_URL = "http://fullnode.test:9000"

# Test mnemonic with its known Sui address
TEST_MNEMONIC = (
    "film crazy soon outside stand loop subway crumble thrive popular green nuclear "
    "struggle pistol arm wife phrase warfare march wheat nephew ask sunny firm"
)
TEST_ADDRESS = "0xa2d14fad60c56049ecf75246a481934691214ce413e6a8ae2fe6834c173a6133"

# Well-known test object ids
PACKAGE_ID = "0x" + "a1" * 32
ASSET_CAP_ID = "0x" + "c1" * 32
ITEM_ID = "0x" + "d1" * 32
KIOSK_ID = "0x" + "e1" * 32
KIOSK_CAP_ID = "0x" + "e2" * 32
POLICY_ID = "0x" + "f1" * 32
POLICY_CAP_ID = "0x" + "f2" * 32
GAS_COIN_ID = "0x" + "9a" * 32
ITEM_TYPE = f"{PACKAGE_ID}::tokenized_asset::TokenizedAsset<{PACKAGE_ID}::magic::MAGIC>"

# Any valid base58 digest (32 bytes)
DIGEST = "4vJ9JU1bJJE96FWSJKvHsmmFADCg4gpZQff4P3bkLKi"


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Reset global config and keep .env files and shell overrides out of tests."""
    import kioskops.config.environment as env_module

    reset_config()
    reset_environment()

    for var in [*ENV_VAR_OVERRIDES, "KIOSKOPS_CONFIG", "ADMIN_PHRASE", "BUYER_PHRASE"]:
        monkeypatch.delenv(var, raising=False)

    # Prevent ensure_dotenv_loaded() from reading a developer's .env
    monkeypatch.setattr(env_module, "_dotenv_loaded", True)

    yield

    reset_config()
    reset_environment()


@pytest.fixture
def admin_phrase(monkeypatch) -> str:
    """Export the test mnemonic as the admin account."""
    import kioskops.config.environment as env_module

    monkeypatch.setenv("ADMIN_PHRASE", TEST_MNEMONIC)
    reset_environment()
    monkeypatch.setattr(env_module, "_dotenv_loaded", True)
    return TEST_MNEMONIC


@pytest.fixture
def keypair():
    """Keypair derived from the test mnemonic."""
    from kioskops.sui.keypair import Ed25519Keypair

    return Ed25519Keypair.derive(TEST_MNEMONIC)


# =============================================================================
# Fullnode payloads
# =============================================================================


def make_object(
    object_id: str,
    type_: str | None = None,
    owner: Any = None,
    fields: dict[str, Any] | None = None,
    version: int = 7,
    digest: str = DIGEST,
) -> dict[str, Any]:
    """An object response as returned inside ``{"data": ...}``."""
    data: dict[str, Any] = {
        "objectId": object_id,
        "version": str(version),
        "digest": digest,
        "owner": owner if owner is not None else {"AddressOwner": TEST_ADDRESS},
    }
    if type_ is not None:
        data["type"] = type_
    if fields is not None:
        data["content"] = {"dataType": "moveObject", "type": type_, "fields": fields}
    return data


def shared_owner(initial_shared_version: int = 3) -> dict[str, Any]:
    return {"Shared": {"initial_shared_version": initial_shared_version}}


def make_coin(coin_id: str = GAS_COIN_ID, balance: int = 10_000_000_000) -> dict[str, Any]:
    return {
        "coinType": "0x2::sui::SUI",
        "coinObjectId": coin_id,
        "version": "11",
        "digest": DIGEST,
        "balance": str(balance),
    }


def make_effects(
    created: list[tuple[str, Any]] | None = None,
    status: str = "success",
    error: str | None = None,
    digest: str = "TxDigest111",
    created_types: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Execution response with the given created (id, owner) pairs."""
    status_payload: dict[str, Any] = {"status": status}
    if error:
        status_payload["error"] = error
    response: dict[str, Any] = {
        "digest": digest,
        "effects": {
            "status": status_payload,
            "created": [
                {"owner": owner, "reference": {"objectId": oid, "version": "12", "digest": DIGEST}}
                for oid, owner in created or []
            ],
        },
    }
    if created_types is not None:
        response["objectChanges"] = [
            {"type": "created", "objectId": oid, "objectType": type_}
            for oid, type_ in created_types.items()
        ]
    return response


class RpcMock:
    """JSON-RPC fullnode double.

    Handlers are registered per method and receive the params list; every
    request is recorded for assertions.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[list[Any]], Any]] = {}
        self.calls: list[tuple[str, list[Any]]] = []

    def on(self, method: str, result: Any = None, handler: Callable[[list[Any]], Any] | None = None) -> None:
        self.handlers[method] = handler or (lambda params: result)

    def params(self, method: str) -> list[list[Any]]:
        return [params for name, params in self.calls if name == method]

    def __call__(self, request: Request) -> Response:
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.calls.append((method, params))
        if method not in self.handlers:
            return Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": f"no handler for {method}"}},
            )
        return Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": self.handlers[method](params)})

    def objects(self, *objects: dict[str, Any]) -> None:
        """Serve sui_getObject / sui_multiGetObjects from a fixed set of objects."""
        by_id = {obj["objectId"]: obj for obj in objects}

        def lookup(object_id: str) -> dict[str, Any]:
            if object_id in by_id:
                return {"data": by_id[object_id]}
            return {"error": {"code": "notExists", "object_id": object_id}}

        self.on("sui_getObject", handler=lambda params: lookup(params[0]))
        self.on("sui_multiGetObjects", handler=lambda params: [lookup(oid) for oid in params[0]])

    def gas(self, balance: int = 10_000_000_000, price: int = 1000) -> None:
        self.on("suix_getCoins", {"data": [make_coin(balance=balance)], "hasNextPage": False, "nextCursor": None})
        self.on("suix_getReferenceGasPrice", str(price))


@pytest.fixture
def rpc():
    """A respx-backed fullnode at RPC_URL."""
    mock = RpcMock()
    with respx.mock(assert_all_called=False) as router:
        router.post(RPC_URL).mock(side_effect=mock)
        yield mock


@pytest.fixture
def sui_client():
    """Client for the mocked fullnode, without retry backoff."""
    from kioskops.sui.client import AsyncSuiClient

    return AsyncSuiClient(RPC_URL, max_retries=1)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def config() -> KioskOpsConfig:
    """Configuration with every well-known object set."""
    return KioskOpsConfig(
        network=NetworkConfig(rpc_url=RPC_URL, max_retries=1),
        asset=AssetConfig(
            package_id=PACKAGE_ID,
            otw_type=f"{PACKAGE_ID}::magic::MAGIC",
            asset_cap_id=ASSET_CAP_ID,
            tokenized_asset_id=ITEM_ID,
            tokenized_asset_type=ITEM_TYPE,
        ),
        kiosk=KioskConfig(target_kiosk_id=KIOSK_ID),
        policy=PolicyConfig(transfer_policy_id=POLICY_ID),
    )
