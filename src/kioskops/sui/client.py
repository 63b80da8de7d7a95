"""
Sui JSON-RPC Client.

Provides an async client for the fullnode JSON-RPC API.

Features:
- JSON-RPC 2.0 envelopes over a shared httpx connection
- Automatic retry with exponential backoff using tenacity
- Typed errors for RPC failures, rate limiting and transport problems
- Paginated owned-object and coin queries
"""

from __future__ import annotations

import itertools
import json
import logging
import time
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kioskops.sui.results import SuiObject, TransactionResult
from kioskops.sui.types import SUI_TYPE

logger = logging.getLogger(__name__)

# Maximum ids accepted by sui_multiGetObjects in a single call
MULTI_GET_BATCH = 50


class SuiClientError(Exception):
    """Base exception for fullnode client errors."""

    pass


class RpcError(SuiClientError):
    """Raised when the fullnode answers with a JSON-RPC error object."""

    def __init__(self, message: str, code: int | None = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{msg} (code {self.code})" if self.code is not None else msg


class RateLimitError(SuiClientError):
    """Raised when the fullnode rate limits the caller."""

    pass


class TransportError(SuiClientError):
    """Raised for HTTP-level failures (5xx, connection errors, bad payloads)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ObjectNotFoundError(SuiClientError):
    """Raised when a requested object does not exist or was deleted."""

    def __init__(self, object_id: str, reason: str | None = None):
        super().__init__(f"Object {object_id} not found" + (f": {reason}" if reason else ""))
        self.object_id = object_id


class AsyncSuiClient:
    """Async client for a Sui fullnode.

    Example:
        async with AsyncSuiClient("https://fullnode.testnet.sui.io:443") as client:
            obj = await client.get_object("0x6", show_content=True)
            print(obj.fields)
    """

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        max_retries: int = 3,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Fullnode JSON-RPC URL
            timeout: Request timeout in seconds
            max_retries: Maximum attempts for transient failures
            http_client: Pre-built httpx client (tests, custom transports)
        """
        self._url = url
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = http_client
        self._owns_client = http_client is None
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> AsyncSuiClient:
        """Enter async context."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context."""
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Content-Type": "application/json", "Client-Sdk-Type": "kioskops"},
                timeout=self._timeout,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Perform one JSON-RPC call and return its ``result``.

        Raises:
            RpcError: If the node returns an error object
            RateLimitError: If still rate limited after all attempts
            TransportError: For other HTTP or network failures
        """
        client = self._ensure_client()
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            retry=retry_if_exception_type((RateLimitError, TransportError)),
            reraise=True,
        ):
            with attempt:
                attempt_num = attempt.retry_state.attempt_number
                logger.debug("RPC %s (attempt %d/%d)", method, attempt_num, self._max_retries)
                start_time = time.time()
                try:
                    response = await client.post(self._url, json=body)
                except httpx.HTTPError as e:
                    raise TransportError(f"{method}: {e}") from e
                result = self._handle_response(method, response)
                logger.debug(
                    "RPC %s completed (%dms)", method, int((time.time() - start_time) * 1000)
                )
                return result

        raise TransportError(f"Unexpected error calling {method}")

    def _handle_response(self, method: str, response: httpx.Response) -> Any:
        """Unwrap the JSON-RPC envelope.

        Raises:
            Various SuiClientError subclasses
        """
        if response.status_code == 429:
            logger.warning("Rate limited on %s, Retry-After: %s", method, response.headers.get("Retry-After", "unknown"))
            raise RateLimitError(f"Rate limit exceeded calling {method}")
        elif response.status_code >= 500:
            raise TransportError(
                f"{method}: HTTP {response.status_code}", status_code=response.status_code
            )
        elif response.status_code >= 400:
            raise RpcError(
                f"{method}: HTTP {response.status_code}: {response.text}",
                code=response.status_code,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise TransportError(f"{method}: invalid JSON response: {e}") from e

        if "error" in data and data["error"] is not None:
            error = data["error"]
            raise RpcError(
                f"{method}: {error.get('message', 'unknown error')}",
                code=error.get("code"),
                data=error.get("data"),
            )
        if "result" not in data:
            raise TransportError(f"{method}: response has neither result nor error")
        return data["result"]

    # Read API -------------------------------------------------------------

    @staticmethod
    def _object_options(
        show_type: bool = True,
        show_owner: bool = True,
        show_content: bool = False,
    ) -> dict[str, bool]:
        return {
            "showType": show_type,
            "showOwner": show_owner,
            "showContent": show_content,
        }

    @staticmethod
    def _unwrap_object(object_id: str, response: dict[str, Any]) -> SuiObject:
        if response.get("error") or not response.get("data"):
            error = response.get("error") or {}
            raise ObjectNotFoundError(object_id, error.get("code"))
        return SuiObject.from_rpc(response["data"])

    async def get_object(
        self,
        object_id: str,
        show_type: bool = True,
        show_owner: bool = True,
        show_content: bool = False,
    ) -> SuiObject:
        """Fetch one object.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        response = await self.call(
            "sui_getObject",
            [object_id, self._object_options(show_type, show_owner, show_content)],
        )
        return self._unwrap_object(object_id, response)

    async def multi_get_objects(
        self,
        object_ids: list[str],
        show_type: bool = True,
        show_owner: bool = True,
        show_content: bool = False,
    ) -> list[SuiObject]:
        """Fetch several objects, preserving order.

        Raises:
            ObjectNotFoundError: If any object does not exist
        """
        objects: list[SuiObject] = []
        options = self._object_options(show_type, show_owner, show_content)
        for start in range(0, len(object_ids), MULTI_GET_BATCH):
            batch = object_ids[start : start + MULTI_GET_BATCH]
            responses = await self.call("sui_multiGetObjects", [batch, options])
            for object_id, response in zip(batch, responses):
                objects.append(self._unwrap_object(object_id, response))
        return objects

    async def get_owned_objects(
        self,
        owner: str,
        struct_types: list[str] | None = None,
        show_content: bool = True,
        limit: int = 50,
    ) -> list[SuiObject]:
        """All objects owned by an address, optionally filtered by struct type."""
        query: dict[str, Any] = {
            "options": self._object_options(show_type=True, show_owner=True, show_content=show_content),
        }
        if struct_types:
            filters = [{"StructType": t} for t in struct_types]
            query["filter"] = filters[0] if len(filters) == 1 else {"MatchAny": filters}

        objects: list[SuiObject] = []
        cursor = None
        while True:
            page = await self.call("suix_getOwnedObjects", [owner, query, cursor, limit])
            for item in page.get("data", []):
                if item.get("data"):
                    objects.append(SuiObject.from_rpc(item["data"]))
            if not page.get("hasNextPage"):
                break
            cursor = page.get("nextCursor")
        return objects

    async def get_coins(self, owner: str, coin_type: str = SUI_TYPE) -> list[dict[str, Any]]:
        """All coins of a type owned by an address."""
        coins: list[dict[str, Any]] = []
        cursor = None
        while True:
            page = await self.call("suix_getCoins", [owner, coin_type, cursor, None])
            coins.extend(page.get("data", []))
            if not page.get("hasNextPage"):
                break
            cursor = page.get("nextCursor")
        return coins

    async def get_reference_gas_price(self) -> int:
        """Current reference gas price in MIST."""
        return int(await self.call("suix_getReferenceGasPrice"))

    # Write API ------------------------------------------------------------

    async def execute_transaction_block(
        self,
        tx_bytes: str,
        signatures: list[str],
        request_type: str = "WaitForLocalExecution",
    ) -> TransactionResult:
        """Submit a signed transaction.

        Args:
            tx_bytes: Base64 BCS-encoded TransactionData
            signatures: Base64 serialized signatures
            request_type: Execution request type

        Returns:
            TransactionResult parsed from the effects
        """
        options = {
            "showEffects": True,
            "showEvents": True,
            "showObjectChanges": True,
            "showInput": False,
        }
        result = await self.call(
            "sui_executeTransactionBlock",
            [tx_bytes, signatures, options, request_type],
        )
        parsed = TransactionResult.from_rpc(result)
        logger.info("Transaction %s: %s", parsed.digest, parsed.status)
        return parsed

    async def dry_run_transaction_block(self, tx_bytes: str) -> TransactionResult:
        """Simulate a transaction without signing or committing it."""
        result = await self.call("sui_dryRunTransactionBlock", [tx_bytes])
        parsed = TransactionResult.from_rpc(result)
        logger.info("Dry run: %s", parsed.status)
        return parsed
