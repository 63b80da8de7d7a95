"""
Operator Context.

Bundles what every operation needs: configuration, the fullnode client,
the signing key and the kiosk client. It also builds, signs and submits
transactions (or dry-runs them when the config asks for it).
"""

from __future__ import annotations

import logging
from typing import Any

from kioskops.config.loader import get_config, load_config, require
from kioskops.config.models import KioskOpsConfig
from kioskops.kiosk.client import KioskClient, KioskOwnerCap
from kioskops.sui.client import AsyncSuiClient
from kioskops.sui.keypair import Ed25519Keypair, get_signer
from kioskops.sui.results import TransactionResult
from kioskops.sui.transaction import Transaction, encode_base64
from kioskops.sui.types import normalize_struct_type

logger = logging.getLogger(__name__)


class TransactionFailedError(Exception):
    """Raised when a transaction executes with a non-success status."""

    def __init__(self, result: TransactionResult):
        super().__init__(
            f"Transaction {result.digest or '(dry run)'} failed: {result.error or result.status}"
        )
        self.result = result
        self.digest = result.digest
        self.error = result.error


class OperatorContext:
    """Configuration, client and signer for one operator session.

    Example:
        async with OperatorContext.from_config(config) as ctx:
            item = await place_item(ctx)
    """

    def __init__(
        self,
        config: KioskOpsConfig,
        client: AsyncSuiClient,
        signer: Ed25519Keypair | None,
        kiosk_client: KioskClient | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.signer = signer
        self.kiosk_client = kiosk_client or KioskClient(
            client,
            network=config.network.kiosk_network,
            rules_package_id=config.network.rules_package_id,
        )

    @classmethod
    def from_config(
        cls,
        config: KioskOpsConfig | None = None,
        role: str | None = "admin",
    ) -> OperatorContext:
        """Build a context from configuration and the role's mnemonic.

        Args:
            config: Configuration (the global one, loaded if needed, when None)
            role: ``admin`` or ``buyer``; None for a read-only context
        """
        if config is None:
            try:
                config = get_config()
            except RuntimeError:
                config = load_config()
        client = AsyncSuiClient(
            config.network.endpoint,
            timeout=config.network.request_timeout,
            max_retries=config.network.max_retries,
        )
        signer = get_signer(role, config.accounts.derivation_path) if role else None
        return cls(config, client, signer)

    async def __aenter__(self) -> OperatorContext:
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.client.close()

    @property
    def address(self) -> str:
        if self.signer is None:
            raise RuntimeError("Operator context has no signer")
        return self.signer.address

    async def get_kiosk_cap(self, kiosk_id: str | None = None) -> KioskOwnerCap:
        """Signer's cap for ``kiosk_id`` or the configured target kiosk."""
        kiosk_id = kiosk_id or require(self.config.kiosk.target_kiosk_id, "kiosk.target_kiosk_id")
        return await self.kiosk_client.get_kiosk_cap(self.address, kiosk_id)

    async def execute(self, tx: Transaction, gas_budget: int | None = None) -> TransactionResult:
        """Build, sign and submit a transaction.

        With ``dry_run`` set the transaction is simulated and never signed.

        Raises:
            TransactionFailedError: If the effects status is not success
        """
        budget = gas_budget or self.config.gas.budget
        tx_bytes = await tx.build(self.client, self.address, budget)
        encoded = encode_base64(tx_bytes)

        if self.config.dry_run:
            result = await self.client.dry_run_transaction_block(encoded)
        else:
            signature = self.signer.sign_transaction(tx_bytes)
            result = await self.client.execute_transaction_block(
                encoded,
                [signature],
                request_type=self.config.gas.request_type.value,
            )

        logger.info("Execution status: %s", result.status)
        if not result.succeeded:
            raise TransactionFailedError(result)
        return result

    async def find_created_of_type(self, result: TransactionResult, type_: str) -> str | None:
        """Id of the first created object of ``type_``.

        Types come from the object changes of the result; objects are
        fetched only when the response carried none.
        """
        wanted = normalize_struct_type(type_)
        if result.created_types:
            for obj in result.created:
                created_type = result.created_types.get(obj.object_id)
                if created_type and normalize_struct_type(created_type) == wanted:
                    return obj.object_id
            return None

        if not result.created_ids:
            return None
        objects = await self.client.multi_get_objects(result.created_ids, show_type=True, show_owner=False)
        for obj in objects:
            if obj.has_type(type_):
                return obj.object_id
        return None
