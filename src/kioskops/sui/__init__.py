"""
Sui fullnode access.

This package provides:
- Async JSON-RPC client with retries
- Ed25519 operator keys derived from mnemonics
- A programmable transaction builder with BCS encoding
"""

from kioskops.sui.client import (
    AsyncSuiClient,
    ObjectNotFoundError,
    RateLimitError,
    RpcError,
    SuiClientError,
    TransportError,
)
from kioskops.sui.keypair import Ed25519Keypair, KeyDerivationError, get_signer
from kioskops.sui.results import CreatedObject, SuiObject, TransactionResult
from kioskops.sui.transaction import (
    GAS_COIN,
    Argument,
    CommandResult,
    InsufficientGasError,
    Transaction,
    TransactionBuildError,
)
from kioskops.sui.types import (
    ObjectRef,
    StructTag,
    TypeTag,
    is_valid_sui_address,
    normalize_struct_type,
    normalize_sui_address,
    normalize_sui_object_id,
    parse_type_tag,
)

__all__ = [
    # Client
    "AsyncSuiClient",
    "ObjectNotFoundError",
    "RateLimitError",
    "RpcError",
    "SuiClientError",
    "TransportError",
    # Keys
    "Ed25519Keypair",
    "KeyDerivationError",
    "get_signer",
    # Results
    "CreatedObject",
    "SuiObject",
    "TransactionResult",
    # Transactions
    "GAS_COIN",
    "Argument",
    "CommandResult",
    "InsufficientGasError",
    "Transaction",
    "TransactionBuildError",
    # Types
    "ObjectRef",
    "StructTag",
    "TypeTag",
    "is_valid_sui_address",
    "normalize_struct_type",
    "normalize_sui_address",
    "normalize_sui_object_id",
    "parse_type_tag",
]
