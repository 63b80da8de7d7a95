"""
Configuration Data Models.

Defines all configuration schemas using Pydantic for validation
and type safety.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class SuiNetwork(str, Enum):
    """Public Sui networks with a well-known fullnode."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    DEVNET = "devnet"
    LOCALNET = "localnet"


class KioskNetwork(str, Enum):
    """Networks on which the kiosk extension package is published."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RequestType(str, Enum):
    """How long the fullnode waits before answering an execution request."""

    WAIT_FOR_EFFECTS_CERT = "WaitForEffectsCert"
    WAIT_FOR_LOCAL_EXECUTION = "WaitForLocalExecution"


FULLNODE_URLS = {
    SuiNetwork.MAINNET: "https://fullnode.mainnet.sui.io:443",
    SuiNetwork.TESTNET: "https://fullnode.testnet.sui.io:443",
    SuiNetwork.DEVNET: "https://fullnode.devnet.sui.io:443",
    SuiNetwork.LOCALNET: "http://127.0.0.1:9000",
}

DEFAULT_DERIVATION_PATH = "m/44'/784'/0'/0'/0'"


def get_fullnode_url(network: SuiNetwork | str) -> str:
    """Return the public fullnode URL for a network."""
    return FULLNODE_URLS[SuiNetwork(network)]


class NetworkConfig(BaseModel):
    """Fullnode endpoint and kiosk network selection.

    Attributes:
        name: Sui network the operator talks to
        rpc_url: JSON-RPC endpoint (defaults to the public fullnode of ``name``)
        kiosk_network: Network whose kiosk extension package is used
        rules_package_id: Override for the kiosk extension package id
        request_timeout: HTTP timeout in seconds
        max_retries: Attempts for transient RPC failures
    """

    name: SuiNetwork = Field(
        default=SuiNetwork.TESTNET,
        description="Sui network",
    )
    rpc_url: str | None = Field(
        default=None,
        description="Fullnode JSON-RPC URL",
    )
    kiosk_network: KioskNetwork = Field(
        default=KioskNetwork.TESTNET,
        description="Kiosk extension network",
    )
    rules_package_id: str | None = Field(
        default=None,
        description="Kiosk extension package id override",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transient failures",
    )

    @property
    def endpoint(self) -> str:
        """The RPC URL actually used."""
        return self.rpc_url or get_fullnode_url(self.name)


class AccountsConfig(BaseModel):
    """Key derivation settings. Mnemonics themselves live in the environment."""

    derivation_path: str = Field(
        default=DEFAULT_DERIVATION_PATH,
        description="SLIP-0010 derivation path",
    )

    @field_validator("derivation_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Validate the path shape; every segment must be hardened."""
        parts = v.split("/")
        if parts[0] != "m" or len(parts) < 2:
            raise ValueError("Derivation path must start with 'm/'")
        for part in parts[1:]:
            if not part.endswith("'") or not part[:-1].isdigit():
                raise ValueError(f"Only hardened segments are supported: {part!r}")
        return v


class AssetConfig(BaseModel):
    """Asset tokenization package and the objects it produced.

    Attributes:
        package_id: Published asset tokenization package
        otw_type: One-time-witness type of the published asset module
        asset_cap_id: AssetCap object of the asset
        tokenized_asset_id: Default tokenized asset for kiosk operations
        tokenized_asset_type: Full type of the tokenized asset
        template_path: Compiled template module; the embedded one is used if unset
        extra_modules: Compiled modules published alongside the template
    """

    package_id: str | None = Field(default=None, description="Asset tokenization package id")
    otw_type: str | None = Field(default=None, description="Asset one-time-witness type")
    asset_cap_id: str | None = Field(default=None, description="AssetCap object id")
    tokenized_asset_id: str | None = Field(default=None, description="Tokenized asset id")
    tokenized_asset_type: str | None = Field(default=None, description="Tokenized asset type")
    template_path: Path | None = Field(default=None, description="Template .mv file")
    extra_modules: list[Path] = Field(
        default_factory=list,
        description="Additional .mv files to publish",
    )


class KioskConfig(BaseModel):
    """Kiosk targeted by place/lock/list/delist."""

    target_kiosk_id: str | None = Field(default=None, description="Target kiosk id")
    listing_price: int = Field(
        default=100000,
        ge=0,
        description="Listing price in MIST",
    )


class PolicyConfig(BaseModel):
    """Transfer policy and the rule parameters applied to it."""

    transfer_policy_id: str | None = Field(default=None, description="Transfer policy id")
    floor_price: int = Field(default=1000, ge=0, description="Floor price in MIST")
    royalty_percentage: float = Field(
        default=10.0,
        ge=0.0,
        le=100.0,
        description="Royalty percentage",
    )
    royalty_min_amount: int = Field(default=0, ge=0, description="Minimum royalty in MIST")


class GasConfig(BaseModel):
    """Gas budgets and execution request type."""

    budget: int = Field(default=50_000_000, gt=0, description="Gas budget in MIST")
    publish_budget: int = Field(
        default=100_000_000,
        gt=0,
        description="Gas budget for package publish",
    )
    request_type: RequestType = Field(
        default=RequestType.WAIT_FOR_LOCAL_EXECUTION,
        description="Execution request type",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log record format",
    )


class KioskOpsConfig(BaseModel):
    """Root configuration for the operator commands.

    Attributes:
        network: Fullnode and kiosk network
        accounts: Key derivation settings
        asset: Asset tokenization ids
        kiosk: Target kiosk
        policy: Transfer policy
        gas: Gas budgets
        logging: Logging configuration
        dry_run: Dry-run transactions instead of executing them
    """

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    accounts: AccountsConfig = Field(default_factory=AccountsConfig)
    asset: AssetConfig = Field(default_factory=AssetConfig)
    kiosk: KioskConfig = Field(default_factory=KioskConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    gas: GasConfig = Field(default_factory=GasConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    dry_run: bool = Field(default=False, description="Dry-run instead of executing")

    @model_validator(mode="after")
    def validate_publish_budget(self) -> "KioskOpsConfig":
        """Publishing never costs less than a regular call."""
        if self.gas.publish_budget < self.gas.budget:
            raise ValueError("gas.publish_budget must be >= gas.budget")
        return self

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert to YAML-friendly dictionary."""
        return self.model_dump(mode="json", exclude_none=True)
