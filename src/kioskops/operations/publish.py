"""
Asset publishing.

Re-brands the compiled template module for a new asset (module name,
supply, metadata, burnability) and publishes it together with any extra
modules, depending on the asset tokenization package.
"""

import logging
from pathlib import Path

from aptos_sdk.bcs import Serializer
from pydantic import BaseModel, Field, field_validator

from kioskops.bytecode.template import CompiledModule, TemplateError
from kioskops.bytecode.template_bytes import get_template_bytecode
from kioskops.config.loader import require
from kioskops.operations.context import OperatorContext
from kioskops.sui.transaction import Transaction

logger = logging.getLogger(__name__)

# Placeholder values compiled into the template
TEMPLATE_MODULE_NAME = "template"
TEMPLATE_TOTAL_SUPPLY = 100
TEMPLATE_SYMBOL = "Symbol"
TEMPLATE_NAME = "Name"
TEMPLATE_DESCRIPTION = "Description"
TEMPLATE_ICON_URL = "icon_url"
TEMPLATE_BURNABLE = True

FRAMEWORK_DEPENDENCIES = ("0x1", "0x2")


class AssetTemplateParams(BaseModel):
    """Parameters of a new asset.

    Attributes:
        module_name: Move module name; its upper-case form names the one-time witness
        total_supply: Maximum supply
        symbol: Asset symbol
        name: Asset name
        description: Asset description
        icon_url: Icon URL
        burnable: Whether holders may burn the asset
    """

    module_name: str = Field(description="Module name")
    total_supply: int = Field(ge=0, le=2**64 - 1, description="Maximum supply")
    symbol: str = Field(description="Symbol")
    name: str = Field(description="Name")
    description: str = Field(description="Description")
    icon_url: str = Field(description="Icon URL")
    burnable: bool = Field(default=True, description="Burnable")

    @field_validator("module_name")
    @classmethod
    def validate_module_name(cls, v: str) -> str:
        """Module names are lower-case identifiers."""
        if not v or not v[0].isalpha() or not all(c.isalnum() or c == "_" for c in v) or not v.isascii():
            raise ValueError(f"Invalid module name: {v!r}")
        if v != v.lower():
            raise ValueError(f"Module name must be lower case: {v!r}")
        return v


def _bcs_string(value: str) -> bytes:
    serializer = Serializer()
    serializer.str(value)
    return serializer.output()


def _bcs_u64(value: int) -> bytes:
    serializer = Serializer()
    serializer.u64(value)
    return serializer.output()


def _bcs_bool(value: bool) -> bytes:
    serializer = Serializer()
    serializer.bool(value)
    return serializer.output()


def build_asset_module(params: AssetTemplateParams, template: bytes | None = None) -> bytes:
    """Patch the template module with the asset's parameters.

    Raises:
        TemplateError: If the template lacks an expected identifier or constant,
            or two constants end up with the same type and value
    """
    module = CompiledModule.deserialize(template if template is not None else get_template_bytecode())
    module.change_identifiers(
        {
            TEMPLATE_MODULE_NAME.upper(): params.module_name.upper(),
            TEMPLATE_MODULE_NAME: params.module_name,
        }
    )

    replacements = [
        ("U64", _bcs_u64(TEMPLATE_TOTAL_SUPPLY), _bcs_u64(params.total_supply)),
        ("Vector(U8)", _bcs_string(TEMPLATE_SYMBOL), _bcs_string(params.symbol)),
        ("Vector(U8)", _bcs_string(TEMPLATE_NAME), _bcs_string(params.name)),
        ("Vector(U8)", _bcs_string(TEMPLATE_DESCRIPTION), _bcs_string(params.description)),
        ("Vector(U8)", _bcs_string(TEMPLATE_ICON_URL), _bcs_string(params.icon_url)),
        ("Bool", _bcs_bool(TEMPLATE_BURNABLE), _bcs_bool(params.burnable)),
    ]
    # Placeholders match template values only, never earlier replacements
    targets = []
    for type_, placeholder, new_value in replacements:
        indexes = module.find_constants(placeholder, type_)
        if not indexes:
            raise TemplateError(f"Template has no {type_} constant 0x{placeholder.hex()}")
        targets.append((indexes, new_value))
    for indexes, new_value in targets:
        for idx in indexes:
            module.constant_pool[idx].data = new_value

    duplicates = module.duplicate_constants()
    if duplicates:
        clashes = ", ".join(f"{c.type_} 0x{c.data.hex()}" for c in duplicates)
        raise TemplateError(f"Duplicate constants after patching: {clashes}")

    logger.debug("Built module %s from template", module.name)
    return module.serialize()


def _read_modules(paths: list[Path]) -> list[bytes]:
    return [Path(path).read_bytes() for path in paths]


async def publish_asset(ctx: OperatorContext, params: AssetTemplateParams) -> str | None:
    """Publish a new asset module.

    The UpgradeCap goes to the signer.

    Returns:
        Id of the published package
    """
    asset = ctx.config.asset
    package_id = require(asset.package_id, "asset.package_id")
    template = Path(asset.template_path).read_bytes() if asset.template_path else None
    modules = [build_asset_module(params, template), *_read_modules(asset.extra_modules)]

    tx = Transaction()
    upgrade_cap = tx.publish(modules, [*FRAMEWORK_DEPENDENCIES, package_id])
    tx.transfer_objects([upgrade_cap], ctx.address)

    result = await ctx.execute(tx, gas_budget=ctx.config.gas.publish_budget)
    published_id = result.created_with_owner("Immutable")
    logger.info("New asset published! Digest: %s", result.digest)
    logger.info("Package ID: %s", published_id)
    return published_id
