"""
KioskOps Command Line Interface.

This module provides the CLI entry point for the kiosk and asset
tokenization operator commands.
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from kioskops.version import __version__

console = Console()


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


def _configure_logging(config, verbose: bool) -> None:
    """Configure logging from the config file, raised to DEBUG with --verbose."""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level.value)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.file:
        handlers.append(logging.FileHandler(config.logging.file))
    logging.basicConfig(
        level=level,
        format=config.logging.format,
        handlers=handlers,
        force=True,
    )
    logging.getLogger("kioskops").setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config(ctx: click.Context):
    """Load configuration and apply the global flags."""
    from kioskops.config import ensure_dotenv_loaded, load_config

    ensure_dotenv_loaded()
    config = load_config(ctx.obj.get("config_path"))
    if ctx.obj.get("dry_run"):
        config = config.model_copy(update={"dry_run": True})
    _configure_logging(config, ctx.obj.get("verbose", False))
    return config


def _fail(ctx: click.Context, error: Exception) -> None:
    console.print(f"[red]Error:[/red] {error}")
    if ctx.obj.get("verbose"):
        console.print_exception()
    sys.exit(1)


def _run_operation(ctx: click.Context, operation, *args, read_only: bool = False, **kwargs):
    """Run one operation inside an operator context, exiting 1 on failure."""
    from kioskops.operations import OperatorContext

    try:
        config = _load_config(ctx)
        role = None if read_only else ctx.obj.get("signer", "admin")

        async def runner():
            async with OperatorContext.from_config(config, role) as op_ctx:
                return await operation(op_ctx, *args, **kwargs)

        result = run_async(runner())
    except Exception as e:
        _fail(ctx, e)
    if config.dry_run and not read_only:
        console.print("[yellow]Dry run: nothing was executed[/yellow]")
    return result


def _print_result(title: str, label: str, value) -> None:
    console.print(
        Panel(
            f"[cyan]{label}:[/cyan] [green]{value if value is not None else '-'}[/green]",
            title=title,
        )
    )


@click.group()
@click.version_option(version=__version__, prog_name="kioskops")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--signer",
    type=click.Choice(["admin", "buyer"]),
    default="admin",
    help="Account that signs transactions",
)
@click.option("--dry-run", is_flag=True, help="Simulate transactions instead of executing them")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    verbose: bool,
    signer: str,
    dry_run: bool,
) -> None:
    """KioskOps: Sui kiosk and asset tokenization operator commands.

    Mnemonics are read from ADMIN_PHRASE and BUYER_PHRASE (environment or .env).
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    ctx.obj["signer"] = signer
    ctx.obj["dry_run"] = dry_run


# Accounts and configuration ---------------------------------------------------


@main.command()
@click.pass_context
def address(ctx: click.Context) -> None:
    """Show the signer's address and public key."""
    from kioskops.sui.keypair import get_signer

    try:
        config = _load_config(ctx)
        keypair = get_signer(ctx.obj["signer"], config.accounts.derivation_path)
    except Exception as e:
        _fail(ctx, e)

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Signer", ctx.obj["signer"])
    table.add_row("Address", keypair.address)
    table.add_row("Public Key", keypair.public_key_base64)
    table.add_row("Derivation Path", config.accounts.derivation_path)
    console.print(table)


@main.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Display current configuration."""
    try:
        cfg = _load_config(ctx)
    except Exception as e:
        _fail(ctx, e)

    console.print(Panel("[bold blue]KioskOps Configuration[/bold blue]", title="Configuration"))

    console.print("[bold]Network[/bold]")
    console.print(f"  Network: {cfg.network.name.value}")
    console.print(f"  RPC URL: {cfg.network.endpoint}")
    console.print(f"  Kiosk Network: {cfg.network.kiosk_network.value}")
    console.print()

    console.print("[bold]Asset[/bold]")
    console.print(f"  Package: {cfg.asset.package_id or '-'}")
    console.print(f"  OTW: {cfg.asset.otw_type or '-'}")
    console.print(f"  AssetCap: {cfg.asset.asset_cap_id or '-'}")
    console.print(f"  Tokenized Asset: {cfg.asset.tokenized_asset_id or '-'}")
    console.print(f"  Tokenized Asset Type: {cfg.asset.tokenized_asset_type or '-'}")
    console.print()

    console.print("[bold]Kiosk & Policy[/bold]")
    console.print(f"  Target Kiosk: {cfg.kiosk.target_kiosk_id or '-'}")
    console.print(f"  Listing Price: {cfg.kiosk.listing_price}")
    console.print(f"  Transfer Policy: {cfg.policy.transfer_policy_id or '-'}")
    console.print()

    console.print("[bold]Gas[/bold]")
    console.print(f"  Budget: {cfg.gas.budget:,}")
    console.print(f"  Publish Budget: {cfg.gas.publish_budget:,}")
    if cfg.dry_run:
        console.print("  Mode: [yellow]Dry Run[/yellow]")


# Kiosk ---------------------------------------------------------------------------


@main.command("create-kiosk")
@click.pass_context
def create_kiosk(ctx: click.Context) -> None:
    """Create a new personal kiosk."""
    from kioskops.operations import create_personal_kiosk

    kiosk_id = _run_operation(ctx, create_personal_kiosk)
    _print_result("Personal Kiosk", "Kiosk ID", kiosk_id)


@main.command("convert-kiosk")
@click.option("--kiosk-id", help="Kiosk to convert (defaults to kiosk.target_kiosk_id)")
@click.pass_context
def convert_kiosk(ctx: click.Context, kiosk_id: str | None) -> None:
    """Convert a kiosk to a personal kiosk."""
    from kioskops.operations import convert_kiosk_to_personal

    result = _run_operation(ctx, convert_kiosk_to_personal, kiosk_id)
    _print_result("Kiosk Converted", "Digest", result.digest)


@main.command()
@click.argument("item_id", required=False)
@click.pass_context
def place(ctx: click.Context, item_id: str | None) -> None:
    """Place a tokenized asset into the target kiosk."""
    from kioskops.operations import place_item

    field_id = _run_operation(ctx, place_item, item_id)
    _print_result("Item Placed", "Dynamic Object Field", field_id)


@main.command()
@click.argument("item_id", required=False)
@click.pass_context
def lock(ctx: click.Context, item_id: str | None) -> None:
    """Lock a tokenized asset into the target kiosk."""
    from kioskops.operations import lock_item

    field_id = _run_operation(ctx, lock_item, item_id)
    _print_result("Item Locked", "Lock Dynamic Field", field_id)


@main.command("list")
@click.argument("item_id", required=False)
@click.option("--price", type=click.IntRange(min=0), help="Price in MIST (defaults to kiosk.listing_price)")
@click.pass_context
def list_(ctx: click.Context, item_id: str | None, price: int | None) -> None:
    """List a tokenized asset for sale."""
    from kioskops.operations import list_item

    listing_id = _run_operation(ctx, list_item, item_id, price)
    _print_result("Item Listed", "Listing Dynamic Field", listing_id)


@main.command()
@click.argument("item_id", required=False)
@click.pass_context
def delist(ctx: click.Context, item_id: str | None) -> None:
    """Delist a tokenized asset."""
    from kioskops.operations import delist_item

    delisted = _run_operation(ctx, delist_item, item_id)
    _print_result("Item Delisted", "Item", delisted)


_RULE_CHOICES = click.Choice(["floor_price", "kiosk_lock", "royalty", "personal_kiosk"])


@main.command("policy-rules")
@click.option("--policy-id", help="Transfer policy (defaults to policy.transfer_policy_id)")
@click.option("--add", "add_rules", multiple=True, type=_RULE_CHOICES, help="Rule to add (repeatable)")
@click.option("--remove", "remove_rules", multiple=True, type=_RULE_CHOICES, help="Rule to remove (repeatable)")
@click.pass_context
def policy_rules(
    ctx: click.Context,
    policy_id: str | None,
    add_rules: tuple[str, ...],
    remove_rules: tuple[str, ...],
) -> None:
    """Add or remove transfer policy rules.

    Without --add or --remove the floor price, kiosk lock and royalty rules
    are added.
    """
    from kioskops.operations import DEFAULT_RULES, set_transfer_policy_rules

    if not add_rules and not remove_rules:
        add_rules = tuple(rule.value for rule in DEFAULT_RULES)
    result = _run_operation(ctx, set_transfer_policy_rules, policy_id, add_rules, remove_rules)
    _print_result("Transfer Policy Updated", "Digest", result.digest)


# Asset -------------------------------------------------------------------------------


def _parse_metadata(pairs: tuple[str, ...]) -> tuple[list[str], list[str]]:
    keys, values = [], []
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--meta")
        key, value = pair.split("=", 1)
        keys.append(key)
        values.append(value)
    return keys, values


@main.command()
@click.option("--meta", multiple=True, help="Metadata entry KEY=VALUE (repeatable)")
@click.option("--amount", type=click.IntRange(min=1), default=3, show_default=True, help="Value of the minted asset")
@click.pass_context
def mint(ctx: click.Context, meta: tuple[str, ...], amount: int) -> None:
    """Mint a tokenized asset to the signer."""
    from kioskops.operations import mint as mint_asset

    keys, values = _parse_metadata(meta)
    asset_id = _run_operation(ctx, mint_asset, keys, values, amount)
    _print_result("Asset Minted", "Tokenized Asset", asset_id)


@main.command()
@click.option("--asset-cap", help="AssetCap id (defaults to asset.asset_cap_id)")
@click.pass_context
def supply(ctx: click.Context, asset_cap: str | None) -> None:
    """Show the current supply of the asset."""
    from kioskops.operations import get_supply

    value = _run_operation(ctx, get_supply, asset_cap, read_only=True)
    _print_result("Supply", "Current Supply", value)


@main.command("total-supply")
@click.option("--asset-cap", help="AssetCap id (defaults to asset.asset_cap_id)")
@click.pass_context
def total_supply(ctx: click.Context, asset_cap: str | None) -> None:
    """Show the total supply of the asset."""
    from kioskops.operations import get_total_supply

    value = _run_operation(ctx, get_total_supply, asset_cap, read_only=True)
    _print_result("Supply", "Total Supply", value)


def _asset_options(func):
    """Options describing a new asset, shared by publish and build-template."""
    options = [
        click.argument("module_name"),
        click.option("--total-supply", type=click.IntRange(min=0), required=True, help="Maximum supply"),
        click.option("--symbol", required=True, help="Asset symbol"),
        click.option("--name", "asset_name", required=True, help="Asset name"),
        click.option("--description", required=True, help="Asset description"),
        click.option("--icon-url", required=True, help="Icon URL"),
        click.option("--burnable/--not-burnable", default=True, help="Whether the asset can be burned"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _asset_params(ctx: click.Context, **kwargs):
    from pydantic import ValidationError

    from kioskops.operations import AssetTemplateParams

    try:
        return AssetTemplateParams(
            module_name=kwargs["module_name"],
            total_supply=kwargs["total_supply"],
            symbol=kwargs["symbol"],
            name=kwargs["asset_name"],
            description=kwargs["description"],
            icon_url=kwargs["icon_url"],
            burnable=kwargs["burnable"],
        )
    except ValidationError as e:
        _fail(ctx, e)


@main.command()
@_asset_options
@click.pass_context
def publish(ctx: click.Context, **kwargs) -> None:
    """Publish a new asset module from the template.

    MODULE_NAME is the lower-case Move module name of the new asset.
    """
    from kioskops.operations import publish_asset

    params = _asset_params(ctx, **kwargs)
    package_id = _run_operation(ctx, publish_asset, params)
    _print_result("New Asset Published", "Package ID", package_id)


@main.command("build-template")
@_asset_options
@click.option("--output", "-o", type=click.Path(), required=True, help="Output .mv file")
@click.option("--template", type=click.Path(exists=True), help="Template .mv file (defaults to the embedded one)")
@click.pass_context
def build_template(ctx: click.Context, output: str, template: str | None, **kwargs) -> None:
    """Write the patched asset module without publishing it."""
    from kioskops.operations import build_asset_module

    params = _asset_params(ctx, **kwargs)
    try:
        template_bytes = Path(template).read_bytes() if template else None
        bytecode = build_asset_module(params, template_bytes)
        Path(output).write_bytes(bytecode)
    except Exception as e:
        _fail(ctx, e)
    console.print(f"[green]Module {params.module_name} written to:[/green] {output} ({len(bytecode)} bytes)")


@main.command("template-inspect")
@click.argument("path", required=False, type=click.Path(exists=True))
@click.pass_context
def template_inspect(ctx: click.Context, path: str | None) -> None:
    """Show the identifiers and constants of a compiled module.

    PATH defaults to the embedded asset template.
    """
    from kioskops.bytecode import CompiledModule, get_template_bytecode

    try:
        data = Path(path).read_bytes() if path else get_template_bytecode()
        module = CompiledModule.deserialize(data)
    except Exception as e:
        _fail(ctx, e)

    summary = module.to_dict()
    console.print(
        Panel(
            f"[bold blue]{summary['name']}[/bold blue] (bytecode v{summary['version']})\n"
            f"[dim]{', '.join(summary['tables'])}[/dim]",
            title="Module",
        )
    )

    ident_table = Table(title="Identifiers", show_header=True)
    ident_table.add_column("#", style="dim")
    ident_table.add_column("Identifier", style="cyan")
    for idx, identifier in enumerate(summary["identifiers"]):
        ident_table.add_row(str(idx), identifier)
    console.print(ident_table)

    const_table = Table(title="Constants", show_header=True)
    const_table.add_column("#", style="dim")
    const_table.add_column("Type", style="cyan")
    const_table.add_column("Data", style="green")
    for idx, constant in enumerate(summary["constants"]):
        const_table.add_row(str(idx), constant["type"], constant["data"] or "-")
    console.print(const_table)


if __name__ == "__main__":
    main()
