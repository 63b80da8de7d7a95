"""Tests for the kioskops command line interface."""

import logging
from types import SimpleNamespace

import pytest
from click.testing import CliRunner
from rich.console import Console

import kioskops.operations as operations
from kioskops import cli
from kioskops.bytecode import CompiledModule
from kioskops.version import __version__
from tests.conftest import ITEM_ID, KIOSK_ID, PACKAGE_ID, TEST_ADDRESS

ASSET_TEXT = ("--description", "A magic asset", "--icon-url", "https://example.com/magic.png")


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch, tmp_path):
    """Run from an empty directory with a wide console and restore logging afterwards."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "console", Console(width=200))
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def calls(monkeypatch):
    """Replace operations with recorders returning canned values."""
    recorded: dict[str, tuple] = {}

    def fake(name, value):
        async def operation(ctx, *args):
            recorded[name] = (ctx, args)
            return value

        monkeypatch.setattr(operations, name, operation)

    fake("create_personal_kiosk", KIOSK_ID)
    fake("place_item", "0x" + "5f" * 32)
    fake("list_item", "0x" + "6f" * 32)
    fake("get_supply", 42)
    fake("publish_asset", PACKAGE_ID)
    fake("set_transfer_policy_rules", SimpleNamespace(digest="Digest9"))
    return recorded


class TestGeneral:
    """Tests for global options."""

    def test_version(self, runner):
        result = runner.invoke(cli.main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli.main, ["--help"])
        assert result.exit_code == 0
        for command in ("create-kiosk", "policy-rules", "publish", "template-inspect"):
            assert command in result.output


class TestAccountsAndConfig:
    """Tests for address and config."""

    def test_address(self, runner, admin_phrase):
        result = runner.invoke(cli.main, ["address"])
        assert result.exit_code == 0, result.output
        assert TEST_ADDRESS in result.output
        assert "m/44'/784'/0'/0'/0'" in result.output

    def test_address_without_phrase(self, runner):
        result = runner.invoke(cli.main, ["--signer", "buyer", "address"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "BUYER_PHRASE" in result.output

    def test_config(self, runner, tmp_path):
        config_file = tmp_path / "ops.yaml"
        config_file.write_text(f"asset:\n  package_id: '{PACKAGE_ID}'\nkiosk:\n  listing_price: 250\n")
        result = runner.invoke(cli.main, ["-c", str(config_file), "--dry-run", "config"])
        assert result.exit_code == 0, result.output
        assert PACKAGE_ID in result.output
        assert "Listing Price: 250" in result.output
        assert "Dry Run" in result.output

    def test_invalid_config(self, runner, tmp_path):
        config_file = tmp_path / "ops.yaml"
        config_file.write_text("gas:\n  budget: -5\n")
        result = runner.invoke(cli.main, ["-c", str(config_file), "config"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestOperations:
    """Tests for the commands that run operations."""

    def test_create_kiosk(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["create-kiosk"])
        assert result.exit_code == 0, result.output
        assert KIOSK_ID in result.output
        ctx, _ = calls["create_personal_kiosk"]
        assert ctx.address == TEST_ADDRESS

    def test_place_with_item(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["place", ITEM_ID])
        assert result.exit_code == 0, result.output
        assert calls["place_item"][1] == (ITEM_ID,)

    def test_list_with_price(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["list", "--price", "500"])
        assert result.exit_code == 0, result.output
        assert calls["list_item"][1] == (None, 500)

    def test_policy_rules_defaults(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["policy-rules"])
        assert result.exit_code == 0, result.output
        assert calls["set_transfer_policy_rules"][1] == (None, ("floor_price", "kiosk_lock", "royalty"), ())
        assert "Digest9" in result.output

    def test_policy_rules_remove(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["policy-rules", "--remove", "royalty"])
        assert result.exit_code == 0, result.output
        assert calls["set_transfer_policy_rules"][1] == (None, (), ("royalty",))

    def test_supply_needs_no_signer(self, runner, calls):
        result = runner.invoke(cli.main, ["supply"])
        assert result.exit_code == 0, result.output
        assert "42" in result.output
        ctx, _ = calls["get_supply"]
        assert ctx.signer is None

    def test_dry_run(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["--dry-run", "create-kiosk"])
        assert result.exit_code == 0, result.output
        assert calls["create_personal_kiosk"][0].config.dry_run is True
        assert "Dry run" in result.output

    def test_buyer_signer(self, runner, monkeypatch, calls):
        from tests.conftest import TEST_MNEMONIC

        monkeypatch.setenv("BUYER_PHRASE", TEST_MNEMONIC)
        result = runner.invoke(cli.main, ["--signer", "buyer", "create-kiosk"])
        assert result.exit_code == 0, result.output

    def test_operation_failure(self, runner, admin_phrase, monkeypatch):
        async def failing(ctx):
            raise RuntimeError("kiosk exploded")

        monkeypatch.setattr(operations, "create_personal_kiosk", failing)
        result = runner.invoke(cli.main, ["create-kiosk"])
        assert result.exit_code == 1
        assert "kiosk exploded" in result.output

    def test_mint_bad_metadata(self, runner, admin_phrase):
        result = runner.invoke(cli.main, ["mint", "--meta", "color"])
        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output

    def test_publish(self, runner, admin_phrase, calls):
        result = runner.invoke(
            cli.main,
            ["publish", "magic", "--total-supply", "10", "--symbol", "MG", "--name", "Magic", *ASSET_TEXT]
            + ["--not-burnable"],
        )
        assert result.exit_code == 0, result.output
        (params,) = calls["publish_asset"][1]
        assert params.module_name == "magic"
        assert params.burnable is False
        assert PACKAGE_ID in result.output


class TestTemplateCommands:
    """Tests for build-template and template-inspect."""

    def test_inspect_embedded_template(self, runner):
        result = runner.invoke(cli.main, ["template-inspect"])
        assert result.exit_code == 0, result.output
        assert "template" in result.output
        assert "TEMPLATE" in result.output
        assert "6400000000000000" in result.output

    def test_inspect_invalid_file(self, runner, tmp_path):
        bad = tmp_path / "bad.mv"
        bad.write_bytes(b"not a module")
        result = runner.invoke(cli.main, ["template-inspect", str(bad)])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_build_template(self, runner, tmp_path):
        output = tmp_path / "magic.mv"
        result = runner.invoke(
            cli.main,
            ["build-template", "magic", "--total-supply", "10", "--symbol", "MG", "--name", "Magic", *ASSET_TEXT]
            + ["-o", str(output)],
        )
        assert result.exit_code == 0, result.output
        module = CompiledModule.deserialize(output.read_bytes())
        assert module.name == "magic"
        assert "MAGIC" in module.identifiers

    def test_build_template_repeated_constant(self, runner, tmp_path):
        output = tmp_path / "gold.mv"
        result = runner.invoke(
            cli.main,
            ["build-template", "gold", "--total-supply", "10", "--symbol", "GOLD", "--name", "GOLD", *ASSET_TEXT]
            + ["-o", str(output)],
        )
        assert result.exit_code == 1
        assert "Duplicate constants" in result.output
        assert not output.exists()

    def test_publish_requires_description(self, runner, admin_phrase, calls):
        result = runner.invoke(cli.main, ["publish", "magic", "--total-supply", "10", "--symbol", "MG", "--name", "Magic"])
        assert result.exit_code == 2
        assert "publish_asset" not in calls

    def test_build_template_invalid_name(self, runner, tmp_path):
        output = tmp_path / "bad.mv"
        result = runner.invoke(
            cli.main,
            ["build-template", "Magic", "--total-supply", "10", "--symbol", "MG", "--name", "Magic", *ASSET_TEXT]
            + ["-o", str(output)],
        )
        assert result.exit_code == 1
        assert not output.exists()
