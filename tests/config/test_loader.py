"""Tests for configuration loader."""

import os

import pytest
import yaml

from kioskops.config import (
    CONFIG_ENV_VAR,
    ConfigLoader,
    ConfigurationError,
    LogLevel,
    SuiNetwork,
    ensure_dotenv_loaded,
    expand_env,
    get_config,
    get_phrase,
    load_config,
    require,
)

PACKAGE = "0x" + "ab" * 32


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML config and return its path."""

    def write(data) -> str:
        path = tmp_path / "kioskops.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    return write


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_load_file(self, config_file):
        """Values from the file are validated into the model."""
        path = config_file(
            {
                "network": {"name": "devnet"},
                "asset": {"package_id": PACKAGE},
                "kiosk": {"listing_price": 5},
            }
        )
        config = ConfigLoader(path).load()
        assert config.network.name == SuiNetwork.DEVNET
        assert config.asset.package_id == PACKAGE
        assert config.kiosk.listing_price == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path / "missing.yaml").load()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("network: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigLoader(path).load()

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader(path).load()

    def test_validation_error_lists_fields(self, config_file):
        """Validation errors name the offending field and file."""
        path = config_file({"kiosk": {"listing_price": -1}})
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(path).load()
        message = str(exc_info.value)
        assert "kiosk.listing_price" in message
        assert "kioskops.yaml" in message

    def test_env_substitution(self, config_file, monkeypatch):
        """${VAR} references are resolved from the environment."""
        monkeypatch.setenv("MY_PACKAGE", PACKAGE)
        path = config_file({"asset": {"package_id": "${MY_PACKAGE}"}})
        assert ConfigLoader(path).load().asset.package_id == PACKAGE

    def test_env_substitution_default(self, config_file):
        """${VAR:-default} falls back to the default."""
        path = config_file({"network": {"rpc_url": "${UNSET_RPC_URL:-http://localhost:9000}"}})
        assert ConfigLoader(path).load().network.rpc_url == "http://localhost:9000"

    def test_env_substitution_empty_becomes_default(self, config_file, monkeypatch):
        """An empty value drops the key so the model default applies."""
        monkeypatch.setenv("EMPTY_KIOSK", "")
        path = config_file({"kiosk": {"target_kiosk_id": "${EMPTY_KIOSK}"}})
        assert ConfigLoader(path).load().kiosk.target_kiosk_id is None

    def test_embedded_substitution(self, config_file, monkeypatch):
        monkeypatch.setenv("NODE_HOST", "node.example")
        path = config_file({"network": {"rpc_url": "https://${NODE_HOST}:443"}})
        assert ConfigLoader(path).load().network.rpc_url == "https://node.example:443"

    def test_env_overrides_take_precedence(self, config_file, monkeypatch):
        """KIOSKOPS_* variables override file values."""
        monkeypatch.setenv("KIOSKOPS_NETWORK", "mainnet")
        monkeypatch.setenv("KIOSKOPS_GAS_BUDGET", "12345")
        monkeypatch.setenv("KIOSKOPS_DRY_RUN", "yes")
        monkeypatch.setenv("KIOSKOPS_LOG_LEVEL", "DEBUG")
        path = config_file({"network": {"name": "devnet"}, "gas": {"budget": 1000}})
        config = ConfigLoader(path).load()
        assert config.network.name == SuiNetwork.MAINNET
        assert config.gas.budget == 12345
        assert config.dry_run is True
        assert config.logging.level == LogLevel.DEBUG

    def test_object_id_overrides_stay_strings(self, monkeypatch):
        """Hex object ids are never coerced to numbers."""
        monkeypatch.setenv("KIOSKOPS_TARGET_KIOSK_ID", "0x123")
        monkeypatch.setenv("KIOSKOPS_ASSET_CAP_ID", "1234")
        config = ConfigLoader().load()
        assert config.kiosk.target_kiosk_id == "0x123"
        assert config.asset.asset_cap_id == "1234"

    def test_load_without_file_uses_defaults(self):
        loader = ConfigLoader()
        config = loader.load()
        assert config.network.name == SuiNetwork.TESTNET
        assert loader.loaded_from_path is None

    def test_empty_override_unsets_file_value(self, config_file, monkeypatch):
        monkeypatch.setenv("KIOSKOPS_TARGET_KIOSK_ID", "")
        path = config_file({"kiosk": {"target_kiosk_id": "0x77"}})
        assert ConfigLoader(path).load().kiosk.target_kiosk_id is None


class TestExpandEnv:
    """Tests for single-value reference expansion."""

    def test_unresolved_reference_kept(self):
        assert expand_env("${KIOSKOPS_TEST_UNSET_VAR}") == "${KIOSKOPS_TEST_UNSET_VAR}"

    def test_empty_default(self):
        assert expand_env("${KIOSKOPS_TEST_UNSET_VAR:-}") is None

    def test_embedded_unresolved(self, monkeypatch):
        monkeypatch.setenv("KIOSKOPS_TEST_HOST", "node")
        assert expand_env("${KIOSKOPS_TEST_HOST}/${KIOSKOPS_TEST_UNSET_VAR}") == "node/${KIOSKOPS_TEST_UNSET_VAR}"


class TestLoadFromEnv:
    """Tests for config discovery."""

    def test_config_env_var(self, config_file, monkeypatch):
        path = config_file({"kiosk": {"listing_price": 42}})
        monkeypatch.setenv(CONFIG_ENV_VAR, path)
        assert ConfigLoader().load_from_env().kiosk.listing_price == 42

    def test_config_env_var_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.yaml"))
        with pytest.raises(FileNotFoundError, match=CONFIG_ENV_VAR):
            ConfigLoader().load_from_env()

    def test_default_location(self, config_file, tmp_path, monkeypatch):
        """kioskops.yaml in the working directory is discovered."""
        config_file({"kiosk": {"listing_price": 9}})
        monkeypatch.chdir(tmp_path)
        assert ConfigLoader().load_from_env().kiosk.listing_price == 9

    def test_no_file_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        loader = ConfigLoader()
        config = loader.load_from_env()
        assert config.kiosk.listing_price == 100000
        assert loader.loaded_from_path is None


class TestGlobalConfig:
    """Tests for the module-level config functions."""

    def test_get_config_before_load(self):
        with pytest.raises(RuntimeError, match="not loaded"):
            get_config()

    def test_load_then_get(self, config_file):
        config = load_config(config_file({"kiosk": {"listing_price": 11}}))
        assert get_config() is config

    def test_require(self):
        assert require("0x1", "asset.package_id") == "0x1"
        with pytest.raises(ConfigurationError, match="asset.package_id"):
            require(None, "asset.package_id")
        with pytest.raises(ConfigurationError):
            require("", "asset.package_id")


class TestPhrases:
    """Tests for mnemonic lookup."""

    def test_phrases_from_environment(self, monkeypatch):
        monkeypatch.setenv("ADMIN_PHRASE", "  admin words  ")
        monkeypatch.setenv("BUYER_PHRASE", "buyer words")
        assert get_phrase("admin") == "admin words"
        assert get_phrase("buyer") == "buyer words"

    def test_missing_phrase(self):
        assert get_phrase("admin") is None

    def test_unknown_role(self):
        with pytest.raises(ValueError, match="Unknown account role"):
            get_phrase("seller")


class TestDotenv:
    """Tests for .env loading."""

    @pytest.fixture(autouse=True)
    def fresh_dotenv(self, monkeypatch, tmp_path):
        import kioskops.config.environment as env_module

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(env_module, "_dotenv_loaded", False)
        monkeypatch.setattr(env_module, "_dotenv_path", None)

    def test_no_env_file_reported_on_every_call(self):
        assert ensure_dotenv_loaded() is False
        assert ensure_dotenv_loaded() is False

    def test_env_file_loaded_once(self, tmp_path):
        (tmp_path / ".env").write_text("KIOSKOPS_TEST_DOTENV=from-file\n")
        try:
            assert ensure_dotenv_loaded() is True
            assert ensure_dotenv_loaded() is True
            assert os.environ["KIOSKOPS_TEST_DOTENV"] == "from-file"
        finally:
            os.environ.pop("KIOSKOPS_TEST_DOTENV", None)
