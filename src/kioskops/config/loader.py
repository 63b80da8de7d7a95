"""
Configuration Loader.

Builds a KioskOpsConfig from, in increasing precedence:

1. model defaults
2. a YAML file, after ${VAR} / ${VAR:-default} expansion
3. KIOSKOPS_* environment variables

The file is the explicit path when one is given, otherwise the file named
by KIOSKOPS_CONFIG, otherwise the first of DEFAULT_CONFIG_PATHS found in
the working directory. No file at all is fine: operators can run on
defaults plus environment.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from kioskops.config.environment import load_environment
from kioskops.config.models import KioskOpsConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = [
    "kioskops.yaml",
    "kioskops.yml",
    ".kioskops.yaml",
    ".kioskops.yml",
    "config.yaml",
]

CONFIG_ENV_VAR = "KIOSKOPS_CONFIG"

# env var -> dotted config key
ENV_VAR_OVERRIDES = {
    "KIOSKOPS_NETWORK": "network.name",
    "KIOSKOPS_RPC_URL": "network.rpc_url",
    "KIOSKOPS_KIOSK_NETWORK": "network.kiosk_network",
    "KIOSKOPS_ASSET_PACKAGE_ID": "asset.package_id",
    "KIOSKOPS_ASSET_OTW": "asset.otw_type",
    "KIOSKOPS_ASSET_CAP_ID": "asset.asset_cap_id",
    "KIOSKOPS_TOKENIZED_ASSET_ID": "asset.tokenized_asset_id",
    "KIOSKOPS_TOKENIZED_ASSET_TYPE": "asset.tokenized_asset_type",
    "KIOSKOPS_TARGET_KIOSK_ID": "kiosk.target_kiosk_id",
    "KIOSKOPS_TRANSFER_POLICY_ID": "policy.transfer_policy_id",
    "KIOSKOPS_GAS_BUDGET": "gas.budget",
    "KIOSKOPS_LOG_LEVEL": "logging.level",
    "KIOSKOPS_LOG_FILE": "logging.file",
    "KIOSKOPS_DRY_RUN": "dry_run",
}

# Keys whose overrides are taken verbatim; object ids like "1234" or "0x1" stay strings
_VERBATIM_KEYS = {
    "network.rpc_url",
    "asset.package_id",
    "asset.otw_type",
    "asset.asset_cap_id",
    "asset.tokenized_asset_id",
    "asset.tokenized_asset_type",
    "kiosk.target_kiosk_id",
    "policy.transfer_policy_id",
    "logging.file",
}

_ENV_REFERENCE = re.compile(r"\$\{(\w+)(?::-?([^}]*))?\}")
_TRUE_WORDS = {"true", "yes", "on"}
_FALSE_WORDS = {"false", "no", "off"}
_MAX_REPORTED_ERRORS = 5


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid.

    Attributes:
        errors: Pydantic error dicts, when raised from validation
        path: Config file involved, if any
    """

    def __init__(
        self,
        message: str,
        errors: list[dict] | None = None,
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.path = path

    def __str__(self) -> str:
        lines = [super().__str__() + (f" (file: {self.path})" if self.path else "")]
        for err in self.errors[:_MAX_REPORTED_ERRORS]:
            key = ".".join(str(part) for part in err.get("loc", ()))
            lines.append(f"  - {key}: {err.get('msg', 'invalid value')}")
        hidden = len(self.errors) - _MAX_REPORTED_ERRORS
        if hidden > 0:
            lines.append(f"  ... and {hidden} more errors")
        return "\n".join(lines)


def expand_env(value: str) -> Any:
    """Expand environment references in one YAML string.

    A value that is a single reference takes the variable's raw value, and
    an empty result becomes None so the model default applies. References
    embedded in longer text are replaced textually. A reference with no
    value and no default is kept as written.
    """
    whole = _ENV_REFERENCE.fullmatch(value)
    if whole:
        name, default = whole.groups()
        resolved = os.environ.get(name, default)
        if resolved is None:
            return value
        return resolved or None

    def substitute(match: re.Match[str]) -> str:
        name, default = match.groups()
        resolved = os.environ.get(name, default)
        return match.group(0) if resolved is None else resolved

    return _ENV_REFERENCE.sub(substitute, value)


def _expand_tree(data: Any) -> Any:
    """Expand references throughout a parsed YAML document, dropping None values."""
    if isinstance(data, dict):
        expanded = {key: _expand_tree(item) for key, item in data.items()}
        return {key: item for key, item in expanded.items() if item is not None}
    if isinstance(data, list):
        return [_expand_tree(item) for item in data]
    if isinstance(data, str):
        return expand_env(data)
    return data


def _parse_override(raw: str) -> Any:
    """Interpret an override as bool, int or float where it looks like one."""
    lowered = raw.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    if not any(marker in lowered for marker in (".", "e", "x")):
        try:
            return int(raw)
        except ValueError:
            return raw
    try:
        return float(raw)
    except ValueError:
        return raw


def _assign(tree: dict[str, Any], dotted_key: str, value: Any) -> None:
    *sections, leaf = dotted_key.split(".")
    for section in sections:
        if not isinstance(tree.get(section), dict):
            tree[section] = {}
        tree = tree[section]
    if value is None:
        tree.pop(leaf, None)
    else:
        tree[leaf] = value


def apply_env_overrides(tree: dict[str, Any]) -> dict[str, Any]:
    """Write KIOSKOPS_* values into a raw config tree; empty values unset the key."""
    for env_var, dotted_key in ENV_VAR_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        if raw == "":
            value = None
        elif dotted_key in _VERBATIM_KEYS:
            value = raw
        else:
            value = _parse_override(raw)
        _assign(tree, dotted_key, value)
    return tree


class ConfigLoader:
    """Loads one KioskOpsConfig.

    Usage:
        config = ConfigLoader("kioskops.yaml").load()

        # KIOSKOPS_CONFIG, then the default file names
        config = ConfigLoader().load_from_env()
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        env_file: str = ".env",
    ) -> None:
        self._config_path = Path(config_path) if config_path else None
        self._env_file = env_file
        self.loaded_from_path: Path | None = None

    def load(self) -> KioskOpsConfig:
        """Load the configured file, or defaults when there is none.

        Raises:
            ConfigurationError: If the YAML or the resulting config is invalid
            FileNotFoundError: If the configured file does not exist
        """
        load_environment(self._env_file)

        tree = self._read_file() if self._config_path else {}
        self.loaded_from_path = self._config_path
        tree = apply_env_overrides(_expand_tree(tree))

        try:
            config = KioskOpsConfig(**tree)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.error_count()} errors",
                errors=e.errors(),
                path=self.loaded_from_path,
            ) from e

        logger.debug("Configuration loaded from %s", self.loaded_from_path or "defaults")
        return config

    def load_from_env(self) -> KioskOpsConfig:
        """Discover the config file, then load it.

        Raises:
            FileNotFoundError: If KIOSKOPS_CONFIG names a missing file
        """
        load_environment(self._env_file)
        self._config_path = self._discover()
        return self.load()

    @staticmethod
    def _discover() -> Path | None:
        named = os.environ.get(CONFIG_ENV_VAR)
        if named:
            path = Path(named)
            if not path.exists():
                raise FileNotFoundError(f"Config file specified by {CONFIG_ENV_VAR} not found: {named}")
            return path
        return next((Path(p) for p in DEFAULT_CONFIG_PATHS if Path(p).exists()), None)

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self._config_path}")
        try:
            data = yaml.safe_load(self._config_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", path=self._config_path) from e
        if not isinstance(data, dict):
            raise ConfigurationError("Top-level YAML must be a mapping", path=self._config_path)
        return data


_global_config: KioskOpsConfig | None = None


def load_config(
    config_path: str | Path | None = None,
    env_file: str = ".env",
) -> KioskOpsConfig:
    """Load the global configuration, discovering the file when no path is given."""
    global _global_config

    loader = ConfigLoader(config_path, env_file)
    _global_config = loader.load() if config_path is not None else loader.load_from_env()
    return _global_config


def get_config() -> KioskOpsConfig:
    """The global configuration.

    Raises:
        RuntimeError: If load_config() was not called
    """
    if _global_config is None:
        raise RuntimeError("Configuration not loaded. Call load_config() first.")
    return _global_config


def reset_config() -> None:
    global _global_config
    _global_config = None


def require(value: Any, name: str) -> Any:
    """Return ``value``, or raise naming the missing dotted config key.

    Raises:
        ConfigurationError: If the value is None or empty
    """
    if value is None or value == "":
        raise ConfigurationError(f"Missing configuration value: {name}")
    return value
