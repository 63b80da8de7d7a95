"""
KioskOps configuration.

Settings come from a YAML file validated by the models below, with
KIOSKOPS_* environment overrides. Operator mnemonics are read only from
the environment (or .env) and never from the YAML file.
"""

from kioskops.config.environment import (
    EnvironmentConfig,
    ensure_dotenv_loaded,
    get_phrase,
    load_environment,
    reset_environment,
)
from kioskops.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATHS,
    ENV_VAR_OVERRIDES,
    ConfigLoader,
    ConfigurationError,
    apply_env_overrides,
    expand_env,
    get_config,
    load_config,
    require,
    reset_config,
)
from kioskops.config.models import (
    DEFAULT_DERIVATION_PATH,
    AccountsConfig,
    AssetConfig,
    GasConfig,
    KioskConfig,
    KioskNetwork,
    KioskOpsConfig,
    LoggingConfig,
    LogLevel,
    NetworkConfig,
    PolicyConfig,
    RequestType,
    SuiNetwork,
    get_fullnode_url,
)

__all__ = [
    "AccountsConfig",
    "AssetConfig",
    "GasConfig",
    "KioskConfig",
    "KioskNetwork",
    "KioskOpsConfig",
    "LoggingConfig",
    "LogLevel",
    "NetworkConfig",
    "PolicyConfig",
    "RequestType",
    "SuiNetwork",
    "DEFAULT_DERIVATION_PATH",
    "get_fullnode_url",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATHS",
    "ENV_VAR_OVERRIDES",
    "ConfigLoader",
    "ConfigurationError",
    "apply_env_overrides",
    "expand_env",
    "get_config",
    "load_config",
    "require",
    "reset_config",
    "EnvironmentConfig",
    "ensure_dotenv_loaded",
    "get_phrase",
    "load_environment",
    "reset_environment",
]
