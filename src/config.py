"""
Configuration and action inputs for the load-secrets step.

Configuration is layered: built-in defaults, then an optional YAML file,
then environment overrides. Action inputs are read separately and take
precedence over configuration where both define a setting.
"""

import copy
import logging
import os
from enum import Enum
from typing import Dict, Any

import yaml

import actions_core
from errors import ConfigurationError, InputError

logger = logging.getLogger("load-secrets.config")

CONFIG_ENV_VAR = "LOAD_SECRETS_CONFIG"

DEFAULT_CONFIG = {
    "vault": "Test",
    "strategy": "value",
    "log_items": False,
    "cli": {
        "binary": "op",
        "min_version": "2.18.0",
        "install_script": os.path.join(
            os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
            "scripts", "install_cli.py"
        ),
        "install_timeout": 300,
    },
}

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "OP_VAULT": (None, "vault"),
    "LOAD_SECRETS_LOG_ITEMS": (None, "log_items"),
    "OP_CLI_MIN_VERSION": ("cli", "min_version"),
    "OP_INSTALL_SCRIPT": ("cli", "install_script"),
}


class Strategy(Enum):
    """How vault fields are materialized"""
    REFERENCE = "reference"   # export op:// references, resolve through the CLI
    VALUE = "value"           # export plaintext values as a JSON output


def _deep_merge(dict1: Dict, dict2: Dict) -> Dict:
    """Recursively merge dictionaries"""
    result = dict1.copy()

    for key, value in dict2.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_config(config_path: str = None, environ: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Load configuration from defaults, an optional YAML file and the environment

    Args:
        config_path: Path to a YAML configuration file. Falls back to the
            LOAD_SECRETS_CONFIG environment variable.
        environ: Environment to read overrides from (default: os.environ)

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If the file cannot be read or is not a mapping
    """
    environ = os.environ if environ is None else environ
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_path = config_path or environ.get(CONFIG_ENV_VAR)
    if config_path:
        try:
            with open(config_path, 'r') as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {str(e)}") from e
        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        config = _deep_merge(config, user_config)
        logger.debug(f"Loaded configuration from {config_path}")

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if not value:
            continue
        target = config if section is None else config.setdefault(section, {})
        target[key] = value

    config["log_items"] = _parse_bool(config.get("log_items", False))
    return config


class ActionInputs:
    """Coerced action inputs"""

    def __init__(self, unset_previous: bool = False, export_env: bool = False,
                 vault: str = None, strategy: Strategy = Strategy.VALUE):
        self.unset_previous = unset_previous
        self.export_env = export_env
        self.vault = vault
        self.strategy = strategy

    def __repr__(self) -> str:
        return (f"ActionInputs(unset_previous={self.unset_previous}, "
                f"export_env={self.export_env}, vault={self.vault!r}, "
                f"strategy={self.strategy.value})")


def read_inputs(config: Dict[str, Any] = None, environ: Dict[str, str] = None) -> ActionInputs:
    """Read the action inputs, falling back to configuration for vault and strategy"""
    config = config or DEFAULT_CONFIG

    unset_previous = actions_core.get_boolean_input("unset-previous", environ=environ)
    export_env = actions_core.get_boolean_input("export-env", environ=environ)
    vault = actions_core.get_input("vault", environ=environ) or config.get("vault")
    strategy_name = actions_core.get_input("strategy", environ=environ) or config.get("strategy", "value")

    try:
        strategy = Strategy(strategy_name.lower())
    except ValueError:
        choices = ", ".join(s.value for s in Strategy)
        raise InputError(f"Unsupported strategy '{strategy_name}', expected one of: {choices}")

    if not vault:
        raise InputError("A vault name must be supplied through the 'vault' input or configuration")

    return ActionInputs(unset_previous, export_env, vault, strategy)
