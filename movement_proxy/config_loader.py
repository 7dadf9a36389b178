"""Configuration loading from YAML files with environment variable support."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("movement-proxy")

# Default path to the config file (relative to project root)
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def resolve_env_path(config_path: Path, env_path: str | None = None) -> Path:
    """Resolve the env file path for a config file.

    ``configs/config_default.yaml`` pairs with ``configs/.env_default``;
    any other file name pairs with a plain ``.env`` beside it.
    """
    if env_path:
        return resolve_config_path(env_path)
    stem = config_path.stem
    if stem.startswith("config_"):
        suffix = stem[len("config_"):]
        return config_path.with_name(f".env_{suffix}")
    return config_path.with_name(".env")


def load_env_values(env_path: Path) -> dict[str, str]:
    """Load environment values from a .env file without mutating os.environ."""
    if not env_path.exists():
        return {}
    raw_values = dotenv_values(env_path)
    return {key: value for key, value in raw_values.items() if value is not None}


def load_config(
    path: str | None = None,
    env_path: str | None = None,
    substitute_env: bool = True,
) -> dict:
    """Load configuration from a YAML file.

    Args:
        path: Path to the config file. Defaults to MOVEMENT_PROXY_CONFIG,
              or configs/config_default.yaml in the project root.
        env_path: Optional .env path override for env substitution.
        substitute_env: Whether to substitute environment variables in the config.

    Returns:
        Parsed configuration dictionary. Empty (built-in defaults apply) when
        no path was given and the default config file is not installed.
    """
    if path is None:
        path = os.getenv("MOVEMENT_PROXY_CONFIG")
    explicit = bool(path)
    if not explicit:
        path = DEFAULT_CONFIG_PATH

    config_path = resolve_config_path(path)

    logger.info(f"Loading configuration from {config_path}")

    if not config_path.exists():
        if not explicit:
            logger.warning(
                f"Default config file {config_path} not found, using built-in defaults"
            )
            return {}
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    env_values: dict[str, str] = {}
    if substitute_env:
        env_file = resolve_env_path(config_path, env_path)
        if env_file.exists():
            logger.info(f"Loading environment variables from {env_file}")
            env_values = load_env_values(env_file)

    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise RuntimeError(f"Config file must contain a mapping: {config_path}")

    if substitute_env:
        data = _substitute_env_vars(data, env_values)

    logger.info(f"Configuration loaded successfully from {config_path}")
    return data


def resolve_server_address(config: Mapping[str, Any]) -> tuple[str, int]:
    """Return the bind address; MOVEMENT_PROXY_HOST/PORT win over the config file."""
    proxy_settings = config.get("proxy_settings") or {}
    server_cfg = proxy_settings.get("server") or {}

    host = os.getenv("MOVEMENT_PROXY_HOST")
    if host is None:
        host = str(server_cfg.get("host", DEFAULT_HOST))

    for candidate in (os.getenv("MOVEMENT_PROXY_PORT"), server_cfg.get("port")):
        if candidate is None:
            continue
        try:
            return host, int(candidate)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid port value {candidate!r}")
    return host, DEFAULT_PORT


def resolve_log_level(config: Mapping[str, Any]) -> str:
    proxy_settings = config.get("proxy_settings") or {}
    logging_cfg = proxy_settings.get("logging") or {}
    return str(logging_cfg.get("level") or "INFO")


def _substitute_env_vars(
    obj: Any, env_values: Mapping[str, str] | None = None
) -> Any:
    """Recursively substitute environment variables in configuration values.

    Supports two formats:
    - ${VAR_NAME}: Braced format
    - $VAR_NAME: Simple format

    Values from the .env file take priority over the process environment.
    Unset variables are left as the literal placeholder.
    """
    env_values = env_values or {}

    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):
        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            value = env_values.get(var_name)
            if value is None:
                value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    f"CONFIG ERROR: Environment variable '${var_name}' is not set! "
                    f"The literal placeholder will be used."
                )
                return match.group(0)
            return value

        return _ENV_PATTERN.sub(replace_var, obj)
    return obj
