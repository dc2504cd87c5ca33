"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr

from visionproxy.config.models import VisionProxyConfig
from visionproxy.config.paths import get_config_path

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "HF_TOKEN"
SPACE_URL_ENV_VARS = ("VISIONPROXY_SPACE_URL", "HF_SPACE_URL")


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.visionproxy/config.toml (or VISIONPROXY_HOME)
        Path("/etc/visionproxy/config.toml"),  # System-wide
    ]


def _resolve_env(config: dict[str, Any]) -> dict[str, Any]:
    """Fill the remote section from environment variables.

    The token is only taken from the environment when the file does not set
    one. The Space URL from the environment always wins so deployments can
    repoint a shared config file.
    """
    remote = config.get("remote")
    if remote is None:
        remote = config["remote"] = {}

    if remote.get("hf_token") is None:
        value = os.environ.get(TOKEN_ENV_VAR)
        if value:
            remote["hf_token"] = SecretStr(value)

    for env_var in SPACE_URL_ENV_VARS:
        if value := os.environ.get(env_var):
            remote["space_url"] = value
            break

    return config


def load_config(path: Path | None = None) -> VisionProxyConfig:
    """Load configuration from a TOML file and the environment.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to built-in defaults when none exist.

    Returns:
        Validated VisionProxyConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ValueError: If config file is invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is None:
        logger.debug("No config file found, using defaults")
    else:
        logger.debug("Loading config from %s", config_path)
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)

    raw_config = _resolve_env(raw_config)

    return VisionProxyConfig.model_validate(raw_config)


def get_default_config() -> VisionProxyConfig:
    """Get a default configuration for development/testing."""
    return VisionProxyConfig()
