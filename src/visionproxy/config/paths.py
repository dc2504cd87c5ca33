"""Centralized path management.

Config and logs live under a single base directory which can be overridden
with the VISIONPROXY_HOME environment variable.

Default locations:
- Linux/macOS: ~/.visionproxy
- Windows: %USERPROFILE%\\.visionproxy
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "VISIONPROXY_HOME"


@lru_cache(maxsize=1)
def get_visionproxy_home() -> Path:
    """Get the base directory for all visionproxy data.

    Resolution order:
    1. VISIONPROXY_HOME environment variable (if set)
    2. Platform default (~/.visionproxy)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".visionproxy"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_visionproxy_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_visionproxy_home() / "logs"
