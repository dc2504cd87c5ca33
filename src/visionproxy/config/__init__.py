"""Configuration module."""

from visionproxy.config.loader import get_default_config, load_config
from visionproxy.config.models import (
    EndpointNames,
    ProxyConfig,
    RemoteConfig,
    ServerConfig,
    UploadConfig,
    VisionProxyConfig,
)
from visionproxy.config.paths import (
    get_config_path,
    get_logs_path,
    get_visionproxy_home,
)

__all__ = [
    "EndpointNames",
    "ProxyConfig",
    "RemoteConfig",
    "ServerConfig",
    "UploadConfig",
    "VisionProxyConfig",
    "get_config_path",
    "get_default_config",
    "get_logs_path",
    "get_visionproxy_home",
    "load_config",
]
