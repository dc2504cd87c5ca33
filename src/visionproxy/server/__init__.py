"""HTTP server for the vision proxy."""

from visionproxy.server.app import VisionProxyServer, create_app
from visionproxy.server.runner import ServerRunner

__all__ = [
    "ServerRunner",
    "VisionProxyServer",
    "create_app",
]
