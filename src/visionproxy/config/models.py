"""Configuration models using Pydantic."""

from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr, field_validator

DEFAULT_SPACE_URL = "https://daveyRI-SAM4.hf.space"

DEFAULT_IMAGE_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
]


class EndpointNames(BaseModel):
    """Remote operation names, one per request mode."""

    text: str = "/process_image_text"
    box: str = "/process_image_box"
    tracker: str = "/process_image_tracker_wrapper"
    video: str = "/process_video_text"


class RemoteConfig(BaseModel):
    """Configuration for the remote inference Space.

    The token is optional - public Spaces work without it.
    """

    space_url: str = DEFAULT_SPACE_URL
    space_name: str | None = None
    hf_token: SecretStr | None = None
    endpoints: EndpointNames = Field(default_factory=EndpointNames)
    max_video_frames: int = 300
    max_timeout_seconds: int = 600

    @field_validator("space_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("space_url must not be empty")
        return value.rstrip("/")

    @property
    def host(self) -> str | None:
        """Hostname of the Space, if space_url is a URL."""
        return urlparse(self.space_url).hostname

    @property
    def display_name(self) -> str:
        """Space name for diagnostics, falling back to the URL."""
        return self.space_name or self.space_url

    def token(self) -> str | None:
        """Plain token value, or None when no credential is configured."""
        if self.hf_token is None:
            return None
        value = self.hf_token.get_secret_value().strip()
        return value or None


class UploadConfig(BaseModel):
    """Configuration for staging uploaded media on disk."""

    temp_dir: Path | None = None  # None = system temp dir
    max_upload_bytes: int = 50 * 1024 * 1024
    chunk_size: int = 1024 * 1024
    allowed_image_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_TYPES)
    )


class ProxyConfig(BaseModel):
    """Configuration for the result media proxy."""

    cache_control: str = "public, max-age=31536000"
    default_content_type: str = "image/webp"
    timeout_seconds: float = 60.0
    # Hosts the proxy may fetch from in addition to the Space host,
    # *.hf.space and huggingface.co
    allowed_hosts: list[str] = []


class ServerConfig(BaseModel):
    """Configuration for HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080


class VisionProxyConfig(BaseModel):
    """Root configuration model."""

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    uploads: UploadConfig = Field(default_factory=UploadConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
