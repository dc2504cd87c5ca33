"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr
from typer.testing import CliRunner

from visionproxy.config import RemoteConfig, UploadConfig, VisionProxyConfig
from visionproxy.config.paths import get_visionproxy_home
from visionproxy.inference.types import Prediction
from visionproxy.proxy import MediaProxy
from visionproxy.server import create_app

TEST_TOKEN = "hf_abcdefghijklmnopqrstuvwxyz0123"

# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch) -> Iterator[None]:
    """Keep tests away from the real home directory and credentials."""
    monkeypatch.setenv("VISIONPROXY_HOME", str(tmp_path / "home"))
    for var in ("HF_TOKEN", "VISIONPROXY_SPACE_URL", "HF_SPACE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    get_visionproxy_home.cache_clear()
    yield
    get_visionproxy_home.cache_clear()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def config(upload_dir: Path) -> VisionProxyConfig:
    """Configuration with a private token and an isolated temp dir."""
    return VisionProxyConfig(
        remote=RemoteConfig(hf_token=SecretStr(TEST_TOKEN)),
        uploads=UploadConfig(temp_dir=upload_dir),
    )


@pytest.fixture
def config_toml_content() -> str:
    return """
[remote]
space_url = "https://someone-segmenter.hf.space/"
space_name = "someone/segmenter"
max_video_frames = 120

[remote.endpoints]
text = "/detect_text"

[server]
port = 9000
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    config_path = tmp_path / "settings.toml"
    config_path.write_text(config_toml_content)
    return config_path


# =============================================================================
# Remote Fakes
# =============================================================================


class FakeBackend:
    """InferenceBackend that records calls and returns canned results."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.results: dict[str, Any] = {}
        self.error: Exception | None = None
        self.api_info: dict[str, Any] = {
            "named_endpoints": {
                "/process_image_text": {
                    "parameters": [
                        {"parameter_name": "image"},
                        {"parameter_name": "text_prompt"},
                    ]
                },
                "/process_image_box": {"parameters": []},
            },
            "unnamed_endpoints": {},
        }
        self.info_error: Exception | None = None
        # (path, existed during the call, contents)
        self.staged: list[tuple[Path, bool, bytes]] = []

    async def predict(self, api_name: str, **params: Any) -> Prediction:
        self.calls.append((api_name, params))
        for value in params.values():
            if isinstance(value, Path):
                exists = value.exists()
                self.staged.append(
                    (value, exists, value.read_bytes() if exists else b"")
                )
        if self.error is not None:
            raise self.error
        return Prediction(
            api_name=api_name, data=self.results.get(api_name), duration=0.25
        )

    async def view_api(self) -> dict[str, Any]:
        if self.info_error is not None:
            raise self.info_error
        return self.api_info


class Upstream:
    """Programmable remote file host for the media proxy."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: (
            httpx.Response(
                200,
                content=b"\x89PNG\r\n\x1a\nfake",
                headers={"content-type": "image/png"},
            )
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def app(config: VisionProxyConfig, backend: FakeBackend, upstream: Upstream) -> FastAPI:
    proxy = MediaProxy(config, transport=upstream.transport)
    return create_app(config, backend=backend, proxy=proxy)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def staged_files(directory: Path) -> list[Path]:
    """Files currently left in the upload temp dir."""
    if not directory.exists():
        return []
    return list(directory.iterdir())


@pytest.fixture
def leftovers(upload_dir: Path) -> Callable[[], list[Path]]:
    """Callable listing files still present in the upload temp dir."""
    return lambda: staged_files(upload_dir)


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
