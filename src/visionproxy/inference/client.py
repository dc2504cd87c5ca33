"""Remote inference client adapter.

The remote model runs in a Hugging Face Gradio Space. gradio_client is a
blocking library, so every call is pushed to a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from gradio_client import Client, handle_file

from visionproxy.inference.types import Prediction

if TYPE_CHECKING:
    from visionproxy.config import RemoteConfig

logger = logging.getLogger(__name__)


class InferenceBackend(Protocol):
    """Contract for talking to the remote model endpoint."""

    async def predict(self, api_name: str, **params: Any) -> Prediction:
        """Invoke a named remote operation."""
        ...

    async def view_api(self) -> dict[str, Any]:
        """Describe the remote API."""
        ...


class GradioSpaceClient:
    """InferenceBackend backed by gradio_client.

    A fresh connection is opened for every call; nothing is shared between
    requests. Path parameters are uploaded as files.
    """

    def __init__(self, config: RemoteConfig) -> None:
        self._config = config

    def _connect(self) -> Client:
        # download_files=False keeps file outputs as {url, path, ...} dicts
        # instead of fetching them to local disk.
        return Client(
            self._config.space_url,
            hf_token=self._config.token(),
            download_files=False,
            verbose=False,
        )

    @staticmethod
    def _prepare(params: dict[str, Any]) -> dict[str, Any]:
        return {
            key: handle_file(str(value)) if isinstance(value, Path) else value
            for key, value in params.items()
        }

    def _predict_sync(self, api_name: str, params: dict[str, Any]) -> Any:
        client = self._connect()
        return client.predict(api_name=api_name, **self._prepare(params))

    async def predict(self, api_name: str, **params: Any) -> Prediction:
        logger.debug("Calling %s on %s", api_name, self._config.space_url)
        started = time.monotonic()
        data = await asyncio.to_thread(self._predict_sync, api_name, params)
        duration = time.monotonic() - started
        logger.debug("Raw result from %s: %r", api_name, data)
        return Prediction(api_name=api_name, data=data, duration=duration)

    def _view_api_sync(self) -> dict[str, Any]:
        client = self._connect()
        info = client.view_api(print_info=False, return_format="dict")
        return info if isinstance(info, dict) else {}

    async def view_api(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._view_api_sync)
