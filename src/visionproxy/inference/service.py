"""Vision service orchestration.

Maps each request mode onto its remote operation and turns the raw result
into a typed one. Remote failures leave this module as VisionProxyError.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from visionproxy.config import VisionProxyConfig
from visionproxy.errors import classify_remote_error
from visionproxy.inference.client import InferenceBackend
from visionproxy.inference.normalize import (
    decode_payload,
    parse_detections,
    require_media,
    secondary_value,
)
from visionproxy.inference.types import (
    BoxParams,
    BoxSegmentation,
    ImageAnalysis,
    Prediction,
    SpaceInfo,
    TextPromptParams,
    TrackerParams,
    TrackerResult,
    VideoAnalysis,
    VideoParams,
)

logger = logging.getLogger(__name__)

IMAGE_FAILURE = "Failed to process image"
VIDEO_FAILURE = "Failed to process video"


def _endpoint_names(api_info: dict[str, Any]) -> list[str]:
    named = api_info.get("named_endpoints") or {}
    if isinstance(named, dict):
        return sorted(str(name) for name in named)
    return []


class VisionService:
    """Runs segmentation/detection requests against the remote backend."""

    def __init__(self, *, config: VisionProxyConfig, backend: InferenceBackend) -> None:
        self._config = config
        self._backend = backend

    @property
    def config(self) -> VisionProxyConfig:
        return self._config

    async def _call(self, api_name: str, failure: str, **params: Any) -> Prediction:
        try:
            prediction = await self._backend.predict(api_name, **params)
        except Exception as e:
            raise classify_remote_error(e, failure) from e
        logger.info(
            "%s completed in %.2fs",
            api_name,
            prediction.duration,
            extra={
                "remote.api_name": api_name,
                "remote.duration": round(prediction.duration, 3),
            },
        )
        return prediction

    async def analyze_text(
        self, image: Path, params: TextPromptParams
    ) -> ImageAnalysis:
        """Detect and segment objects matching a text prompt."""
        prediction = await self._call(
            self._config.remote.endpoints.text,
            IMAGE_FAILURE,
            image=image,
            text_prompt=params.prompt,
            threshold=params.threshold,
            mask_threshold=params.mask_threshold,
        )
        payload = decode_payload(prediction.data)
        details = secondary_value(payload)
        return ImageAnalysis(
            media=require_media(payload),
            details=details,
            detections=parse_detections(details),
            prediction=prediction,
        )

    async def segment_box(self, image: Path, params: BoxParams) -> BoxSegmentation:
        """Segment the region inside a bounding box."""
        prediction = await self._call(
            self._config.remote.endpoints.box,
            IMAGE_FAILURE,
            image=image,
            box=list(params.box),
            multimask=params.multimask,
        )
        payload = decode_payload(prediction.data)
        return BoxSegmentation(
            media=require_media(payload),
            mask=secondary_value(payload),
            prediction=prediction,
        )

    async def track(self, image: Path, params: TrackerParams) -> TrackerResult:
        """Run the interactive tracker over the whole image."""
        prediction = await self._call(
            self._config.remote.endpoints.tracker,
            IMAGE_FAILURE,
            image=image,
            multimask=params.multimask,
        )
        payload = decode_payload(prediction.data)
        return TrackerResult(
            media=require_media(payload),
            points=params.points,
            prediction=prediction,
        )

    async def analyze_video(self, video: Path, params: VideoParams) -> VideoAnalysis:
        """Track prompted objects through a video."""
        prediction = await self._call(
            self._config.remote.endpoints.video,
            VIDEO_FAILURE,
            video_path=video,
            text_prompt=params.prompt,
            max_frames=params.max_frames,
            timeout_seconds=params.timeout_seconds,
        )
        payload = decode_payload(prediction.data)
        return VideoAnalysis(
            media=require_media(payload),
            status=secondary_value(payload),
            trim=params.trim,
            prediction=prediction,
        )

    async def describe(self) -> SpaceInfo:
        """Fetch the remote API description."""
        remote = self._config.remote
        try:
            api_info = await self._backend.view_api()
        except Exception as e:
            raise classify_remote_error(e, "Space not found or not accessible") from e
        return SpaceInfo(
            space_url=remote.space_url,
            space_name=remote.display_name,
            api_info=api_info,
            endpoints=_endpoint_names(api_info),
        )
