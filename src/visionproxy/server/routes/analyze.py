"""Analysis routes: one per request mode.

Each route validates its form fields, stages the upload in a temp file for
the duration of the remote call and returns the normalized result.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, File, Form, Request, UploadFile

from visionproxy.config import VisionProxyConfig
from visionproxy.inference import VisionService
from visionproxy.server import forms
from visionproxy.uploads import staged_upload

router = APIRouter()
logger = logging.getLogger(__name__)

OptionalForm = Annotated[str | None, Form()]
OptionalFile = Annotated[UploadFile | None, File()]


def _service(request: Request) -> VisionService:
    return request.app.state.service


def _config(request: Request) -> VisionProxyConfig:
    return request.app.state.config


def _jsonable(value: Any) -> Any:
    """Make remote output JSON-safe (tuples become lists)."""
    if isinstance(value, tuple | list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return str(value)


@router.post("/text")
async def analyze_text(
    request: Request,
    image: OptionalFile = None,
    prompt: OptionalForm = None,
    threshold: OptionalForm = None,
    maskThreshold: OptionalForm = None,  # noqa: N803
) -> dict[str, Any]:
    """Detect objects matching a text prompt."""
    config = _config(request)
    upload = forms.require_upload(image, "image")
    forms.check_image_type(upload, config)
    params = forms.parse_text_params(prompt, threshold, maskThreshold)

    async with staged_upload(upload, prefix="text", config=config.uploads) as path:
        result = await _service(request).analyze_text(path, params)

    return {
        "success": True,
        "data": _jsonable(result.prediction.data),
        "duration": result.prediction.duration,
        "result_image": result.media.to_dict(),
        "details": _jsonable(result.details),
        "detections": [d.to_dict() for d in result.detections],
    }


@router.post("/box")
async def analyze_box(
    request: Request,
    image: OptionalFile = None,
    box: OptionalForm = None,
    multimask: OptionalForm = None,
) -> dict[str, Any]:
    """Segment the region inside a bounding box."""
    config = _config(request)
    upload = forms.require_upload(image, "image")
    forms.check_image_type(upload, config)
    params = forms.parse_box_params(box, multimask)

    async with staged_upload(upload, prefix="box", config=config.uploads) as path:
        result = await _service(request).segment_box(path, params)

    return {
        "success": True,
        "data": _jsonable(result.prediction.data),
        "duration": result.prediction.duration,
        "result_image": {"url": result.media.href, "path": result.media.path},
        "mask": _jsonable(result.mask),
    }


@router.post("/tracker")
async def analyze_tracker(
    request: Request,
    image: OptionalFile = None,
    multimask: OptionalForm = None,
    points: OptionalForm = None,
) -> dict[str, Any]:
    """Segment everything in the image with the interactive tracker."""
    config = _config(request)
    upload = forms.require_upload(image, "image")
    forms.check_image_type(upload, config)
    params = forms.parse_tracker_params(multimask, points)

    async with staged_upload(upload, prefix="tracker", config=config.uploads) as path:
        result = await _service(request).track(path, params)

    return {
        "success": True,
        "result_image_url": result.media.href,
        "full_response": _jsonable(result.prediction.data),
        "duration": result.prediction.duration,
        "points": [p.to_dict() for p in result.points],
    }


@router.post("/video")
async def analyze_video(
    request: Request,
    video: OptionalFile = None,
    prompt: OptionalForm = None,
    maxFrames: OptionalForm = None,  # noqa: N803
    timeoutSeconds: OptionalForm = None,  # noqa: N803
    trimStart: OptionalForm = None,  # noqa: N803
    trimEnd: OptionalForm = None,  # noqa: N803
) -> dict[str, Any]:
    """Track prompted objects through a video."""
    config = _config(request)
    upload = forms.require_upload(video, "video")
    forms.check_video_type(upload)
    params = forms.parse_video_params(
        config,
        prompt=prompt,
        max_frames=maxFrames,
        timeout_seconds=timeoutSeconds,
        trim_start=trimStart,
        trim_end=trimEnd,
    )
    if params.trim is not None:
        logger.info(
            "Video trim requested: %.2fs to %s",
            params.trim.start,
            "end" if params.trim.end is None else f"{params.trim.end:.2f}s",
        )

    async with staged_upload(upload, prefix="video", config=config.uploads) as path:
        result = await _service(request).analyze_video(path, params)

    return {
        "success": True,
        "data": _jsonable(result.prediction.data),
        "duration": result.prediction.duration,
        "result_video": result.media.to_dict(),
        "status": _jsonable(result.status),
        "trim": result.trim.to_dict() if result.trim else None,
    }
