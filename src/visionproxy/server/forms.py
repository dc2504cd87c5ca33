"""Parsing of multipart form fields into request parameters.

Fields arrive as optional strings and are validated here so every input
problem becomes an InvalidRequestError with a readable message.
"""

from __future__ import annotations

import json
import math
from typing import TYPE_CHECKING, Any

from visionproxy.errors import InvalidRequestError
from visionproxy.inference.types import (
    BoxParams,
    Point,
    TextPromptParams,
    TrackerParams,
    TrimWindow,
    VideoParams,
)

if TYPE_CHECKING:
    from fastapi import UploadFile

    from visionproxy.config import VisionProxyConfig

BOX_FORMAT_ERROR = "Invalid box format. Expected [x1, y1, x2, y2]"


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def parse_float(
    value: str | None,
    name: str,
    *,
    default: float,
    low: float | None = None,
    high: float | None = None,
) -> float:
    if _blank(value):
        return default
    try:
        number = float(value)  # type: ignore[arg-type]
    except ValueError as e:
        raise InvalidRequestError(f"Invalid {name}", f"{name} must be a number") from e
    if not math.isfinite(number):
        raise InvalidRequestError(f"Invalid {name}", f"{name} must be finite")
    if (low is not None and number < low) or (high is not None and number > high):
        raise InvalidRequestError(
            f"Invalid {name}", f"{name} must be between {low} and {high}"
        )
    return number


def parse_int(
    value: str | None,
    name: str,
    *,
    default: int,
    high: int,
) -> int:
    """Parse a positive integer. Whole floats like "50.0" are accepted."""
    if _blank(value):
        return default
    number = parse_float(value, name, default=float(default))
    if not number.is_integer() or number < 1 or number > high:
        raise InvalidRequestError(
            f"Invalid {name}", f"{name} must be a whole number between 1 and {high}"
        )
    return int(number)


def parse_bool(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


def require_upload(upload: UploadFile | None, kind: str) -> UploadFile:
    """Return the upload or fail with "No <kind> provided"."""
    if upload is None or not upload.filename:
        raise InvalidRequestError(f"No {kind} provided")
    return upload


def check_image_type(upload: UploadFile, config: VisionProxyConfig) -> None:
    content_type = (upload.content_type or "").lower()
    if not content_type or content_type == "application/octet-stream":
        return
    if content_type not in config.uploads.allowed_image_types:
        raise InvalidRequestError(
            "Invalid file type",
            f"{content_type} is not one of: "
            + ", ".join(config.uploads.allowed_image_types),
        )


def check_video_type(upload: UploadFile) -> None:
    content_type = (upload.content_type or "").lower()
    if not content_type or content_type == "application/octet-stream":
        return
    if not content_type.startswith("video/"):
        raise InvalidRequestError(
            "Invalid file type", f"{content_type} is not a video type"
        )


def parse_text_params(
    prompt: str | None, threshold: str | None, mask_threshold: str | None
) -> TextPromptParams:
    return TextPromptParams(
        prompt=(prompt or "").strip(),
        threshold=parse_float(threshold, "threshold", default=0.5, low=0.0, high=1.0),
        mask_threshold=parse_float(
            mask_threshold, "maskThreshold", default=0.5, low=0.0, high=1.0
        ),
    )


def parse_box(value: str | None) -> tuple[float, float, float, float]:
    """Parse a JSON [x1, y1, x2, y2] array of exactly four numbers."""
    if _blank(value):
        raise InvalidRequestError("No bounding box provided")
    try:
        box = json.loads(value)  # type: ignore[arg-type]
    except json.JSONDecodeError as e:
        raise InvalidRequestError(BOX_FORMAT_ERROR, "box is not valid JSON") from e
    if not isinstance(box, list) or len(box) != 4:
        raise InvalidRequestError(BOX_FORMAT_ERROR)
    if not all(_is_number(v) for v in box):
        raise InvalidRequestError(BOX_FORMAT_ERROR, "box values must be numbers")
    x1, y1, x2, y2 = (float(v) for v in box)
    return (x1, y1, x2, y2)


def parse_box_params(box: str | None, multimask: str | None) -> BoxParams:
    return BoxParams(box=parse_box(box), multimask=parse_bool(multimask))


def _parse_point(raw: Any) -> Point:
    if isinstance(raw, dict):
        x, y, label = raw.get("x"), raw.get("y"), raw.get("label", 1)
    elif isinstance(raw, list) and len(raw) in (2, 3):
        x, y = raw[0], raw[1]
        label = raw[2] if len(raw) == 3 else 1
    else:
        raise InvalidRequestError(
            "Invalid points format", "Expected [x, y] pairs or {x, y} objects"
        )
    if not (_is_number(x) and _is_number(y)) or label not in (0, 1):
        raise InvalidRequestError(
            "Invalid points format", "Point coordinates must be numbers"
        )
    return Point(x=float(x), y=float(y), label=int(label))


def parse_points(value: str | None) -> tuple[Point, ...]:
    if _blank(value):
        return ()
    try:
        raw = json.loads(value)  # type: ignore[arg-type]
    except json.JSONDecodeError as e:
        raise InvalidRequestError(
            "Invalid points format", "points is not valid JSON"
        ) from e
    if not isinstance(raw, list):
        raise InvalidRequestError("Invalid points format", "points must be a list")
    return tuple(_parse_point(item) for item in raw)


def parse_tracker_params(multimask: str | None, points: str | None) -> TrackerParams:
    return TrackerParams(multimask=parse_bool(multimask), points=parse_points(points))


def parse_trim(start: str | None, end: str | None) -> TrimWindow | None:
    if _blank(start) and _blank(end):
        return None
    trim_start = parse_float(start, "trimStart", default=0.0, low=0.0)
    trim_end = None
    if not _blank(end):
        trim_end = parse_float(end, "trimEnd", default=0.0, low=0.0)
    if trim_end is not None and trim_end <= trim_start:
        raise InvalidRequestError("Invalid trim", "trimEnd must be after trimStart")
    return TrimWindow(start=trim_start, end=trim_end)


def parse_video_params(
    config: VisionProxyConfig,
    *,
    prompt: str | None,
    max_frames: str | None,
    timeout_seconds: str | None,
    trim_start: str | None,
    trim_end: str | None,
) -> VideoParams:
    remote = config.remote
    return VideoParams(
        prompt=(prompt or "").strip(),
        max_frames=parse_int(
            max_frames, "maxFrames", default=50, high=remote.max_video_frames
        ),
        timeout_seconds=parse_int(
            timeout_seconds,
            "timeoutSeconds",
            default=60,
            high=remote.max_timeout_seconds,
        ),
        trim=parse_trim(trim_start, trim_end),
    )
