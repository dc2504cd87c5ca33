"""Decoding of loosely typed remote results.

Remote operations return an ordered list of outputs whose positions are
defined by the Space, a single output object, or nothing at all. The payload
is decoded once into a tagged union and every extraction works on that.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from visionproxy.errors import EmptyResultError
from visionproxy.inference.types import Detection, MediaRef


@dataclass(frozen=True, slots=True)
class ArrayResult:
    items: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class ObjectResult:
    value: Any


@dataclass(frozen=True, slots=True)
class ErrorResult:
    message: str


RemotePayload = ArrayResult | ObjectResult | ErrorResult


def decode_payload(raw: Any) -> RemotePayload:
    """Classify a raw remote result."""
    if raw is None:
        return ErrorResult("Remote returned no data")
    if isinstance(raw, list | tuple):
        if not raw:
            return ErrorResult("Remote returned an empty result list")
        return ArrayResult(tuple(raw))
    if isinstance(raw, dict) and set(raw) == {"error"}:
        return ErrorResult(str(raw["error"]))
    return ObjectResult(raw)


def _is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def media_ref(value: Any) -> MediaRef | None:
    """Build a MediaRef from a single output value.

    Dicts are read by their url then path field. A bare string is taken as a
    URL when it looks like one, otherwise as a remote file path.
    """
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if _is_url(value):
            return MediaRef(url=value)
        return MediaRef(path=value)

    if not isinstance(value, dict):
        return None

    url = value.get("url")
    path = value.get("path")
    url = url if isinstance(url, str) and url else None
    path = path if isinstance(path, str) and path else None
    if url is None and path is None:
        # Gradio gallery/video outputs nest the file one level down
        for key in ("video", "image"):
            nested = value.get(key)
            if isinstance(nested, dict):
                return media_ref(nested)
        return None

    orig_name = value.get("orig_name")
    mime_type = value.get("mime_type")
    return MediaRef(
        url=url,
        path=path,
        orig_name=orig_name if isinstance(orig_name, str) else None,
        size=_as_int(value.get("size")),
        mime_type=mime_type if isinstance(mime_type, str) else None,
    )


def primary_media(payload: RemotePayload) -> MediaRef | None:
    """Extract the primary media output.

    An object payload that is itself a file reference wins; for arrays the
    first element is the primary output.
    """
    match payload:
        case ObjectResult(value=value):
            return media_ref(value)
        case ArrayResult(items=items):
            return media_ref(items[0])
        case _:
            return None


def secondary_value(payload: RemotePayload, index: int = 1) -> Any:
    """Return the output at index for array payloads, else None."""
    if isinstance(payload, ArrayResult) and len(payload.items) > index:
        return payload.items[index]
    return None


def summarize(payload: RemotePayload, limit: int = 300) -> str:
    """Short description of a payload for error details and logs."""
    match payload:
        case ErrorResult(message=message):
            return message
        case ArrayResult(items=items):
            text = f"array of {len(items)} item(s): {items!r}"
        case ObjectResult(value=value):
            text = f"{type(value).__name__}: {value!r}"
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text


def require_media(payload: RemotePayload) -> MediaRef:
    """Return the primary media reference or raise EmptyResultError."""
    media = primary_media(payload)
    if media is None or media.href is None:
        raise EmptyResultError(
            f"No media reference in remote result ({summarize(payload)})"
        )
    return media


_LABEL = r"[A-Za-z][\w-]*(?:[ \t]+[A-Za-z][\w-]*)*"
_SCORE = r"\d*\.\d+|\d+"

# Checked in order; each pass blanks out what it matched.
_DETECTION_PATTERNS = [
    # (dog, 0.91)
    re.compile(rf"\(\s*({_LABEL})\s*,\s*({_SCORE})\s*\)"),
    # person (0.95)
    re.compile(rf"({_LABEL})\s*\(\s*({_SCORE})\s*\)"),
    # car: 0.87 (decimal required so "Objects found: 2" is not a detection)
    re.compile(rf"({_LABEL})\s*:\s*(\d*\.\d+)"),
]


def parse_detections(text: Any) -> list[Detection]:
    """Parse label/confidence pairs out of a detail string.

    Returns:
        Detections with confidence in [0, 1], highest confidence first.
    """
    if not isinstance(text, str) or not text:
        return []

    detections: list[Detection] = []
    remaining = text
    for pattern in _DETECTION_PATTERNS:
        for match in pattern.finditer(remaining):
            label = match.group(1).strip()
            confidence = float(match.group(2))
            if 0.0 <= confidence <= 1.0:
                detections.append(Detection(label=label, confidence=confidence))
        remaining = pattern.sub(" ", remaining)

    detections.sort(key=lambda d: d.confidence, reverse=True)
    return detections
