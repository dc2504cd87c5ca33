"""Types for remote inference requests and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class TextPromptParams:
    """Text-prompt detection parameters."""

    prompt: str = ""
    threshold: float = 0.5
    mask_threshold: float = 0.5


@dataclass(frozen=True, slots=True)
class BoxParams:
    """Box-based segmentation parameters. box is [x1, y1, x2, y2]."""

    box: tuple[float, float, float, float]
    multimask: bool = False


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float
    label: int = 1  # 1 = foreground, 0 = background

    def to_dict(self) -> dict[str, float | int]:
        return {"x": self.x, "y": self.y, "label": self.label}


@dataclass(frozen=True, slots=True)
class TrackerParams:
    """Interactive tracker parameters.

    Points are the markers the user placed on the canvas. The remote tracker
    segments the whole image, so they are echoed back for rendering only.
    """

    multimask: bool = False
    points: tuple[Point, ...] = ()


@dataclass(frozen=True, slots=True)
class TrimWindow:
    start: float
    end: float | None = None

    def to_dict(self) -> dict[str, float | None]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True, slots=True)
class VideoParams:
    """Video processing parameters."""

    prompt: str = ""
    max_frames: int = 50
    timeout_seconds: int = 60
    trim: TrimWindow | None = None


@dataclass(slots=True)
class Prediction:
    """Raw output of one remote operation.

    data is whatever the remote client returned: a tuple/list for
    multi-output operations, a single value otherwise.
    """

    api_name: str
    data: Any
    duration: float


@dataclass(slots=True)
class MediaRef:
    """Reference to a media file produced by the remote endpoint."""

    url: str | None = None
    path: str | None = None
    orig_name: str | None = None
    size: int | None = None
    mime_type: str | None = None

    @property
    def href(self) -> str | None:
        """Best address for the file: url, falling back to path."""
        return self.url or self.path

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.href,
            "path": self.path,
            "orig_name": self.orig_name,
            "size": self.size,
        }


@dataclass(frozen=True, slots=True)
class Detection:
    label: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "confidence": self.confidence}


@dataclass(slots=True)
class ImageAnalysis:
    """Result of text-prompt detection."""

    media: MediaRef
    details: Any
    detections: list[Detection]
    prediction: Prediction


@dataclass(slots=True)
class BoxSegmentation:
    media: MediaRef
    mask: Any
    prediction: Prediction


@dataclass(slots=True)
class TrackerResult:
    media: MediaRef
    points: tuple[Point, ...]
    prediction: Prediction


@dataclass(slots=True)
class VideoAnalysis:
    media: MediaRef
    status: Any
    trim: TrimWindow | None
    prediction: Prediction


@dataclass(slots=True)
class SpaceInfo:
    """Metadata describing the remote Space's API."""

    space_url: str
    space_name: str
    api_info: dict[str, Any]
    endpoints: list[str] = field(default_factory=list)
