"""Remote inference: client adapter, result normalization and service."""

from visionproxy.inference.client import GradioSpaceClient, InferenceBackend
from visionproxy.inference.service import VisionService
from visionproxy.inference.types import (
    BoxParams,
    Detection,
    MediaRef,
    Point,
    Prediction,
    TextPromptParams,
    TrackerParams,
    TrimWindow,
    VideoParams,
)

__all__ = [
    "BoxParams",
    "Detection",
    "GradioSpaceClient",
    "InferenceBackend",
    "MediaRef",
    "Point",
    "Prediction",
    "TextPromptParams",
    "TrackerParams",
    "TrimWindow",
    "VideoParams",
    "VisionService",
]
