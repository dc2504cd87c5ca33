"""Tests for VisionService."""

from pathlib import Path

import pytest

from visionproxy.errors import (
    EmptyResultError,
    QuotaExceededError,
    RemoteInferenceError,
)
from visionproxy.inference import (
    BoxParams,
    Point,
    TextPromptParams,
    TrackerParams,
    TrimWindow,
    VideoParams,
    VisionService,
)


@pytest.fixture
def service(config, backend):
    return VisionService(config=config, backend=backend)


@pytest.fixture
def image(tmp_path) -> Path:
    path = tmp_path / "image.png"
    path.write_bytes(b"\x89PNG")
    return path


class TestAnalyzeText:
    async def test_forwards_and_normalizes(self, service, backend, image):
        backend.results["/process_image_text"] = (
            {"url": "https://x/out.webp"},
            "Objects found: 2 (cat, 0.55) (dog, 0.91)",
        )

        result = await service.analyze_text(
            image, TextPromptParams(prompt="pets", threshold=0.4, mask_threshold=0.6)
        )

        assert backend.calls == [
            (
                "/process_image_text",
                {
                    "image": image,
                    "text_prompt": "pets",
                    "threshold": 0.4,
                    "mask_threshold": 0.6,
                },
            )
        ]
        assert result.media.href == "https://x/out.webp"
        assert [d.label for d in result.detections] == ["dog", "cat"]
        assert result.prediction.duration == 0.25

    async def test_uses_configured_endpoint(self, service, backend, config, image):
        config.remote.endpoints.text = "/detect_text"
        backend.results["/detect_text"] = ["https://x/a.png", None]

        result = await service.analyze_text(image, TextPromptParams())

        assert backend.calls[0][0] == "/detect_text"
        assert result.details is None
        assert result.detections == []

    async def test_empty_result(self, service, backend, image):
        with pytest.raises(EmptyResultError):
            await service.analyze_text(image, TextPromptParams())

    async def test_quota(self, service, backend, image):
        backend.error = RuntimeError("You have exceeded your GPU quota")
        with pytest.raises(QuotaExceededError) as exc_info:
            await service.analyze_text(image, TextPromptParams())
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_logs_call_fields(self, service, backend, image, caplog):
        backend.results["/process_image_text"] = ["https://x/a.png", None]

        with caplog.at_level("INFO", logger="visionproxy.inference.service"):
            await service.analyze_text(image, TextPromptParams())

        record = next(r for r in caplog.records if "completed in" in r.message)
        assert getattr(record, "remote.api_name") == "/process_image_text"
        assert getattr(record, "remote.duration") == 0.25


class TestSegmentBox:
    async def test_box_sent_as_list(self, service, backend, image):
        backend.results["/process_image_box"] = [
            {"path": "/tmp/seg.png"},
            {"path": "/tmp/mask.png"},
        ]

        result = await service.segment_box(
            image, BoxParams(box=(1.0, 2.0, 3.0, 4.0), multimask=True)
        )

        _, params = backend.calls[0]
        assert params["box"] == [1.0, 2.0, 3.0, 4.0]
        assert params["multimask"] is True
        assert result.media.href == "/tmp/seg.png"
        assert result.mask == {"path": "/tmp/mask.png"}


class TestTrack:
    async def test_points_not_forwarded(self, service, backend, image):
        backend.results["/process_image_tracker_wrapper"] = {"url": "https://x/t.png"}
        points = (Point(1.0, 2.0),)

        result = await service.track(image, TrackerParams(points=points))

        _, params = backend.calls[0]
        assert set(params) == {"image", "multimask"}
        assert result.points == points
        assert result.media.href == "https://x/t.png"


class TestAnalyzeVideo:
    async def test_forwards_parameters(self, service, backend, image):
        backend.results["/process_video_text"] = [
            {"video": {"url": "https://x/out.mp4"}},
            "done",
        ]
        params = VideoParams(
            prompt="car", max_frames=30, timeout_seconds=90, trim=TrimWindow(1.0, 2.0)
        )

        result = await service.analyze_video(image, params)

        api_name, sent = backend.calls[0]
        assert api_name == "/process_video_text"
        assert sent == {
            "video_path": image,
            "text_prompt": "car",
            "max_frames": 30,
            "timeout_seconds": 90,
        }
        assert result.media.href == "https://x/out.mp4"
        assert result.status == "done"
        assert result.trim == TrimWindow(1.0, 2.0)

    async def test_failure_headline(self, service, backend, image):
        backend.error = OSError("upload failed")
        with pytest.raises(RemoteInferenceError) as exc_info:
            await service.analyze_video(image, VideoParams())
        assert exc_info.value.message == "Failed to process video"


class TestDescribe:
    async def test_lists_endpoints(self, service):
        info = await service.describe()
        assert info.endpoints == ["/process_image_box", "/process_image_text"]
        assert info.space_name == info.space_url

    async def test_failure(self, service, backend):
        backend.info_error = ValueError("Could not fetch config")
        with pytest.raises(RemoteInferenceError) as exc_info:
            await service.describe()
        assert exc_info.value.message == "Space not found or not accessible"
        assert exc_info.value.details == "Could not fetch config"
