"""Tests for upload staging."""

import io

import pytest
from fastapi import UploadFile

from visionproxy.config import UploadConfig
from visionproxy.errors import UploadStorageError, UploadTooLargeError
from visionproxy.uploads import (
    remove_quietly,
    sanitize_filename,
    staged_upload,
    temp_path_for,
)


def _upload(content: bytes, filename: str = "photo.jpg") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename)


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("photo.jpg", "photo.jpg"),
            ("my photo (1).png", "my_photo_1_.png"),
            ("../../etc/passwd", "passwd"),
            ("..", "upload"),
            ("", "upload"),
            (None, "upload"),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_truncates_long_names(self):
        name = "a" * 200 + ".png"
        result = sanitize_filename(name)
        assert len(result) == 80
        assert result.endswith(".png")


class TestTempPathFor:
    def test_names_are_unique(self, tmp_path):
        first = temp_path_for("a.jpg", prefix="text", directory=tmp_path)
        second = temp_path_for("a.jpg", prefix="text", directory=tmp_path)
        assert first != second
        assert first.parent == tmp_path
        assert first.name.startswith("text-")
        assert first.name.endswith("-a.jpg")


class TestStagedUpload:
    async def test_writes_and_removes(self, tmp_path):
        config = UploadConfig(temp_dir=tmp_path / "staging", chunk_size=4)
        content = b"0123456789abcdef"

        async with staged_upload(
            _upload(content), prefix="box", config=config
        ) as path:
            assert path.read_bytes() == content
            assert path.parent == tmp_path / "staging"

        assert not path.exists()

    async def test_removes_on_error(self, tmp_path):
        config = UploadConfig(temp_dir=tmp_path)

        with pytest.raises(RuntimeError):
            async with staged_upload(
                _upload(b"data"), prefix="text", config=config
            ) as path:
                raise RuntimeError("remote failed")

        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    async def test_rejects_oversized_upload(self, tmp_path):
        config = UploadConfig(temp_dir=tmp_path, max_upload_bytes=8, chunk_size=4)

        with pytest.raises(UploadTooLargeError) as exc_info:
            async with staged_upload(
                _upload(b"0123456789"), prefix="text", config=config
            ):
                pytest.fail("block should not run")

        assert exc_info.value.limit == 8
        assert list(tmp_path.iterdir()) == []

    async def test_unusable_temp_dir(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        config = UploadConfig(temp_dir=blocker / "staging")

        with pytest.raises(UploadStorageError) as exc_info:
            async with staged_upload(_upload(b"data"), prefix="text", config=config):
                pytest.fail("block should not run")

        assert isinstance(exc_info.value.__cause__, OSError)

    async def test_os_errors_in_block_are_not_storage_errors(self, tmp_path):
        config = UploadConfig(temp_dir=tmp_path)

        with pytest.raises(FileNotFoundError):
            async with staged_upload(_upload(b"data"), prefix="text", config=config):
                raise FileNotFoundError("remote lost the file")

        assert list(tmp_path.iterdir()) == []

    async def test_concurrent_uploads_do_not_collide(self, tmp_path):
        config = UploadConfig(temp_dir=tmp_path)

        async with staged_upload(_upload(b"one"), prefix="text", config=config) as a:
            async with staged_upload(
                _upload(b"two"), prefix="text", config=config
            ) as b:
                assert a != b
                assert a.read_bytes() == b"one"
                assert b.read_bytes() == b"two"


def test_remove_quietly_ignores_missing(tmp_path):
    remove_quietly(tmp_path / "missing")
