"""Temp storage for uploaded media.

The remote client takes files by path, so each upload is written to a
uniquely named temp file that lives exactly as long as the request's
``async with staged_upload(...)`` block.
"""

from __future__ import annotations

import logging
import re
import secrets
import tempfile
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles

from visionproxy.errors import UploadStorageError, UploadTooLargeError

if TYPE_CHECKING:
    from fastapi import UploadFile

    from visionproxy.config import UploadConfig

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
MAX_NAME_LENGTH = 80


def sanitize_filename(name: str | None, default: str = "upload") -> str:
    """Reduce a client-supplied filename to a safe basename."""
    base = Path(name or "").name
    base = _UNSAFE_CHARS.sub("_", base).strip("._")
    if not base:
        return default
    return base[-MAX_NAME_LENGTH:]


def temp_path_for(name: str | None, *, prefix: str, directory: Path) -> Path:
    """Build a unique temp path: <prefix>-<epoch ms>-<hex>-<name>."""
    stamp = int(time.time() * 1000)
    suffix = sanitize_filename(name)
    return directory / f"{prefix}-{stamp}-{secrets.token_hex(4)}-{suffix}"


def remove_quietly(path: Path) -> None:
    """Best-effort delete; failures are logged and ignored."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Failed to remove temp file %s: %s", path, e)


@asynccontextmanager
async def staged_upload(
    upload: UploadFile,
    *,
    prefix: str,
    config: UploadConfig,
) -> AsyncIterator[Path]:
    """Write an upload to a temp file and delete it when the block exits.

    Args:
        upload: The uploaded file.
        prefix: Filename prefix identifying the request mode.
        config: Upload limits and temp location.

    Yields:
        Path of the staged file.

    Raises:
        UploadTooLargeError: If the upload exceeds max_upload_bytes.
        UploadStorageError: If the temp dir cannot be created or written.
    """
    directory = config.temp_dir or Path(tempfile.gettempdir())
    path = temp_path_for(upload.filename, prefix=prefix, directory=directory)

    try:
        try:
            directory.mkdir(parents=True, exist_ok=True)
            written = 0
            async with aiofiles.open(path, "wb") as f:
                while chunk := await upload.read(config.chunk_size):
                    written += len(chunk)
                    if written > config.max_upload_bytes:
                        raise UploadTooLargeError(config.max_upload_bytes)
                    await f.write(chunk)
        except OSError as e:
            raise UploadStorageError(str(e) or type(e).__name__) from e
        logger.debug("Staged %d bytes at %s", written, path)
        yield path
    finally:
        remove_quietly(path)
