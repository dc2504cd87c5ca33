"""Error taxonomy for the proxy.

Every failure a request can hit is expressed as a VisionProxyError subclass.
The server renders them as ``{"error", "details", "category"}`` with the
class's status code. Framework validation errors become InvalidRequestError
and anything unexpected becomes InternalServerError, so every failure reaches
the client as the same JSON shape.

Categories:
- invalid_request: missing or malformed client input (4xx)
- remote_error: the inference endpoint failed or is unreachable
- quota_exceeded: the remote GPU scheduler refused the job, retry later
- empty_result: the remote call succeeded but returned no usable media
- proxy_error: fetching a remote result file failed
- storage_error: an upload could not be staged on local disk
- internal_error: an unexpected failure inside the proxy itself
"""

from __future__ import annotations

QUOTA_MARKERS = ("quota", "zerogpu")


class VisionProxyError(Exception):
    """Base class for errors surfaced to the client as JSON."""

    status_code: int = 500
    category: str = "remote_error"

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, str]:
        body = {"error": self.message, "category": self.category}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidRequestError(VisionProxyError):
    """Missing file or malformed form parameter."""

    status_code = 400
    category = "invalid_request"


class UploadTooLargeError(InvalidRequestError):
    status_code = 413

    def __init__(self, limit: int) -> None:
        super().__init__(
            "Upload too large",
            f"Uploads are limited to {limit} bytes",
        )
        self.limit = limit


class RemoteInferenceError(VisionProxyError):
    """The remote model endpoint failed."""

    status_code = 500
    category = "remote_error"


class QuotaExceededError(RemoteInferenceError):
    """The remote GPU scheduler rejected the job for quota reasons."""

    status_code = 429
    category = "quota_exceeded"

    def __init__(self, details: str | None = None) -> None:
        super().__init__(
            "GPU quota exceeded",
            details
            or "The remote GPU quota has been exceeded. Please try again later.",
        )


class EmptyResultError(VisionProxyError):
    """The remote call returned nothing we can render."""

    status_code = 500
    category = "empty_result"

    def __init__(self, details: str | None = None) -> None:
        super().__init__("No result returned", details)


class ProxyFetchError(VisionProxyError):
    status_code = 500
    category = "proxy_error"

    def __init__(self, details: str | None = None) -> None:
        super().__init__("Failed to fetch image", details)


class UploadStorageError(VisionProxyError):
    """The temp dir could not hold the upload (missing, unwritable, full)."""

    status_code = 500
    category = "storage_error"

    def __init__(self, details: str | None = None) -> None:
        super().__init__("Failed to store upload", details)


class InternalServerError(VisionProxyError):
    status_code = 500
    category = "internal_error"

    def __init__(self, details: str | None = None) -> None:
        super().__init__("Internal server error", details)


def _error_text(exc: BaseException) -> str:
    text = str(exc).strip()
    if not text:
        text = type(exc).__name__
    return text


def is_quota_error(exc: BaseException) -> bool:
    """Check whether a remote exception signals a GPU quota/rate limit."""
    haystack = " ".join(
        part
        for part in (str(exc), str(getattr(exc, "title", "") or ""))
        if part
    ).lower()
    return any(marker in haystack for marker in QUOTA_MARKERS)


def classify_remote_error(
    exc: BaseException,
    failure: str = "Failed to process image",
) -> VisionProxyError:
    """Convert an exception raised by the remote client into our taxonomy.

    Args:
        exc: Exception raised while talking to the remote endpoint.
        failure: Human-readable headline for generic failures.

    Returns:
        The matching VisionProxyError. Errors that are already part of the
        taxonomy are returned unchanged.
    """
    if isinstance(exc, VisionProxyError):
        return exc
    if is_quota_error(exc):
        return QuotaExceededError(_error_text(exc))
    return RemoteInferenceError(failure, _error_text(exc))
