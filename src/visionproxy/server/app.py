"""FastAPI application for the vision proxy."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from visionproxy import __version__
from visionproxy.errors import (
    InternalServerError,
    InvalidRequestError,
    VisionProxyError,
)
from visionproxy.inference import GradioSpaceClient, VisionService
from visionproxy.proxy import MediaProxy
from visionproxy.server.routes import analyze, health, info, media

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from visionproxy.config import VisionProxyConfig
    from visionproxy.inference import InferenceBackend

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


# Form fields that carry uploads; a validation error on one means the client
# sent something other than a file.
UPLOAD_FIELDS = ("image", "video")


def _request_fields(request: Request, exc: VisionProxyError) -> dict[str, object]:
    return {
        "http.method": request.method,
        "http.path": request.url.path,
        "http.status": exc.status_code,
        "error.category": exc.category,
    }


async def handle_proxy_error(request: Request, exc: VisionProxyError) -> JSONResponse:
    """Render any VisionProxyError as a JSON error body."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.details,
            exc_info=exc.__cause__ is not None,
            extra=_request_fields(request, exc),
        )
    else:
        logger.warning(
            "%s %s rejected: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.details,
            extra=_request_fields(request, exc),
        )
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def validation_error(exc: RequestValidationError) -> InvalidRequestError:
    """Convert FastAPI's request validation failure into a 400."""
    fields: list[str] = []
    problems: list[str] = []
    for error in exc.errors():
        # loc[0] is where the value came from (body, query, ...)
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        fields.append(field)
        problems.append(f"{field}: {error.get('msg', 'invalid value')}")
    details = "; ".join(problems) or None
    for field in fields:
        if field in UPLOAD_FIELDS:
            return InvalidRequestError(f"No {field} provided", details)
    return InvalidRequestError("Invalid request", details)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await handle_proxy_error(request, validation_error(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler so clients never see a non-JSON 500."""
    error = InternalServerError(type(exc).__name__)
    logger.error(
        "%s %s crashed: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
        extra=_request_fields(request, error),
    )
    return JSONResponse(error.to_dict(), status_code=error.status_code)


class VisionProxyServer:
    """Main server application.

    Owns the FastAPI app and the collaborators the routes use.
    """

    def __init__(
        self,
        config: "VisionProxyConfig",
        backend: "InferenceBackend | None" = None,
        proxy: MediaProxy | None = None,
    ):
        self._config = config
        self._service = VisionService(
            config=config,
            backend=backend or GradioSpaceClient(config.remote),
        )
        self._proxy = proxy or MediaProxy(config)
        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self._app

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI app."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> "AsyncIterator[None]":
            logger.info(
                "Starting vision proxy for %s (token %s)",
                self._config.remote.space_url,
                "configured" if self._config.remote.token() else "not configured",
            )
            yield
            logger.info("Shutting down vision proxy")

        app = FastAPI(
            title="visionproxy",
            description="Proxy and UI for a remotely hosted segmentation model",
            version=__version__,
            lifespan=lifespan,
        )

        app.state.server = self
        app.state.config = self._config
        app.state.service = self._service
        app.state.proxy = self._proxy

        app.add_exception_handler(VisionProxyError, handle_proxy_error)
        app.add_exception_handler(RequestValidationError, handle_validation_error)
        app.add_exception_handler(Exception, handle_unexpected_error)

        app.include_router(health.router, tags=["health"])
        app.include_router(analyze.router, prefix="/analyze", tags=["analyze"])
        app.include_router(media.router, tags=["proxy"])
        app.include_router(info.router, tags=["info"])

        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

        @app.get("/", include_in_schema=False)
        async def index() -> FileResponse:
            return FileResponse(str(STATIC_DIR / "index.html"))

        return app


def create_app(
    config: "VisionProxyConfig",
    backend: "InferenceBackend | None" = None,
    proxy: MediaProxy | None = None,
) -> FastAPI:
    """Create the FastAPI application."""
    server = VisionProxyServer(config=config, backend=backend, proxy=proxy)
    return server.app
