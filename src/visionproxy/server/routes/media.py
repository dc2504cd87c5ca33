"""Media proxy route."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from visionproxy.proxy import MediaProxy

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/proxy-image")
async def proxy_image(request: Request, url: str | None = None) -> StreamingResponse:
    """Stream a remote result file fetched with the server's credential."""
    proxy: MediaProxy = request.app.state.proxy
    media = await proxy.open(url)
    return StreamingResponse(
        media.iter_bytes(),
        media_type=media.content_type,
        headers={"Cache-Control": request.app.state.config.proxy.cache_control},
        background=BackgroundTask(media.aclose),
    )
