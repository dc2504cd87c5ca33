"""Remote endpoint diagnostics."""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from visionproxy.errors import VisionProxyError
from visionproxy.inference import VisionService

router = APIRouter()
logger = logging.getLogger(__name__)

DESCRIPTION = "Segment Anything vision API"


@router.get("/info", response_model=None)
async def space_info(request: Request) -> dict[str, Any] | JSONResponse:
    """Describe the remote Space's API.

    Failures still report which Space was tried so misconfiguration is easy
    to spot.
    """
    service: VisionService = request.app.state.service
    try:
        info = await service.describe()
    except VisionProxyError as e:
        logger.error(
            "Failed to describe %s: %s", service.config.remote.space_url, e.details
        )
        body: dict[str, Any] = {"success": False, **e.to_dict()}
        body["spaceUrl"] = service.config.remote.space_url
        return JSONResponse(body, status_code=e.status_code)

    return {
        "success": True,
        "spaceUrl": info.space_url,
        "spaceName": info.space_name,
        "apiInfo": info.api_info,
        "endpoints": info.endpoints,
        "description": DESCRIPTION,
    }
