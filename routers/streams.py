"""Audio stream endpoints: redirect, proxy and URL lookup."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response, StreamingResponse

from models import StreamUrlResponse
from settings import Settings
from utils import get_app_settings
from ytdlp_wrapper import open_audio_stream, require_url, resolve_stream_url

router = APIRouter(tags=["streams"])
logger = logging.getLogger(__name__)

SOURCE_URL_DESCRIPTION = "Source video URL, passed verbatim to yt-dlp"


@router.get("/stream/direct", status_code=302, response_class=Response)
async def stream_direct(
    url: Optional[str] = Query(None, description=SOURCE_URL_DESCRIPTION),
    s: Settings = Depends(get_app_settings),
):
    """Redirect to the direct audio stream URL.

    The target is time-limited and is resolved again on every request. It is
    sent exactly as yt-dlp printed it, without re-quoting.
    """
    source_url = require_url(url)
    stream_url = await resolve_stream_url(source_url, s)
    return Response(status_code=302, headers={"Location": stream_url})


@router.get("/stream/proxy", response_class=StreamingResponse)
async def stream_proxy(
    url: Optional[str] = Query(None, description=SOURCE_URL_DESCRIPTION),
    s: Settings = Depends(get_app_settings),
):
    """Stream the audio through this server.

    yt-dlp writes the selected format to stdout and the bytes are relayed as
    they arrive. The response has no Content-Length; its duration is bounded
    only by yt-dlp.
    """
    source_url = require_url(url)
    logger.info(f"[Proxy] Request received: url={source_url}")
    stream = await open_audio_stream(source_url, s)
    await stream.prime(s.ytdlp_timeout)

    return StreamingResponse(
        stream.iter_chunks(),
        media_type=s.proxy_content_type,
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/stream-url", response_model=StreamUrlResponse)
async def stream_url(
    url: Optional[str] = Query(None, description=SOURCE_URL_DESCRIPTION),
    s: Settings = Depends(get_app_settings),
):
    """Return the direct audio stream URL together with the original URL."""
    source_url = require_url(url)
    resolved = await resolve_stream_url(source_url, s)
    return StreamUrlResponse(streamUrl=resolved, originalUrl=source_url)
