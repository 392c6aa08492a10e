"""API descriptor, health and yt-dlp version endpoints."""

import logging

from fastapi import APIRouter, Depends

from models import HealthResponse, IndexResponse, VersionResponse
from settings import Settings
from utils import get_app_settings
from ytdlp_wrapper import get_ytdlp_version

router = APIRouter(tags=["info"])
logger = logging.getLogger(__name__)

# Shown by GET / and logged at startup
ENDPOINTS = {
    "/": "API information",
    "/stream/proxy?url=<video_url>": "Proxy the audio stream through this server",
    "/stream/direct?url=<video_url>": "Redirect to the direct audio stream URL",
    "/stream-url?url=<video_url>": "Return the direct audio stream URL as JSON",
    "/version": "yt-dlp version",
}


@router.get("/", response_model=IndexResponse)
async def index():
    """Static descriptor of the available endpoints."""
    return IndexResponse(message="Audio Streaming API", endpoints=ENDPOINTS)


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse()


@router.get("/version", response_model=VersionResponse)
async def version(s: Settings = Depends(get_app_settings)):
    """Return the version reported by `yt-dlp --version`."""
    return VersionResponse(version=await get_ytdlp_version(s))
