"""Validated application settings built from environment configuration."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

import config

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Settings shared by the app factory and the yt-dlp wrapper."""

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3004, ge=1, le=65535)

    # yt-dlp
    ytdlp_path: str = Field(default="yt-dlp", min_length=1)
    ytdlp_timeout: int = Field(default=120, ge=1, le=3600)
    ytdlp_skip_tls_verify: bool = True
    ytdlp_remote_components: Optional[str] = Field(
        default="ejs:github",
        description="Value for --remote-components. Empty or None omits the flag.",
    )
    ytdlp_format: str = Field(default="bestaudio/best", min_length=1)
    ytdlp_max_concurrent: int = Field(
        default=0,
        ge=0,
        le=1000,
        description="Maximum concurrent yt-dlp processes. 0 disables the limit.",
    )

    # Proxy streaming
    proxy_chunk_size: int = Field(default=64 * 1024, ge=1024, le=16 * 1024 * 1024)
    proxy_content_type: str = Field(default="audio/webm")


# In-memory cached settings
_cached_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get current settings (cached in memory)."""
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = load_settings()
    return _cached_settings


def load_settings() -> Settings:
    """Build settings from the environment values in config."""
    return Settings(
        host=config.HOST,
        port=config.PORT,
        ytdlp_path=config.YTDLP_PATH,
        ytdlp_timeout=config.YTDLP_TIMEOUT,
        ytdlp_skip_tls_verify=config.YTDLP_SKIP_TLS_VERIFY,
        ytdlp_remote_components=config.YTDLP_REMOTE_COMPONENTS or None,
        ytdlp_format=config.YTDLP_FORMAT,
        ytdlp_max_concurrent=config.YTDLP_MAX_CONCURRENT,
        proxy_chunk_size=config.PROXY_CHUNK_SIZE,
        proxy_content_type=config.PROXY_CONTENT_TYPE,
    )


def invalidate_cache() -> None:
    """Force reload settings from the environment on next access."""
    global _cached_settings
    _cached_settings = None
    logger.debug("Settings cache invalidated")
