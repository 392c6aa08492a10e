"""Direct stream URL resolution and version query."""

import logging
from typing import Optional

from settings import Settings, get_settings
from ytdlp_wrapper._core import build_selection_args, run_ytdlp
from ytdlp_wrapper._errors import ErrorKind, YtDlpError

logger = logging.getLogger(__name__)


async def resolve_stream_url(url: str, settings: Optional[Settings] = None) -> str:
    """Resolve a source URL to a direct, time-limited media URL.

    Runs yt-dlp in --get-url mode with playlist expansion disabled and waits
    for it to finish. Nothing is cached: every call spawns a new process.

    Args:
        url: Source page URL, passed verbatim to yt-dlp
        settings: Settings to use (defaults to get_settings())

    Returns:
        The direct media URL printed by yt-dlp, stripped of whitespace

    Raises:
        YtDlpError: RESOLUTION on non-zero exit or empty output, LAUNCH or
            TIMEOUT from the process runner
    """
    s = settings or get_settings()
    flags = build_selection_args(s) + ["--get-url", "--no-playlist"]

    stdout, _ = await run_ytdlp(s, flags, url, kind=ErrorKind.RESOLUTION)

    resolved = stdout.strip()
    if not resolved:
        logger.error(f"[Resolve] yt-dlp printed no URL for: {url}")
        raise YtDlpError("yt-dlp returned an empty stream URL", kind=ErrorKind.RESOLUTION)

    logger.info(f"[Resolve] Resolved stream URL for: {url}")
    return resolved


async def get_ytdlp_version(settings: Optional[Settings] = None) -> str:
    """Return the trimmed output of `yt-dlp --version`.

    Raises:
        YtDlpError: VERSION on any failure (launch, timeout, non-zero exit)
    """
    s = settings or get_settings()
    try:
        stdout, _ = await run_ytdlp(s, ["--version"], kind=ErrorKind.VERSION)
    except YtDlpError as e:
        raise YtDlpError(f"Version query failed: {e}", kind=ErrorKind.VERSION) from e

    version = stdout.strip()
    if not version:
        raise YtDlpError("yt-dlp printed no version", kind=ErrorKind.VERSION)
    return version
