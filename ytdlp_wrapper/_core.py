"""Core yt-dlp execution: argument building, process launch and run_ytdlp()."""

import asyncio
import contextlib
import logging
from typing import List, Optional, Tuple

from security import sanitize_command_for_logging
from settings import Settings
from ytdlp_wrapper._errors import ErrorKind, YtDlpError

logger = logging.getLogger(__name__)

_process_semaphore: Optional[asyncio.Semaphore] = None
_process_semaphore_size = 0


def build_selection_args(settings: Settings) -> List[str]:
    """Flags shared by URL resolution and proxy streaming.

    Covers certificate checking, the remote components directive and the
    format selector.
    """
    args = []
    if settings.ytdlp_skip_tls_verify:
        args.append("--no-check-certificates")
    if settings.ytdlp_remote_components:
        args.extend(["--remote-components", settings.ytdlp_remote_components])
    args.extend(["-f", settings.ytdlp_format])
    return args


def build_command(settings: Settings, flags: List[str], url: Optional[str] = None) -> List[str]:
    """Build the full command line.

    The URL goes after '--' so yt-dlp never interprets it as an option, even
    when it starts with '-'.
    """
    cmd = [settings.ytdlp_path, *flags]
    if url is not None:
        cmd.extend(["--", url])
    return cmd


def get_process_semaphore(settings: Settings) -> Optional[asyncio.Semaphore]:
    """Get the process semaphore, lazily initialized from settings.

    Returns None when the concurrency limit is disabled.
    """
    global _process_semaphore, _process_semaphore_size
    if settings.ytdlp_max_concurrent <= 0:
        return None
    if _process_semaphore is None or _process_semaphore_size != settings.ytdlp_max_concurrent:
        _process_semaphore = asyncio.Semaphore(settings.ytdlp_max_concurrent)
        _process_semaphore_size = settings.ytdlp_max_concurrent
    return _process_semaphore


def reset_process_semaphore() -> None:
    """Drop the process semaphore (used when settings change and in tests)."""
    global _process_semaphore, _process_semaphore_size
    _process_semaphore = None
    _process_semaphore_size = 0


@contextlib.asynccontextmanager
async def process_slot(settings: Settings):
    """Hold one yt-dlp process slot for the duration of the block."""
    semaphore = get_process_semaphore(settings)
    if semaphore is None:
        yield
        return
    async with semaphore:
        yield


async def spawn_ytdlp(cmd: List[str]) -> asyncio.subprocess.Process:
    """Start yt-dlp with piped stdout/stderr.

    Raises:
        YtDlpError: (LAUNCH) if the executable cannot be started
    """
    logger.debug(f"Starting yt-dlp: {sanitize_command_for_logging(cmd)}")
    try:
        return await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        raise YtDlpError(f"Failed to start {cmd[0]}: {e}", kind=ErrorKind.LAUNCH) from e


async def kill_process(proc: asyncio.subprocess.Process) -> None:
    """Kill a process if it is still running and reap it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


async def run_ytdlp(
    settings: Settings,
    flags: List[str],
    url: Optional[str] = None,
    timeout: Optional[int] = None,
    kind: ErrorKind = ErrorKind.RESOLUTION,
) -> Tuple[str, str]:
    """Run yt-dlp to completion and return decoded (stdout, stderr).

    Args:
        settings: Settings providing the executable and defaults
        flags: yt-dlp flags (everything before the URL)
        url: Optional source URL, passed after '--'
        timeout: Timeout in seconds (defaults to settings.ytdlp_timeout)
        kind: Error kind raised when yt-dlp exits non-zero

    Raises:
        YtDlpError: LAUNCH if the process cannot start, TIMEOUT if it runs
            longer than the timeout, otherwise `kind` on non-zero exit
    """
    timeout = timeout or settings.ytdlp_timeout
    cmd = build_command(settings, flags, url)

    async with process_slot(settings):
        proc = await spawn_ytdlp(cmd)
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await kill_process(proc)
            raise YtDlpError(f"yt-dlp timed out after {timeout} seconds", kind=ErrorKind.TIMEOUT)

    out = stdout.decode(errors="replace") if stdout else ""
    err = stderr.decode(errors="replace") if stderr else ""

    if proc.returncode != 0:
        logger.error(f"yt-dlp failed (exit code {proc.returncode}) for URL: {url}")
        logger.error(f"yt-dlp stderr: {err.strip() or 'Unknown error'}")
        raise YtDlpError(f"yt-dlp exited with code {proc.returncode}", kind=kind)

    logger.debug(f"yt-dlp succeeded for URL: {url}")
    return out, err
