"""Async wrapper for yt-dlp subprocess execution."""

from ytdlp_wrapper._core import (
    build_command,
    build_selection_args,
    get_process_semaphore,
    reset_process_semaphore,
    run_ytdlp,
)
from ytdlp_wrapper._errors import ErrorKind, YtDlpError, require_url
from ytdlp_wrapper._resolve import get_ytdlp_version, resolve_stream_url
from ytdlp_wrapper._stream import AudioStream, open_audio_stream

__all__ = [
    # _errors
    "ErrorKind",
    "YtDlpError",
    "require_url",
    # _core
    "build_command",
    "build_selection_args",
    "get_process_semaphore",
    "reset_process_semaphore",
    "run_ytdlp",
    # _resolve
    "resolve_stream_url",
    "get_ytdlp_version",
    # _stream
    "AudioStream",
    "open_audio_stream",
]
