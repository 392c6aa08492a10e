"""Proxy streaming: relay yt-dlp stdout while draining stderr."""

import asyncio
import logging
from typing import AsyncIterator, Optional, Set

from settings import Settings, get_settings
from ytdlp_wrapper._core import build_command, build_selection_args, get_process_semaphore, spawn_ytdlp
from ytdlp_wrapper._errors import ErrorKind, YtDlpError

logger = logging.getLogger(__name__)

STDERR_CHUNK_SIZE = 4096

# Reaper tasks for killed processes; referenced here so they are not garbage collected
_reaper_tasks: Set[asyncio.Task] = set()


class AudioStream:
    """A running `yt-dlp -o -` process whose stdout is relayed chunk by chunk.

    The stderr drain task starts as soon as the stream is created and runs
    until yt-dlp closes stderr, independent of how fast stdout is consumed.
    Otherwise a chatty yt-dlp would fill the pipe buffer and stall.
    """

    def __init__(
        self,
        proc: asyncio.subprocess.Process,
        url: str,
        chunk_size: int,
        semaphore: Optional[asyncio.Semaphore] = None,
    ):
        self.url = url
        self._proc = proc
        self._chunk_size = chunk_size
        self._semaphore = semaphore
        self._released = False
        self.bytes_sent = 0
        self._pending = b""
        self._stderr_task = asyncio.create_task(self._drain_stderr())

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    async def _drain_stderr(self) -> None:
        while True:
            try:
                chunk = await self._proc.stderr.read(STDERR_CHUNK_SIZE)
            except (OSError, ValueError) as e:
                logger.warning(f"[Proxy] Error reading yt-dlp stderr: {e}")
                return
            if not chunk:
                return
            text = chunk.decode(errors="replace").strip()
            if text:
                logger.info(f"[Proxy] yt-dlp: {text}")

    async def prime(self, timeout: int) -> None:
        """Wait for the first stdout chunk before any response headers are sent.

        Failures here can still become a 500: yt-dlp exiting non-zero without
        output, a read error, or no output within `timeout` seconds. The
        process is released before raising, and also when the wait is
        cancelled (client gone before the first byte).

        Raises:
            YtDlpError: STREAM or TIMEOUT
        """
        try:
            self._pending = await self._read_first_chunk(timeout)
        except asyncio.CancelledError:
            self.release()
            raise

    async def _read_first_chunk(self, timeout: int) -> bytes:
        try:
            chunk = await asyncio.wait_for(self._proc.stdout.read(self._chunk_size), timeout=timeout)
        except asyncio.TimeoutError:
            self.release()
            raise YtDlpError(f"No output from yt-dlp within {timeout} seconds", kind=ErrorKind.TIMEOUT)
        except (OSError, ValueError) as e:
            self.release()
            raise YtDlpError(f"Error reading yt-dlp output: {e}", kind=ErrorKind.STREAM) from e

        if not chunk:
            await self._proc.wait()
            await self._stderr_task
            if self._proc.returncode != 0:
                self.release()
                raise YtDlpError(
                    f"yt-dlp exited with code {self._proc.returncode} before producing output",
                    kind=ErrorKind.STREAM,
                )
        return chunk

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield stdout chunks until EOF.

        Read errors are logged and end the iteration. Once response headers
        are sent the status can no longer change, so the client just sees a
        truncated body.
        """
        try:
            if self._pending:
                chunk, self._pending = self._pending, b""
                self.bytes_sent += len(chunk)
                yield chunk

            while True:
                chunk = await self._proc.stdout.read(self._chunk_size)
                if not chunk:
                    break
                self.bytes_sent += len(chunk)
                yield chunk

            await self._proc.wait()
            await self._stderr_task
            if self._proc.returncode == 0:
                logger.info(f"[Proxy] Stream complete: {self.bytes_sent} bytes for {self.url}")
            else:
                logger.error(
                    f"[Proxy] yt-dlp exited with code {self._proc.returncode} "
                    f"after {self.bytes_sent} bytes for {self.url}"
                )
        except (OSError, ValueError) as e:
            logger.error(f"[Proxy] Streaming error after {self.bytes_sent} bytes: {e}")
        finally:
            self.release()

    def release(self) -> None:
        """Kill yt-dlp if it is still running and free the process slot.

        Synchronous so it also completes when the relay was cancelled by a
        client disconnect. Reaping happens in a background task.
        """
        if self._released:
            return
        self._released = True

        if self._proc.returncode is None:
            try:
                self._proc.kill()
                logger.info(f"[Proxy] Killed yt-dlp after {self.bytes_sent} bytes for {self.url}")
            except ProcessLookupError:
                pass
            task = asyncio.get_running_loop().create_task(self._reap())
            _reaper_tasks.add(task)
            task.add_done_callback(_reaper_tasks.discard)

        if self._semaphore is not None:
            self._semaphore.release()

    async def _reap(self) -> None:
        await self._proc.wait()
        await self._stderr_task
        logger.debug(f"[Proxy] Reaped yt-dlp (exit code {self._proc.returncode})")


async def open_audio_stream(url: str, settings: Optional[Settings] = None) -> AudioStream:
    """Start yt-dlp writing the selected audio format to stdout.

    Does not wait for the process. The caller must consume
    AudioStream.iter_chunks() (or call release()) to free the process.

    Raises:
        YtDlpError: LAUNCH if yt-dlp cannot be started
    """
    s = settings or get_settings()
    cmd = build_command(s, build_selection_args(s) + ["-o", "-"], url)

    semaphore = get_process_semaphore(s)
    if semaphore is not None:
        await semaphore.acquire()

    try:
        proc = await spawn_ytdlp(cmd)
    except YtDlpError:
        if semaphore is not None:
            semaphore.release()
        raise

    logger.info(f"[Proxy] Started yt-dlp (pid {proc.pid}) for: {url}")
    return AudioStream(proc, url, s.proxy_chunk_size, semaphore)
