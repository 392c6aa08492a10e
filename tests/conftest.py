"""Shared test fixtures for the audio stream server tests."""

import asyncio
import os

# Add project root to path
import sys
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

SOURCE_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
DIRECT_URL = "https://rr1---sn-example.googlevideo.com/videoplayback?expire=1700000000&itag=251&sig=abc"


# =============================================================================
# Mock yt-dlp Subprocess Fixtures
# =============================================================================


class MockProcess:
    """Mock asyncio subprocess for yt-dlp calls that run to completion."""

    def __init__(
        self,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ):
        self.stdout = stdout.encode() if isinstance(stdout, str) else stdout
        self.stderr = stderr.encode() if isinstance(stderr, str) else stderr
        self.returncode = returncode
        self.pid = 4242
        self._killed = False

    async def communicate(self):
        return self.stdout, self.stderr

    async def wait(self):
        return self.returncode

    def kill(self):
        self._killed = True


class MockStreamReader:
    """Stand-in for asyncio.StreamReader that serves pre-defined chunks.

    After the chunks run out it raises `error` (once) if given, then blocks
    on `hold` if given, then reports EOF.
    """

    def __init__(self, chunks=(), error=None, hold=None):
        self._chunks = list(chunks)
        self._error = error
        self._hold = hold
        self.reads = 0

    @property
    def remaining(self) -> int:
        return len(self._chunks)

    async def read(self, n=-1):
        self.reads += 1
        await asyncio.sleep(0)
        if self._chunks:
            return self._chunks.pop(0)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        if self._hold is not None:
            await self._hold.wait()
        return b""


class MockStreamingProcess:
    """Mock `yt-dlp -o -` process with readable stdout/stderr pipes.

    With hold=True the process keeps running (and both pipes stay open)
    until kill() or finish() is called.
    """

    def __init__(
        self,
        stdout_chunks=(),
        stderr_chunks=(),
        returncode: int = 0,
        stdout_error=None,
        hold: bool = False,
    ):
        self.pid = 4242
        self.returncode = None
        self.killed = False
        self._exit_code = returncode
        self._done = asyncio.Event() if hold else None
        self.stdout = MockStreamReader(stdout_chunks, error=stdout_error, hold=self._done)
        self.stderr = MockStreamReader(stderr_chunks, hold=self._done)

    def kill(self):
        self.killed = True
        self.returncode = -9
        if self._done is not None:
            self._done.set()

    def finish(self):
        if self._done is not None:
            self._done.set()

    async def wait(self):
        if self._done is not None and not self.killed:
            await self._done.wait()
        if self.returncode is None:
            self.returncode = self._exit_code
        return self.returncode


# =============================================================================
# Settings and App Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_process_limits():
    """Start every test without a process semaphore left over from another loop."""
    from ytdlp_wrapper import reset_process_semaphore

    reset_process_semaphore()
    yield
    reset_process_semaphore()


@pytest.fixture
def test_settings():
    """Settings for tests (defaults that match a stock deployment)."""
    from settings import Settings

    return Settings(
        ytdlp_path="yt-dlp",
        ytdlp_timeout=30,
        ytdlp_skip_tls_verify=True,
        ytdlp_remote_components="ejs:github",
        ytdlp_format="bestaudio/best",
    )


@pytest.fixture
def app(test_settings):
    """FastAPI app built with the test settings."""
    from server import create_app

    return create_app(test_settings)


@pytest.fixture
def test_client(app):
    """FastAPI TestClient (runs the lifespan)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def mock_ytdlp_resolve():
    """Mock yt-dlp printing a direct stream URL and exiting 0."""
    mock = AsyncMock(side_effect=lambda *args, **kwargs: MockProcess(stdout=f"{DIRECT_URL}\n"))
    with patch("asyncio.create_subprocess_exec", mock):
        yield mock


@pytest.fixture
def mock_ytdlp_error():
    """Mock yt-dlp subprocess that fails with a diagnostic message."""
    mock = AsyncMock(
        side_effect=lambda *args, **kwargs: MockProcess(
            stdout="",
            stderr="ERROR: [youtube] dQw4w9WgXcQ: Video unavailable",
            returncode=1,
        )
    )
    with patch("asyncio.create_subprocess_exec", mock):
        yield mock


@pytest.fixture
def mock_ytdlp_missing():
    """Mock yt-dlp executable that is not installed."""
    mock = AsyncMock(side_effect=FileNotFoundError(2, "No such file or directory", "yt-dlp"))
    with patch("asyncio.create_subprocess_exec", mock):
        yield mock
