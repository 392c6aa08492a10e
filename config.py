"""Configuration for the audio stream server.

Startup-only settings are configured here via environment variables.
They are validated and frozen into a Settings instance by settings.py.
"""

import os

# Server settings (startup-only)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3004"))

# Debug mode (enables auto-reload in development)
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

# Root log level (DEBUG, INFO, WARNING, ...)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# yt-dlp executable (name on PATH or absolute path)
YTDLP_PATH = os.getenv("YTDLP_PATH", "yt-dlp")

# Skip TLS certificate verification in yt-dlp (passes --no-check-certificates)
YTDLP_SKIP_TLS_VERIFY = os.getenv("YTDLP_SKIP_TLS_VERIFY", "true").lower() in ("true", "1", "yes")

# Value for --remote-components (required for YouTube JS challenge solving)
YTDLP_REMOTE_COMPONENTS = os.getenv("YTDLP_REMOTE_COMPONENTS", "ejs:github")

# Format selector passed to -f
YTDLP_FORMAT = os.getenv("YTDLP_FORMAT", "bestaudio/best")

# Timeout in seconds for yt-dlp calls that must complete (URL resolution, version)
YTDLP_TIMEOUT = int(os.getenv("YTDLP_TIMEOUT", "120"))

# Maximum number of concurrent yt-dlp processes (0 = unlimited)
YTDLP_MAX_CONCURRENT = int(os.getenv("YTDLP_MAX_CONCURRENT", "0"))

# Proxy streaming
PROXY_CHUNK_SIZE = int(os.getenv("PROXY_CHUNK_SIZE", str(64 * 1024)))
PROXY_CONTENT_TYPE = os.getenv("PROXY_CONTENT_TYPE", "audio/webm")
