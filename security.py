"""Command sanitization for logging yt-dlp invocations."""

import shlex
import urllib.parse
from typing import List

# yt-dlp flags whose following value must never reach the logs
SENSITIVE_FLAGS = frozenset({
    "--password",
    "--video-password",
    "--ap-password",
    "--username",
    "--ap-username",
    "--cookies",
    "--cookies-from-browser",
    "--add-header",
    "--netrc-location",
    "--proxy",
})


def _redact_url_credentials(arg: str) -> str:
    """Replace user:password in an http(s) URL with ***."""
    if not arg.startswith(("http://", "https://")):
        return arg
    try:
        parsed = urllib.parse.urlsplit(arg)
    except ValueError:
        return arg
    if not parsed.username and not parsed.password:
        return arg
    host = parsed.hostname or ""
    if parsed.port:
        host = f"{host}:{parsed.port}"
    return urllib.parse.urlunsplit(parsed._replace(netloc=f"***@{host}"))


def sanitize_command_for_logging(cmd: List[str]) -> str:
    """Render a command for logging with sensitive values redacted.

    Redacts values after sensitive flags (both `--flag value` and
    `--flag=value`) and credentials embedded in URLs. The result is
    shell-quoted (apart from the [REDACTED] markers) so it can be
    copied into a terminal.

    Args:
        cmd: Command as list of strings

    Returns:
        Sanitized command string safe for logging
    """
    sanitized = []
    skip_next = False

    for arg in cmd:
        if skip_next:
            skip_next = False
            sanitized.append("[REDACTED]")
            continue

        if arg in SENSITIVE_FLAGS:
            sanitized.append(shlex.quote(arg))
            skip_next = True
            continue

        for flag in SENSITIVE_FLAGS:
            if arg.startswith(f"{flag}="):
                sanitized.append(f"{flag}=[REDACTED]")
                break
        else:
            sanitized.append(shlex.quote(_redact_url_credentials(arg)))

    return " ".join(sanitized)
