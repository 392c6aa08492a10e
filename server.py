"""Audio Stream Server - audio extraction API powered by yt-dlp."""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

import config
from models import ErrorResponse
from routers import info, streams
from settings import Settings, get_settings
from ytdlp_wrapper import ErrorKind, YtDlpError, reset_process_semaphore

logger = logging.getLogger(__name__)

# Error kind -> (status code, public message). Internal detail stays in the logs.
ERROR_RESPONSES = {
    ErrorKind.VALIDATION: (400, "URL parameter is required"),
    ErrorKind.RESOLUTION: (500, "Internal server error"),
    ErrorKind.LAUNCH: (500, "Internal server error"),
    ErrorKind.TIMEOUT: (500, "Internal server error"),
    ErrorKind.STREAM: (500, "Internal server error"),
    ErrorKind.VERSION: (500, "Failed to get version"),
}


def configure_logging() -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    s: Settings = app.state.settings
    logger.info(f"Server is running on http://{s.host}:{s.port}")
    logger.info("Endpoints:")
    for path, description in info.ENDPOINTS.items():
        logger.info(f"   GET {path:<32} - {description}")
    if s.ytdlp_max_concurrent:
        logger.info(f"yt-dlp concurrency limited to {s.ytdlp_max_concurrent} processes")
    yield
    # Shutdown: drop the semaphore bound to this event loop
    reset_process_semaphore()


class AllowAllOriginsMiddleware:
    """Add Access-Control-Allow-Origin: * to every HTTP response.

    CORSMiddleware only emits the header when the request carries an Origin.
    Written as plain ASGI so proxy streams and client disconnects pass
    through untouched.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_origin(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.setdefault("Access-Control-Allow-Origin", "*")
            await send(message)

        await self.app(scope, receive, send_with_origin)


def configure_cors(app: FastAPI) -> None:
    """Allow every origin, method and header on every response.

    Credentials are disabled because a wildcard origin cannot be combined
    with them.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AllowAllOriginsMiddleware)


async def ytdlp_error_handler(request: Request, exc: YtDlpError) -> JSONResponse:
    """Convert a YtDlpError into the fixed response for its kind."""
    status_code, message = ERROR_RESPONSES.get(exc.kind, (500, "Internal server error"))
    if exc.kind is not ErrorKind.VALIDATION:
        logger.error(f"[{exc.kind.value}] {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: never leak exception text to the client."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error="Internal server error").model_dump())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to serve with (defaults to get_settings())
    """
    s = settings or get_settings()

    app = FastAPI(
        title="Audio Stream Server",
        description="Audio extraction API for video URLs, powered by yt-dlp",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = s

    configure_cors(app)
    app.add_exception_handler(YtDlpError, ytdlp_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(info.router)
    app.include_router(streams.router)
    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("server:app", host=s.host, port=s.port, reload=config.DEBUG)
