"""API response models."""

from typing import Dict

from pydantic import BaseModel


class IndexResponse(BaseModel):
    """Static API descriptor returned by GET /."""

    status: str = "ok"
    message: str
    endpoints: Dict[str, str]


class HealthResponse(BaseModel):
    status: str = "ok"


class StreamUrlResponse(BaseModel):
    """Resolved direct media URL alongside the URL it was resolved from."""

    streamUrl: str
    originalUrl: str


class VersionResponse(BaseModel):
    version: str


class ErrorResponse(BaseModel):
    """Error body. Only ever contains a fixed, generic message."""

    error: str
