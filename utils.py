"""Utility functions for the audio stream server."""

from fastapi import Request

from settings import Settings, get_settings


def get_app_settings(request: Request) -> Settings:
    """Get the Settings instance the app was created with.

    Falls back to the cached environment settings for apps that were not
    built by server.create_app().
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return get_settings()
    return settings
