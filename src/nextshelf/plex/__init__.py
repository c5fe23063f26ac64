"""Plex Media Server integration."""

from nextshelf.plex.client import (
    PlexAuthError,
    PlexClient,
    PlexConnectionError,
    PlexError,
    PlexNotFoundError,
)
from nextshelf.plex.models import PlexLibrary

__all__ = [
    "PlexClient",
    "PlexError",
    "PlexAuthError",
    "PlexConnectionError",
    "PlexNotFoundError",
    "PlexLibrary",
]
