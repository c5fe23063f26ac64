"""Error types shared by the next-up and box-set engines.

The core raises exactly one error class itself (``InvalidArgumentError``).
Failures of the library index or playback store propagate unchanged.
"""

from __future__ import annotations


class NextShelfError(Exception):
    """Base exception for NextShelf errors."""

    pass


class InvalidArgumentError(NextShelfError, ValueError):
    """A caller passed an identity the library does not know.

    Raised before any side effect. Never retried.
    """

    pass


class SnapshotError(NextShelfError):
    """A library snapshot could not be read or parsed."""

    pass


def get_friendly_message(error: Exception) -> str:
    """Turn an exception into a one-line message suitable for the console.

    Args:
        error: The exception to describe.

    Returns:
        A short human-readable message.
    """
    # Imported lazily so the core does not depend on plexapi being importable
    from nextshelf.plex import PlexAuthError, PlexConnectionError, PlexError

    if isinstance(error, InvalidArgumentError):
        return f"Invalid request: {error}"
    if isinstance(error, SnapshotError):
        return f"Library snapshot error: {error}"
    if isinstance(error, PlexAuthError):
        return f"Plex rejected the credentials: {error}"
    if isinstance(error, PlexConnectionError):
        return f"Could not reach the Plex server: {error}"
    if isinstance(error, PlexError):
        return f"Plex error: {error}"
    return str(error) or type(error).__name__
