"""Library index and playback state contracts plus in-memory implementations."""

from nextshelf.library.base import (
    EpisodeQuery,
    LibraryIndex,
    MutableLibraryIndex,
    PlaybackStateStore,
    SortField,
    SortOrder,
    UserDirectory,
)
from nextshelf.library.memory import InMemoryLibrary, InMemoryPlaybackStore
from nextshelf.library.snapshot import (
    LibrarySnapshot,
    WatchMarkRecord,
    load_snapshot,
    save_snapshot,
)

__all__ = [
    # Contracts
    "LibraryIndex",
    "MutableLibraryIndex",
    "PlaybackStateStore",
    "UserDirectory",
    "EpisodeQuery",
    "SortField",
    "SortOrder",
    # In-memory
    "InMemoryLibrary",
    "InMemoryPlaybackStore",
    # Snapshots
    "LibrarySnapshot",
    "WatchMarkRecord",
    "load_snapshot",
    "save_snapshot",
]
