"""JSON snapshots of a library.

A snapshot holds users, items and watch marks so a library exported from
Plex (or written by hand) can be loaded into an ``InMemoryLibrary``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from nextshelf.errors import SnapshotError
from nextshelf.library.memory import InMemoryLibrary, InMemoryPlaybackStore
from nextshelf.models import AnyItem, User, WatchMark

SNAPSHOT_VERSION = 1


class WatchMarkRecord(WatchMark):
    """A watch mark together with the user and item it belongs to."""

    user_id: str
    item_id: str


class LibrarySnapshot(BaseModel):
    """Serializable state of a whole library."""

    version: int = SNAPSHOT_VERSION
    source: str = ""  # e.g. the Plex server name
    created_at: datetime | None = None
    users: list[User] = Field(default_factory=list)
    items: list[AnyItem] = Field(default_factory=list)
    watch_marks: list[WatchMarkRecord] = Field(default_factory=list)

    def to_library(self) -> InMemoryLibrary:
        """Build an in-memory library from this snapshot."""
        playback = InMemoryPlaybackStore()
        for record in self.watch_marks:
            mark = WatchMark.model_validate(record.model_dump(exclude={"user_id", "item_id"}))
            playback.set_watch_mark(record.user_id, record.item_id, mark)
        return InMemoryLibrary(items=self.items, users=self.users, playback=playback)

    @classmethod
    def from_library(cls, library: InMemoryLibrary, source: str = "") -> LibrarySnapshot:
        """Capture the current state of an in-memory library."""
        return cls(
            source=source,
            created_at=datetime.now(UTC),
            users=library.users,
            items=[item.model_dump() for item in library.items],
            watch_marks=[
                WatchMarkRecord(user_id=user_id, item_id=item_id, **mark.model_dump())
                for user_id, item_id, mark in library.playback.items()
            ],
        )


def load_snapshot(path: Path) -> LibrarySnapshot:
    """Load a snapshot from a JSON file.

    Args:
        path: Path to the snapshot file.

    Returns:
        The parsed snapshot.

    Raises:
        SnapshotError: If the file is missing or is not a valid snapshot.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot read {path}: {e}") from e

    try:
        return LibrarySnapshot.model_validate_json(raw)
    except ValidationError as e:
        raise SnapshotError(f"{path} is not a valid library snapshot: {e}") from e


def save_snapshot(snapshot: LibrarySnapshot, path: Path) -> Path:
    """Write a snapshot as JSON.

    Args:
        snapshot: Snapshot to write.
        path: Destination file. Parent directories are created.

    Returns:
        The path written.

    Raises:
        SnapshotError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot write {path}: {e}") from e
    return path
