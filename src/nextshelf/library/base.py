"""Contracts for the library collaborators.

The next-up and box-set engines never touch storage directly. They ask a
``LibraryIndex`` for items, a ``PlaybackStateStore`` for per-user watch
state and a ``UserDirectory`` for user records. Implementations live in
``nextshelf.library.memory``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel, Field

from nextshelf.models import BoxSet, Episode, Folder, Item, User, WatchMark


class SortField(StrEnum):
    """Fields episodes can be ordered by."""

    SORT_KEY = "sort_key"
    DATE_PLAYED = "date_played"


class SortOrder(StrEnum):
    """Sort direction."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


class EpisodeQuery(BaseModel):
    """Filter for ``LibraryIndex.query_episodes``.

    Every criterion left at None is not applied. Played state and date played
    are evaluated for ``user``.
    """

    user: User
    series_key: str | None = None
    ancestor_ids: list[str] | None = None
    order_by: list[tuple[SortField, SortOrder]] = Field(default_factory=list)
    is_played: bool | None = None
    is_virtual: bool | None = None
    parent_index: int | None = None
    parent_index_not: int | None = None
    min_sort_key: str | None = None  # Inclusive lower bound
    limit: int | None = None
    group_by_series_key: bool = False
    fields: list[str] | None = None  # Projection hint for backends that support it


class LibraryIndex(ABC):
    """Read access to library items."""

    @abstractmethod
    def query_episodes(self, query: EpisodeQuery) -> list[Episode]:
        """Get episodes matching a query, in query order."""
        pass

    @abstractmethod
    def get_item_by_id(self, item_id: str) -> Item | None:
        """Get an item by id, or None if unknown."""
        pass

    @abstractmethod
    def get_item_by_path(self, path: str) -> Item | None:
        """Get an item by file path, or None if unknown."""
        pass

    @abstractmethod
    def list_collections(self, user: User) -> list[BoxSet]:
        """Get every box set visible to a user."""
        pass

    @abstractmethod
    def get_user_root_folders(self, user: User) -> list[Folder]:
        """Get the top-level library folders a user can browse."""
        pass


class MutableLibraryIndex(LibraryIndex):
    """A library index that can store items."""

    @abstractmethod
    def save_item(self, item: Item) -> None:
        """Insert or replace an item."""
        pass


class PlaybackStateStore(ABC):
    """Per-user, per-item playback state."""

    @abstractmethod
    def get_watch_mark(self, user: User, item: Item) -> WatchMark:
        """Get the watch mark for an item. Unwatched items get an empty mark."""
        pass


class UserDirectory(ABC):
    """Lookup of library users."""

    @abstractmethod
    def get_user_by_id(self, user_id: str) -> User | None:
        """Get a user by id, or None if unknown."""
        pass
