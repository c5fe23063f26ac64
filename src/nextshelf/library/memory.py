"""In-memory library and playback state.

Executes the ``EpisodeQuery`` contract over plain dictionaries. Used by the
CLI (loaded from a snapshot) and by the tests.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import UTC, datetime

from nextshelf.library.base import (
    EpisodeQuery,
    MutableLibraryIndex,
    PlaybackStateStore,
    SortField,
    SortOrder,
    UserDirectory,
)
from nextshelf.models import BoxSet, Episode, Folder, Item, User, WatchMark

# Sort value for items that were never played
_NEVER_PLAYED = datetime.min.replace(tzinfo=UTC)


class InMemoryPlaybackStore(PlaybackStateStore):
    """Watch marks keyed by (user id, item id)."""

    def __init__(self, marks: dict[tuple[str, str], WatchMark] | None = None) -> None:
        self._marks: dict[tuple[str, str], WatchMark] = dict(marks or {})

    def get_watch_mark(self, user: User, item: Item) -> WatchMark:
        """Get the watch mark for an item, or an empty mark."""
        return self._marks.get((user.id, item.id)) or WatchMark()

    def set_watch_mark(self, user_id: str, item_id: str, mark: WatchMark) -> None:
        """Store the watch mark for an item."""
        self._marks[(user_id, item_id)] = mark

    def items(self) -> list[tuple[str, str, WatchMark]]:
        """Get every stored mark as (user id, item id, mark)."""
        return [(user_id, item_id, mark) for (user_id, item_id), mark in self._marks.items()]


class InMemoryLibrary(MutableLibraryIndex, UserDirectory):
    """A library index backed by dictionaries."""

    def __init__(
        self,
        items: Iterable[Item] = (),
        users: Iterable[User] = (),
        playback: InMemoryPlaybackStore | None = None,
    ) -> None:
        self.playback = playback or InMemoryPlaybackStore()
        self._items: dict[str, Item] = {}
        self._paths: dict[str, str] = {}
        self._users: dict[str, User] = {user.id: user for user in users}
        self._lock = threading.Lock()
        for item in items:
            self.save_item(item)

    @property
    def items(self) -> list[Item]:
        """Get every item in insertion order."""
        return list(self._items.values())

    @property
    def users(self) -> list[User]:
        """Get every user."""
        return list(self._users.values())

    def add_user(self, user: User) -> None:
        """Insert or replace a user."""
        self._users[user.id] = user

    # UserDirectory

    def get_user_by_id(self, user_id: str) -> User | None:
        """Get a user by id."""
        return self._users.get(user_id)

    # MutableLibraryIndex

    def save_item(self, item: Item) -> None:
        """Insert or replace an item."""
        with self._lock:
            previous = self._items.get(item.id)
            if previous is not None and previous.path:
                self._paths.pop(previous.path, None)
            self._items[item.id] = item
            if item.path:
                self._paths[item.path] = item.id

    def get_item_by_id(self, item_id: str) -> Item | None:
        """Get an item by id."""
        return self._items.get(item_id)

    def get_item_by_path(self, path: str) -> Item | None:
        """Get an item by its file path."""
        item_id = self._paths.get(path)
        return self._items.get(item_id) if item_id is not None else None

    def list_collections(self, user: User) -> list[BoxSet]:
        """Get the box sets a user can see."""
        return [
            item
            for item in self._items.values()
            if isinstance(item, BoxSet) and item.is_visible_to(user.id)
        ]

    def get_user_root_folders(self, user: User) -> list[Folder]:
        """Get the top-level folders."""
        return [
            item
            for item in self._items.values()
            if isinstance(item, Folder) and item.parent_id is None
        ]

    def query_episodes(self, query: EpisodeQuery) -> list[Episode]:
        """Run an episode query.

        Sorting is stable, so episodes that tie on every sort field keep
        their insertion order.
        """
        scope = set(query.ancestor_ids) if query.ancestor_ids is not None else None
        episodes = [
            item
            for item in self._items.values()
            if isinstance(item, Episode) and self._matches(item, query, scope)
        ]

        # Apply sort fields last to first so the first field dominates
        for field, order in reversed(query.order_by):
            reverse = order is SortOrder.DESCENDING
            if field is SortField.SORT_KEY:
                episodes.sort(key=lambda ep: ep.sort_key, reverse=reverse)
            else:
                episodes.sort(key=lambda ep: self._date_played(ep, query.user), reverse=reverse)

        if query.group_by_series_key:
            seen: set[str] = set()
            grouped = []
            for ep in episodes:
                if ep.series_key in seen:
                    continue
                seen.add(ep.series_key)
                grouped.append(ep)
            episodes = grouped

        if query.limit is not None:
            episodes = episodes[: query.limit]
        return episodes

    def _date_played(self, episode: Episode, user: User) -> datetime:
        mark = self.playback.get_watch_mark(user, episode)
        return mark.last_played_at or _NEVER_PLAYED

    def _matches(self, episode: Episode, query: EpisodeQuery, scope: set[str] | None) -> bool:
        if query.series_key is not None and episode.series_key != query.series_key:
            return False
        if scope is not None and not episode.is_under(scope):
            return False
        if query.is_virtual is not None and episode.is_virtual != query.is_virtual:
            return False
        if query.parent_index is not None and episode.parent_index != query.parent_index:
            return False
        # Episodes without a season number pass an inequality filter
        if query.parent_index_not is not None and episode.parent_index == query.parent_index_not:
            return False
        if query.min_sort_key is not None and episode.sort_key < query.min_sort_key:
            return False
        if query.is_played is not None:
            mark = self.playback.get_watch_mark(query.user, episode)
            if mark.played != query.is_played:
                return False
        return True
