"""Next-up aggregation across many series."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, time
from itertools import islice

from loguru import logger

from nextshelf.errors import InvalidArgumentError
from nextshelf.library import (
    EpisodeQuery,
    LibraryIndex,
    PlaybackStateStore,
    SortField,
    SortOrder,
    UserDirectory,
)
from nextshelf.models import Episode, Item, Series, User
from nextshelf.nextup.models import NextUpCandidate, NextUpQuery, NextUpResult
from nextshelf.nextup.resolver import SeriesNextUpResolver


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


class NextUpService:
    """Build the "continue watching" list for a user."""

    def __init__(
        self,
        library: LibraryIndex,
        playback: PlaybackStateStore,
        users: UserDirectory,
        display_specials_within_seasons: bool = False,
    ) -> None:
        """Initialize the service.

        Args:
            library: Index used to query episodes and folders.
            playback: Store providing per-user watch marks.
            users: Directory used to look up the requesting user.
            display_specials_within_seasons: Offer specials at their aired
                position between regular episodes.
        """
        self.library = library
        self.users = users
        self.resolver = SeriesNextUpResolver(
            library,
            playback,
            display_specials_within_seasons=display_specials_within_seasons,
        )

    def resolve_next_up(
        self,
        query: NextUpQuery,
        scope_folders: Sequence[Item] | None = None,
    ) -> NextUpResult:
        """Get a page of next-up episodes.

        Args:
            query: The request.
            scope_folders: Folders to derive series from. If None, uses the
                query's parent folder or the user's root folders.

        Returns:
            The requested page plus the total count when enabled.

        Raises:
            InvalidArgumentError: If the user is unknown.
        """
        user = self._get_user(query.user_id)

        series_key = self._get_series_key(query.series_id)
        if series_key is not None:
            return self._page(self.get_next_up_episodes(query, user, [series_key]), query)

        if scope_folders is None:
            scope_folders = self._get_scope_folders(query, user)

        series_keys = self._get_series_keys(user, scope_folders)
        logger.debug(
            "Resolving next up for {} series across {} folders",
            len(series_keys),
            len(scope_folders),
        )
        return self._page(self.get_next_up_episodes(query, user, series_keys), query)

    def get_next_up_episodes(
        self,
        query: NextUpQuery,
        user: User,
        series_keys: Sequence[str],
    ) -> Iterator[Episode]:
        """Lazily yield next-up episodes for the given series, in rank order.

        A series only has its next episode looked up once it passes the
        visibility filter, and only when the iterator reaches it.
        """
        candidates: Iterable[NextUpCandidate] = [
            self.resolver.get_next_up(key, user, query.fields, rewatching=False)
            for key in series_keys
        ]

        if query.enable_rewatching:
            rewatch_candidates = [
                self.resolver.get_next_up(key, user, query.fields, rewatching=True)
                for key in series_keys
            ]
            candidates = sorted(
                [*candidates, *rewatch_candidates],
                key=lambda c: c.last_watched_at,
                reverse=True,
            )

        for candidate in self._visible(candidates, query):
            episode = candidate.resolve()
            if episode is not None:
                yield episode

    def _visible(
        self, candidates: Iterable[NextUpCandidate], query: NextUpQuery
    ) -> Iterator[NextUpCandidate]:
        """Apply the first-episode rules in candidate order.

        Never-started series are dropped once any started series has been
        kept, so a feed of only fresh series is not returned empty. Which
        never-started series survive therefore depends on candidate order.
        """
        any_found = False
        for candidate in candidates:
            if query.disable_first_episode:
                if not candidate.is_never_started:
                    yield candidate
                continue

            if query.is_series_scoped or (
                not candidate.is_never_started
                and _start_of_day(candidate.last_watched_at) >= query.next_up_date_cutoff
            ):
                any_found = True
                yield candidate
            elif not any_found and candidate.is_never_started:
                yield candidate

    def _page(self, episodes: Iterator[Episode], query: NextUpQuery) -> NextUpResult:
        total: int | None = None
        if query.enable_total_record_count:
            resolved = list(episodes)
            total = len(resolved)
            episodes = iter(resolved)

        start = query.start_index or 0
        stop = start + query.limit if query.limit is not None else None
        return NextUpResult(
            items=list(islice(episodes, start, stop)),
            total_record_count=total,
            start_index=query.start_index,
        )

    def _get_user(self, user_id: str) -> User:
        user = self.users.get_user_by_id(user_id)
        if user is None:
            raise InvalidArgumentError(f"User not found: {user_id}")
        return user

    def _get_series_key(self, series_id: str | None) -> str | None:
        if not series_id:
            return None
        series = self.library.get_item_by_id(series_id)
        if isinstance(series, Series):
            return series.series_key
        return None

    def _get_scope_folders(self, query: NextUpQuery, user: User) -> list[Item]:
        if query.parent_id is not None:
            parent = self.library.get_item_by_id(query.parent_id)
            return [parent] if parent is not None else []

        excluded = set(user.latest_item_excludes)
        return [
            folder
            for folder in self.library.get_user_root_folders(user)
            if folder.id not in excluded
        ]

    def _get_series_keys(self, user: User, scope_folders: Sequence[Item]) -> list[str]:
        if not scope_folders:
            return []

        # Most recently played episode per series, newest first
        latest = self.library.query_episodes(
            EpisodeQuery(
                user=user,
                ancestor_ids=[folder.id for folder in scope_folders],
                order_by=[(SortField.DATE_PLAYED, SortOrder.DESCENDING)],
                group_by_series_key=True,
                fields=["series_key"],
            )
        )
        return [ep.series_key for ep in latest if ep.series_key]
