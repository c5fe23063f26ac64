"""Next-up resolution for a single series."""

from __future__ import annotations

from loguru import logger

from nextshelf.library import (
    EpisodeQuery,
    LibraryIndex,
    PlaybackStateStore,
    SortField,
    SortOrder,
)
from nextshelf.models import Episode, User
from nextshelf.nextup.models import NEVER_STARTED, PLAYED_NEVER_DATED, NextUpCandidate
from nextshelf.nextup.ordering import sort_aired_order


class SeriesNextUpResolver:
    """Work out which episode of a series a user should watch next."""

    def __init__(
        self,
        library: LibraryIndex,
        playback: PlaybackStateStore,
        display_specials_within_seasons: bool = False,
    ) -> None:
        """Initialize the resolver.

        Args:
            library: Index used to query episodes.
            playback: Store providing per-user watch marks.
            display_specials_within_seasons: Offer specials at their aired
                position between regular episodes.
        """
        self.library = library
        self.playback = playback
        self.display_specials_within_seasons = display_specials_within_seasons

    def get_next_up(
        self,
        series_key: str,
        user: User,
        fields: list[str] | None = None,
        rewatching: bool = False,
    ) -> NextUpCandidate:
        """Rank a series and defer finding its next episode.

        The last watched episode is looked up right away because its play
        date is the candidate's rank. The next episode is only looked up
        when the returned candidate is resolved.

        Args:
            series_key: Series to resolve.
            user: Requesting user.
            fields: Projection hint forwarded to the index.
            rewatching: Walk forward through already watched episodes.

        Returns:
            Candidate ranked by the last watched date, NEVER_STARTED if the
            user never watched the series, or PLAYED_NEVER_DATED if the
            last watched episode has no play date.
        """
        last_query = EpisodeQuery(
            user=user,
            series_key=series_key,
            is_played=True,
            parent_index_not=0,
            # Rewatching follows play history, not episode order
            order_by=[
                (SortField.DATE_PLAYED if rewatching else SortField.SORT_KEY, SortOrder.DESCENDING)
            ],
            limit=1,
        )
        matches = self.library.query_episodes(last_query)
        last_watched = matches[0] if matches else None

        def resolve() -> Episode | None:
            return self._find_next_episode(series_key, user, last_watched, fields, rewatching)

        if last_watched is None:
            return NextUpCandidate(NEVER_STARTED, resolve)

        mark = self.playback.get_watch_mark(user, last_watched)
        return NextUpCandidate(mark.last_played_at or PLAYED_NEVER_DATED, resolve)

    def _find_next_episode(
        self,
        series_key: str,
        user: User,
        last_watched: Episode | None,
        fields: list[str] | None,
        rewatching: bool,
    ) -> Episode | None:
        next_query = EpisodeQuery(
            user=user,
            series_key=series_key,
            order_by=[(SortField.SORT_KEY, SortOrder.ASCENDING)],
            is_played=rewatching,
            is_virtual=False,
            parent_index_not=0,
            min_sort_key=last_watched.sort_key if last_watched else None,
            # When rewatching the first match is the last watched episode itself
            limit=2 if rewatching else 1,
            fields=fields,
        )
        matches = self.library.query_episodes(next_query)
        position = 1 if rewatching else 0
        next_episode = matches[position] if len(matches) > position else None

        if self.display_specials_within_seasons:
            next_episode = self._place_specials(
                series_key, user, last_watched, next_episode, fields, rewatching
            )

        if next_episode is not None:
            mark = self.playback.get_watch_mark(user, next_episode)
            if mark.is_partially_watched:
                logger.debug(
                    "Skipping {} for series {}: already in progress", next_episode.id, series_key
                )
                return None

        return next_episode

    def _place_specials(
        self,
        series_key: str,
        user: User,
        last_watched: Episode | None,
        next_episode: Episode | None,
        fields: list[str] | None,
        rewatching: bool,
    ) -> Episode | None:
        """Let a special that airs right after the last watched episode go first."""
        specials_query = EpisodeQuery(
            user=user,
            series_key=series_key,
            parent_index=0,
            is_played=rewatching,
            is_virtual=False,
            fields=fields,
        )
        considered = [
            ep for ep in self.library.query_episodes(specials_query) if ep.has_season_placement
        ]

        # Specials that aired before the last watched episode must sort ahead of it
        if last_watched is not None:
            considered.append(last_watched)
        if next_episode is not None:
            considered.append(next_episode)

        ordered = sort_aired_order(considered)
        if last_watched is not None:
            ids = [ep.id for ep in ordered]
            ordered = ordered[ids.index(last_watched.id) + 1 :]

        return ordered[0] if ordered else None
