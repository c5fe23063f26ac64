"""Aired episode order.

Regular episodes play in (season, episode) order. Specials (season 0) are
slotted between them using their airs-before/after markers:

- ``airs_after_season=N``: after the last episode of season N.
- ``airs_before_season=N`` and ``airs_before_episode=E``: right before S{N}E{E}.
- ``airs_before_season=N`` alone: before the first episode of season N.

``airs_after_season`` wins when both season markers are set.
"""

from __future__ import annotations

from collections.abc import Iterable

from nextshelf.models import Episode

# Position of an entry relative to the regular episodes of its season
_BEFORE_SEASON = 0
_WITHIN_SEASON = 1
_AFTER_SEASON = 2


def aired_order_key(episode: Episode) -> tuple[int, int, int, int, int]:
    """Get a sort key placing an episode in aired order.

    Returns:
        (season, position, episode slot, special offset, tiebreak).
    """
    own_index = episode.index if episode.index is not None else -1

    if not episode.is_special:
        season = episode.parent_index if episode.parent_index is not None else -1
        return (season, _WITHIN_SEASON, own_index, 0, 0)

    if episode.airs_after_season is not None:
        return (episode.airs_after_season, _AFTER_SEASON, 0, 0, own_index)

    if episode.airs_before_season is not None:
        if episode.airs_before_episode is not None:
            # -1 puts the special just ahead of the episode it airs before
            return (
                episode.airs_before_season,
                _WITHIN_SEASON,
                episode.airs_before_episode,
                -1,
                own_index,
            )
        return (episode.airs_before_season, _BEFORE_SEASON, 0, 0, own_index)

    # Unplaced specials go with season 0
    return (0, _WITHIN_SEASON, own_index, 0, 0)


def sort_aired_order(episodes: Iterable[Episode]) -> list[Episode]:
    """Sort episodes into aired order."""
    return sorted(episodes, key=aired_order_key)
