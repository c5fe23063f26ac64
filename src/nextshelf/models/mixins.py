"""Mixin classes for Pydantic models.

Provides reusable properties for common model patterns.
"""

from __future__ import annotations


class EpisodeCodeMixin:
    """Mixin providing episode_code and is_special properties.

    Requires the model to have parent_index and index fields.

    Example:
        ```python
        class Episode(EpisodeCodeMixin, BaseModel):
            parent_index: int | None
            index: int | None

        ep = Episode(parent_index=1, index=5)
        print(ep.episode_code)  # "S01E05"
        ```
    """

    parent_index: int | None
    index: int | None

    @property
    def episode_code(self) -> str:
        """Get the episode code in S01E05 format."""
        return f"S{self.parent_index or 0:02d}E{self.index or 0:02d}"

    @property
    def is_special(self) -> bool:
        """Check if this is a special (Season 0)."""
        return self.parent_index == 0


class SpecialPlacementMixin:
    """Mixin for specials that declare where they air between seasons.

    Requires airs_before_season, airs_after_season and airs_before_episode.
    """

    airs_before_season: int | None
    airs_after_season: int | None
    airs_before_episode: int | None

    @property
    def has_season_placement(self) -> bool:
        """Check if the special is anchored to a season boundary."""
        return self.airs_before_season is not None or self.airs_after_season is not None
