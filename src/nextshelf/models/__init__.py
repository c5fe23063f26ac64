"""Shared data models."""

from nextshelf.models.items import (
    AnyItem,
    BoxSet,
    Episode,
    Folder,
    Item,
    LinkedChild,
    Movie,
    Series,
    Video,
)
from nextshelf.models.mixins import EpisodeCodeMixin, SpecialPlacementMixin
from nextshelf.models.user_data import TICKS_PER_MILLISECOND, User, WatchMark

__all__ = [
    # Library items
    "AnyItem",
    "Item",
    "Folder",
    "Video",
    "Movie",
    "Series",
    "Episode",
    "BoxSet",
    "LinkedChild",
    # Users
    "User",
    "WatchMark",
    "TICKS_PER_MILLISECOND",
    # Mixins
    "EpisodeCodeMixin",
    "SpecialPlacementMixin",
]
