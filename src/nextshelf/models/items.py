"""Data models for library items."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from nextshelf.models.mixins import EpisodeCodeMixin, SpecialPlacementMixin


class Item(BaseModel):
    """Any media entity known to the library."""

    id: str
    name: str = ""
    kind: str = "item"
    path: str | None = None
    parent_id: str | None = None
    ancestor_ids: list[str] = Field(default_factory=list)  # Every folder above this item
    sort_key: str = ""
    supports_box_set_grouping: bool = False

    def is_under(self, folder_ids: set[str]) -> bool:
        """Check if this item lives under any of the given folders."""
        if self.parent_id in folder_ids:
            return True
        return any(ancestor in folder_ids for ancestor in self.ancestor_ids)


class Folder(Item):
    """A library root or container folder."""

    kind: Literal["folder"] = "folder"


class Video(Item):
    """A playable video."""

    kind: Literal["video"] = "video"
    alternate_version_ids: list[str] = Field(default_factory=list)
    is_virtual: bool = False  # Metadata-only entry with no file behind it


class Movie(Video):
    """A movie. Movies fold into the box sets that contain them."""

    kind: Literal["movie"] = "movie"  # type: ignore[assignment]
    year: int | None = None
    supports_box_set_grouping: bool = True


class Series(Item):
    """A TV series."""

    kind: Literal["series"] = "series"
    series_key: str = ""
    year: int | None = None
    supports_box_set_grouping: bool = True

    @model_validator(mode="after")
    def _default_series_key(self) -> Series:
        if not self.series_key:
            self.series_key = self.id
        return self


class Episode(EpisodeCodeMixin, SpecialPlacementMixin, Video):
    """A TV episode.

    ``parent_index`` is the season number (0 for specials) and ``index`` the
    episode number within it. The ``airs_*`` fields place specials between
    regular episodes.
    """

    kind: Literal["episode"] = "episode"  # type: ignore[assignment]
    series_key: str = ""
    series_id: str | None = None
    series_name: str = ""
    parent_index: int | None = None
    index: int | None = None
    airs_before_season: int | None = None
    airs_after_season: int | None = None
    airs_before_episode: int | None = None

    @model_validator(mode="after")
    def _default_sort_key(self) -> Episode:
        # Zero padding keeps lexicographic order equal to play order
        if not self.sort_key:
            self.sort_key = f"{self.parent_index or 0:03d} - {self.index or 0:04d} - {self.name}"
        return self


class LinkedChild(BaseModel):
    """A reference from a box set to one of its members."""

    item_id: str | None = None
    path: str | None = None

    @model_validator(mode="after")
    def _require_target(self) -> LinkedChild:
        if self.item_id is None and self.path is None:
            raise ValueError("A linked child needs an item_id or a path")
        return self

    @classmethod
    def create(cls, item: Item) -> LinkedChild:
        """Create a link pointing at an item."""
        return cls(item_id=item.id, path=item.path)


class BoxSet(Item):
    """A named collection owning an ordered set of linked children."""

    kind: Literal["boxset"] = "boxset"
    linked_children: list[LinkedChild] = Field(default_factory=list)
    user_ids: list[str] = Field(default_factory=list)  # Empty means visible to everyone
    is_locked: bool = False
    provider_ids: dict[str, str] = Field(default_factory=dict)
    date_created: datetime | None = None

    @field_validator("linked_children")
    @classmethod
    def _drop_duplicate_targets(cls, children: list[LinkedChild]) -> list[LinkedChild]:
        seen: set[str] = set()
        unique = []
        for child in children:
            if child.item_id is not None:
                if child.item_id in seen:
                    continue
                seen.add(child.item_id)
            unique.append(child)
        return unique

    def is_visible_to(self, user_id: str) -> bool:
        """Check if a user may see this collection."""
        return not self.user_ids or user_id in self.user_ids

    def linked_item_ids(self, resolve_path: Callable[[str], str | None]) -> list[str]:
        """Get the member item ids, resolving path-only links.

        Args:
            resolve_path: Maps a file path to an item id, or None if unknown.

        Returns:
            Member ids in link order. Unresolvable links are skipped.
        """
        ids: list[str] = []
        for child in self.linked_children:
            if child.item_id is not None:
                ids.append(child.item_id)
            elif child.path is not None:
                resolved = resolve_path(child.path)
                if resolved is not None:
                    ids.append(resolved)
        return ids

    def contains_item_id(self, item_id: str, resolve_path: Callable[[str], str | None]) -> bool:
        """Check if an item is a member of this collection."""
        return item_id in self.linked_item_ids(resolve_path)


AnyItem = Annotated[
    Folder | Video | Movie | Series | Episode | BoxSet,
    Field(discriminator="kind"),
]
