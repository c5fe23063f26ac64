"""Events emitted when collections change."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, Field

from nextshelf.models import BoxSet, Item


class CollectionCreationOptions(BaseModel):
    """What a new collection should look like."""

    name: str
    item_ids: list[str] = Field(default_factory=list)
    user_ids: list[str] = Field(default_factory=list)
    is_locked: bool = False
    provider_ids: dict[str, str] = Field(default_factory=dict)


class CollectionCreated(BaseModel):
    """A collection was created."""

    collection: BoxSet
    options: CollectionCreationOptions


class ItemsAddedToCollection(BaseModel):
    """Items were linked into a collection."""

    collection: BoxSet
    items: list[Item] = Field(default_factory=list)


class ItemsRemovedFromCollection(BaseModel):
    """Items were unlinked from a collection."""

    collection: BoxSet
    items: list[Item] = Field(default_factory=list)


CollectionEvent = CollectionCreated | ItemsAddedToCollection | ItemsRemovedFromCollection

EventSink = Callable[[CollectionEvent], None]
