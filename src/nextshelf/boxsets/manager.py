"""Collection (box set) management."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TypeVar

from loguru import logger

from nextshelf.boxsets.collapser import CollectionCollapser
from nextshelf.boxsets.events import (
    CollectionCreated,
    CollectionCreationOptions,
    EventSink,
    ItemsAddedToCollection,
    ItemsRemovedFromCollection,
)
from nextshelf.errors import InvalidArgumentError
from nextshelf.library import MutableLibraryIndex
from nextshelf.models import BoxSet, Folder, Item, LinkedChild, User

COLLECTIONS_FOLDER_ID = "collections"

E = TypeVar("E", CollectionCreated, ItemsAddedToCollection, ItemsRemovedFromCollection)


class CollectionManager:
    """Create collections, change their membership and collapse item lists.

    Every change produces an event. Events are returned to the caller and,
    when an ``event_sink`` is given, pushed to it as well.
    """

    def __init__(
        self,
        library: MutableLibraryIndex,
        event_sink: EventSink | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            library: Index that stores the collections.
            event_sink: Optional callback receiving every event.
        """
        self.library = library
        self._event_sink = event_sink
        self._collapser = CollectionCollapser(library)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get_collections_folder(self, create_if_needed: bool = False) -> Folder | None:
        """Get the folder holding all collections.

        Args:
            create_if_needed: Create the folder when it does not exist yet.

        Returns:
            The folder, or None if it does not exist and was not created.
        """
        folder = self.library.get_item_by_id(COLLECTIONS_FOLDER_ID)
        if isinstance(folder, Folder):
            return folder
        if not create_if_needed:
            return None

        folder = Folder(id=COLLECTIONS_FOLDER_ID, name="Collections")
        self.library.save_item(folder)
        logger.info("Created collections folder")
        return folder

    def create_collection(self, options: CollectionCreationOptions) -> CollectionCreated:
        """Create a collection and link the given items into it.

        Raises:
            InvalidArgumentError: If any item id is unknown. Nothing is
                created in that case.
        """
        items = self._get_items(options.item_ids)
        folder = self.get_collections_folder(create_if_needed=True)
        collection = BoxSet(
            id=uuid.uuid4().hex,
            name=options.name,
            parent_id=folder.id,  # type: ignore[union-attr]
            ancestor_ids=[folder.id],  # type: ignore[union-attr]
            user_ids=options.user_ids,
            is_locked=options.is_locked,
            provider_ids=options.provider_ids,
            date_created=datetime.now(UTC),
        )

        with self._lock_for(collection.id):
            self._link(collection, items)
            self.library.save_item(collection)

        logger.info("Created collection '{}' with {} items", collection.name, len(items))
        return self._emit(CollectionCreated(collection=collection, options=options))

    def add_to_collection(
        self, collection_id: str, item_ids: Iterable[str]
    ) -> ItemsAddedToCollection | None:
        """Link items into a collection.

        Items that are already linked are skipped.

        Returns:
            The event, or None if nothing new was linked.

        Raises:
            InvalidArgumentError: If the collection or any item is unknown.
        """
        collection = self._get_collection(collection_id)
        with self._lock_for(collection.id):
            items = self._get_items(item_ids)

            added = self._link(collection, items)
            if not added:
                return None
            self.library.save_item(collection)

        logger.info("Added {} items to collection '{}'", len(added), collection.name)
        return self._emit(ItemsAddedToCollection(collection=collection, items=added))

    def remove_from_collection(
        self, collection_id: str, item_ids: Iterable[str]
    ) -> ItemsRemovedFromCollection:
        """Unlink items from a collection.

        A link matches an id directly, or through the resolved item's path.
        Ids with no matching link are logged and skipped.

        Raises:
            InvalidArgumentError: If the collection is unknown.
        """
        collection = self._get_collection(collection_id)
        with self._lock_for(collection.id):
            to_remove: list[LinkedChild] = []
            removed_items: list[Item] = []
            for item_id in item_ids:
                item = self.library.get_item_by_id(item_id)
                child = self._find_link(collection, item_id, item)
                if child is None:
                    logger.warning(
                        "Item {} is not linked to collection '{}'", item_id, collection.name
                    )
                    continue

                to_remove.append(child)
                if item is not None:
                    removed_items.append(item)

            if to_remove:
                collection.linked_children = [
                    child
                    for child in collection.linked_children
                    if all(child is not removed for removed in to_remove)
                ]
            self.library.save_item(collection)

        logger.info("Removed {} items from collection '{}'", len(to_remove), collection.name)
        return self._emit(ItemsRemovedFromCollection(collection=collection, items=removed_items))

    def collapse_items_within_box_sets(self, items: Iterable[Item], user: User) -> list[Item]:
        """Collapse an item list against the collections a user can see."""
        return self._collapser.collapse(items, user)

    def _get_collection(self, collection_id: str) -> BoxSet:
        collection = self.library.get_item_by_id(collection_id)
        if not isinstance(collection, BoxSet):
            raise InvalidArgumentError(f"No collection exists with the id {collection_id}")
        return collection

    def _get_items(self, item_ids: Iterable[str]) -> list[Item]:
        items = []
        for item_id in item_ids:
            item = self.library.get_item_by_id(item_id)
            if item is None:
                raise InvalidArgumentError(f"No item exists with the id {item_id}")
            items.append(item)
        return items

    def _link(self, collection: BoxSet, items: list[Item]) -> list[Item]:
        """Append links for items not yet in the collection. Returns those items."""
        linked_ids = set(collection.linked_item_ids(self._resolve_path))
        added = []
        for item in items:
            if item.id in linked_ids:
                continue
            linked_ids.add(item.id)
            added.append(item)

        if added:
            collection.linked_children = [
                *collection.linked_children,
                *(LinkedChild.create(item) for item in added),
            ]
        return added

    def _resolve_path(self, path: str) -> str | None:
        item = self.library.get_item_by_path(path)
        return item.id if item is not None else None

    @staticmethod
    def _find_link(collection: BoxSet, item_id: str, item: Item | None) -> LinkedChild | None:
        for child in collection.linked_children:
            if child.item_id == item_id:
                return child
            if (
                item is not None
                and item.path
                and child.path
                and child.path.casefold() == item.path.casefold()
            ):
                return child
        return None

    def _lock_for(self, collection_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(collection_id, threading.Lock())

    def _emit(self, event: E) -> E:
        if self._event_sink is not None:
            self._event_sink(event)
        return event
