"""Box-set (collection) membership and collapsing."""

from nextshelf.boxsets.collapser import CollectionCollapser, collapse_collections
from nextshelf.boxsets.events import (
    CollectionCreated,
    CollectionCreationOptions,
    CollectionEvent,
    EventSink,
    ItemsAddedToCollection,
    ItemsRemovedFromCollection,
)
from nextshelf.boxsets.manager import COLLECTIONS_FOLDER_ID, CollectionManager

__all__ = [
    # Collapsing
    "CollectionCollapser",
    "collapse_collections",
    # Management
    "CollectionManager",
    "COLLECTIONS_FOLDER_ID",
    # Events
    "CollectionCreationOptions",
    "CollectionCreated",
    "ItemsAddedToCollection",
    "ItemsRemovedFromCollection",
    "CollectionEvent",
    "EventSink",
]
