"""Fold box-set members and duplicate versions out of an item list."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable

from loguru import logger

from nextshelf.library import LibraryIndex
from nextshelf.models import BoxSet, Item, User, Video


class CollectionCollapser:
    """Replace box-set members with their box set and drop alternate versions."""

    def __init__(self, library: LibraryIndex) -> None:
        self.library = library

    def collapse(self, items: Iterable[Item], user: User) -> list[Item]:
        """Collapse an ordered item list for a user.

        Members of a collection are replaced by the collection, which appears
        once at the position of its first member. A video is dropped when one
        of its alternate versions is already in the result. Items that do
        not take part in box-set grouping are always kept; a repeated id
        replaces the earlier entry but keeps its position.

        Args:
            items: Items in display order.
            user: User whose visible collections apply.

        Returns:
            The collapsed list, in first-seen order.
        """
        items = list(items)
        if not items:
            return []

        results: OrderedDict[str, Item] = OrderedDict()
        memberships = self._index_memberships(self.library.list_collections(user))

        for item in items:
            if item.supports_box_set_grouping:
                box_sets = memberships.get(item.id)
                if box_sets:
                    for box_set in box_sets:
                        if box_set.id not in results:
                            results[box_set.id] = box_set
                    continue

                if isinstance(item, Video) and any(
                    alternate_id in results for alternate_id in item.alternate_version_ids
                ):
                    continue

            results[item.id] = item

        return list(results.values())

    def _index_memberships(self, box_sets: list[BoxSet]) -> dict[str, list[BoxSet]]:
        """Map each member item id to the box sets containing it, in box-set order."""
        memberships: dict[str, list[BoxSet]] = {}
        for box_set in box_sets:
            for item_id in box_set.linked_item_ids(self._resolve_path):
                owners = memberships.setdefault(item_id, [])
                if all(owner.id != box_set.id for owner in owners):
                    owners.append(box_set)
        logger.debug(
            "Indexed {} box sets covering {} items", len(box_sets), len(memberships)
        )
        return memberships

    def _resolve_path(self, path: str) -> str | None:
        item = self.library.get_item_by_path(path)
        return item.id if item is not None else None


def collapse_collections(items: Iterable[Item], user: User, library: LibraryIndex) -> list[Item]:
    """Collapse an item list against the collections a user can see."""
    return CollectionCollapser(library).collapse(items, user)
