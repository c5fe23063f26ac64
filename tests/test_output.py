"""Tests for output formatting."""

import json

from nextshelf.boxsets import (
    CollectionCreated,
    CollectionCreationOptions,
    ItemsAddedToCollection,
    ItemsRemovedFromCollection,
)
from nextshelf.models import BoxSet, Episode, LinkedChild, Movie, User
from nextshelf.nextup import NextUpResult
from nextshelf.output import CollapsedItemsFormatter, NextUpFormatter, format_event


class TestNextUpFormatter:
    """Tests for next-up formatting."""

    def test_to_json(self) -> None:
        """Test JSON output carries paging and episode details."""
        episode = Episode(
            id="e2", name="Two", series_key="k", series_name="Show", parent_index=1, index=2
        )
        result = NextUpResult(items=[episode], total_record_count=4, start_index=1)

        output = json.loads(NextUpFormatter(result, User(id="alice")).to_json())

        assert output["total_record_count"] == 4
        assert output["start_index"] == 1
        assert output["items"][0] == {
            "id": "e2",
            "series_key": "k",
            "series_name": "Show",
            "season": 1,
            "episode": 2,
            "code": "S01E02",
            "name": "Two",
        }

    def test_to_csv_unnumbered(self) -> None:
        """Test missing season and episode numbers are left blank."""
        result = NextUpResult(items=[Episode(id="e", name="Odd", series_name="Show")])

        lines = NextUpFormatter(result, User(id="alice")).to_csv().splitlines()

        assert lines[1] == "Show,S00E00,Odd,,,e"


class TestCollapsedItemsFormatter:
    """Tests for collapsed list formatting."""

    def test_to_json(self) -> None:
        """Test collections report their member count."""
        saga = BoxSet(id="saga", name="Saga", linked_children=[LinkedChild(item_id="m1")])
        movie = Movie(id="m2", name="Other", year=2001)

        output = json.loads(CollapsedItemsFormatter([saga, movie], 3).to_json())

        assert output["original_count"] == 3
        assert output["collapsed_count"] == 2
        assert [item["members"] for item in output["items"]] == [1, None]


class TestFormatEvent:
    """Tests for collection event messages."""

    def test_created(self) -> None:
        """Test the created message names the collection."""
        saga = BoxSet(id="saga", name="Saga")
        event = CollectionCreated(collection=saga, options=CollectionCreationOptions(name="Saga"))
        assert "Created collection" in format_event(event)

    def test_added_titles_escaped(self) -> None:
        """Test item names cannot inject console markup."""
        saga = BoxSet(id="saga", name="Saga")
        event = ItemsAddedToCollection(collection=saga, items=[Movie(id="m", name="[bold]Loud")])
        assert "\\[bold]Loud" in format_event(event)

    def test_nothing_removed(self) -> None:
        """Test removing nothing still produces a message."""
        event = ItemsRemovedFromCollection(collection=BoxSet(id="saga", name="Saga"))
        assert "Nothing removed" in format_event(event)
