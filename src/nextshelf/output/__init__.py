"""Output formatting for next-up lists, collapsed item lists and collection events.

Each formatter renders the same data as text (rich, to the console), JSON
or CSV.
"""

from __future__ import annotations

import csv
import io
import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nextshelf.boxsets import (
    CollectionCreated,
    CollectionEvent,
    ItemsAddedToCollection,
    ItemsRemovedFromCollection,
)
from nextshelf.models import BoxSet, Episode, Item, Movie, Series, User
from nextshelf.nextup import NextUpResult

console = Console()


class ReportFormatter(ABC):
    """Abstract base class for report formatting."""

    @abstractmethod
    def to_json(self) -> str:
        """Convert report to JSON string."""
        pass

    @abstractmethod
    def to_csv(self) -> str:
        """Convert report to CSV string."""
        pass

    @abstractmethod
    def to_text(self) -> None:
        """Output report as formatted text to console."""
        pass

    @staticmethod
    def _csv(header: list[str], rows: Sequence[Sequence[Any]]) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(header)
        writer.writerows(rows)
        return output.getvalue()


def _item_title(item: Item) -> str:
    """Get a display title, with the year where the item has one."""
    year = item.year if isinstance(item, (Movie, Series)) else None
    return f"{item.name} ({year})" if year else item.name


class NextUpFormatter(ReportFormatter):
    """Formatter for a page of next-up episodes."""

    def __init__(self, result: NextUpResult, user: User) -> None:
        self.result = result
        self.user = user

    def _episode_dict(self, episode: Episode) -> dict[str, Any]:
        return {
            "id": episode.id,
            "series_key": episode.series_key,
            "series_name": episode.series_name,
            "season": episode.parent_index,
            "episode": episode.index,
            "code": episode.episode_code,
            "name": episode.name,
        }

    def to_json(self) -> str:
        """Convert the next-up page to a JSON string."""
        output = {
            "user": self.user.id,
            "start_index": self.result.start_index,
            "total_record_count": self.result.total_record_count,
            "items": [self._episode_dict(ep) for ep in self.result.items],
        }
        return json.dumps(output, indent=2)

    def to_csv(self) -> str:
        """Convert the next-up page to a CSV string."""
        return self._csv(
            ["Series", "Code", "Episode", "Season", "Number", "Item ID"],
            [
                [
                    ep.series_name,
                    ep.episode_code,
                    ep.name,
                    ep.parent_index if ep.parent_index is not None else "",
                    ep.index if ep.index is not None else "",
                    ep.id,
                ]
                for ep in self.result.items
            ],
        )

    def to_text(self) -> None:
        """Output the next-up page as a table."""
        console.print()
        console.print(f"[bold blue]Next Up - {self.user.name or self.user.id}[/bold blue]")
        console.print()

        if not self.result.items:
            console.print("[green]Nothing to continue.[/green]")
            return

        table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
        table.add_column("Series", style="white")
        table.add_column("Code", style="cyan")
        table.add_column("Episode")

        for ep in self.result.items:
            table.add_row(ep.series_name or ep.series_key, ep.episode_code, ep.name)

        console.print(table)
        console.print()

        if self.result.total_record_count is not None:
            console.print(
                f"[dim]Showing {len(self.result.items)} of "
                f"{self.result.total_record_count}[/dim]"
            )


class CollapsedItemsFormatter(ReportFormatter):
    """Formatter for an item list after box-set collapsing."""

    def __init__(self, items: Sequence[Item], original_count: int) -> None:
        self.items = items
        self.original_count = original_count

    @staticmethod
    def _member_count(item: Item) -> int | None:
        return len(item.linked_children) if isinstance(item, BoxSet) else None

    def to_json(self) -> str:
        """Convert the collapsed list to a JSON string."""
        output = {
            "original_count": self.original_count,
            "collapsed_count": len(self.items),
            "items": [
                {
                    "id": item.id,
                    "kind": item.kind,
                    "name": item.name,
                    "members": self._member_count(item),
                }
                for item in self.items
            ],
        }
        return json.dumps(output, indent=2)

    def to_csv(self) -> str:
        """Convert the collapsed list to a CSV string."""
        return self._csv(
            ["Kind", "Name", "Members", "Item ID"],
            [
                [item.kind, item.name, self._member_count(item) or "", item.id]
                for item in self.items
            ],
        )

    def to_text(self) -> None:
        """Output the collapsed list as a table."""
        console.print()
        console.print(
            f"[bold blue]{len(self.items)} entries[/bold blue] "
            f"[dim](from {self.original_count} items)[/dim]"
        )
        console.print()

        table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
        table.add_column("Kind", style="dim")
        table.add_column("Title", style="white")
        table.add_column("Members", justify="right")

        for item in self.items:
            members = self._member_count(item)
            table.add_row(item.kind, _item_title(item), str(members) if members is not None else "")

        console.print(table)


def format_event(event: CollectionEvent) -> str:
    """Describe a collection event in one line of console markup."""
    name = escape(event.collection.name)
    if isinstance(event, CollectionCreated):
        return (
            f"[green]Created collection[/green] '{name}' ({event.collection.id}) "
            f"with {len(event.collection.linked_children)} items"
        )
    if isinstance(event, ItemsAddedToCollection):
        titles = escape(", ".join(_item_title(item) for item in event.items))
        return f"[green]Added to[/green] '{name}': {titles}"
    if isinstance(event, ItemsRemovedFromCollection):
        if not event.items:
            return f"[yellow]Nothing removed from[/yellow] '{name}'"
        titles = escape(", ".join(_item_title(item) for item in event.items))
        return f"[yellow]Removed from[/yellow] '{name}': {titles}"
    raise TypeError(f"Unknown collection event: {type(event).__name__}")
