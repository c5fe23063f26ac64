"""Shared fixtures for building small in-memory libraries."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from nextshelf.library import InMemoryLibrary
from nextshelf.models import Episode, Folder, Movie, Series, User, WatchMark
from nextshelf.nextup import NextUpService, SeriesNextUpResolver


def at(day: int, hour: int = 20) -> datetime:
    """A UTC timestamp in June 2024."""
    return datetime(2024, 6, day, hour, 0, tzinfo=UTC)


class LibraryBuilder:
    """Builds a library for one user, Alice, with a TV and a Movies folder."""

    def __init__(self) -> None:
        self.user = User(id="alice", name="Alice")
        self.library = InMemoryLibrary(users=[self.user])
        self.tv = self.folder("tv", "TV Shows")
        self.movies = self.folder("movies", "Movies")

    def folder(self, folder_id: str, name: str) -> Folder:
        folder = Folder(id=folder_id, name=name)
        self.library.save_item(folder)
        return folder

    def series(self, series_id: str, folder: Folder | None = None) -> Series:
        folder = folder or self.tv
        series = Series(
            id=series_id,
            name=series_id.title(),
            parent_id=folder.id,
            ancestor_ids=[folder.id],
        )
        self.library.save_item(series)
        return series

    def episode(self, series: Series, season: int, number: int, **fields: Any) -> Episode:
        episode = Episode(
            id=f"{series.id}-s{season}e{number}",
            name=fields.pop("name", f"Episode {number}"),
            series_key=series.series_key,
            series_id=series.id,
            series_name=series.name,
            parent_index=season,
            index=number,
            parent_id=series.id,
            ancestor_ids=[*series.ancestor_ids, series.id],
            **fields,
        )
        self.library.save_item(episode)
        return episode

    def season(self, series: Series, season: int, count: int) -> list[Episode]:
        return [self.episode(series, season, number) for number in range(1, count + 1)]

    def movie(self, movie_id: str, **fields: Any) -> Movie:
        movie = Movie(
            id=movie_id,
            name=fields.pop("name", movie_id.title()),
            parent_id=self.movies.id,
            ancestor_ids=[self.movies.id],
            **fields,
        )
        self.library.save_item(movie)
        return movie

    def watch(
        self,
        item: Episode | Movie,
        when: datetime | None = None,
        played: bool = True,
        resume_position_ticks: int = 0,
    ) -> None:
        self.library.playback.set_watch_mark(
            self.user.id,
            item.id,
            WatchMark(
                played=played,
                play_count=1 if played else 0,
                last_played_at=when,
                resume_position_ticks=resume_position_ticks,
            ),
        )

    def resolver(self, specials: bool = False) -> SeriesNextUpResolver:
        return SeriesNextUpResolver(
            self.library, self.library.playback, display_specials_within_seasons=specials
        )

    def service(self, specials: bool = False) -> NextUpService:
        return NextUpService(
            self.library,
            self.library.playback,
            self.library,
            display_specials_within_seasons=specials,
        )


@pytest.fixture
def builder() -> LibraryBuilder:
    """A fresh library builder."""
    return LibraryBuilder()
