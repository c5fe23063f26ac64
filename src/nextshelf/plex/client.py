"""Plex Media Server client."""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime
from urllib.parse import urlparse

from loguru import logger
from plexapi.exceptions import NotFound, Unauthorized
from plexapi.server import PlexServer

from nextshelf.boxsets import COLLECTIONS_FOLDER_ID
from nextshelf.library import LibrarySnapshot, WatchMarkRecord
from nextshelf.models import (
    TICKS_PER_MILLISECOND,
    BoxSet,
    Episode,
    Folder,
    Item,
    LinkedChild,
    Movie,
    Series,
    User,
)
from nextshelf.plex.models import PlexLibrary


class PlexError(Exception):
    """Base exception for Plex errors."""

    pass


class PlexAuthError(PlexError):
    """Authentication error."""

    pass


class PlexConnectionError(PlexError):
    """Connection error."""

    pass


class PlexNotFoundError(PlexError):
    """Resource not found."""

    pass


def _file_path(item: object) -> str | None:
    """Get the first media file path of a Plex video, if any."""
    for media in getattr(item, "media", None) or []:
        for part in getattr(media, "parts", None) or []:
            file_path = getattr(part, "file", None)
            if file_path:
                return str(file_path)
    return None


def _as_utc(value: datetime | None) -> datetime | None:
    # plexapi returns naive local times
    if value is None:
        return None
    return value.astimezone(UTC)


class PlexClient:
    """Client for Plex Media Server."""

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        timeout: int = 30,
    ) -> None:
        """Initialize the Plex client.

        Args:
            url: Plex server URL. If not provided, reads from PLEX_URL env var.
            token: Plex auth token. If not provided, reads from PLEX_TOKEN env var.
            timeout: Request timeout in seconds.
        """
        self.url = url or os.environ.get("PLEX_URL")
        self.token = token or os.environ.get("PLEX_TOKEN")

        if not self.url:
            raise PlexAuthError(
                "Plex server URL not provided. Set PLEX_URL environment variable "
                "or pass url parameter."
            )

        if not self.token:
            raise PlexAuthError(
                "Plex token not provided. Set PLEX_TOKEN environment variable "
                "or pass token parameter."
            )

        self.url = self._normalize_url(self.url)

        self._timeout = timeout
        self._server: PlexServer | None = None

    def _normalize_url(self, url: str) -> str:
        """Normalize the Plex server URL."""
        # urlparse treats "localhost:32400" as scheme="localhost", path="32400"
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            url = f"http://{url}"
        return url.rstrip("/")

    def connect(self) -> None:
        """Connect to the Plex server.

        Raises:
            PlexAuthError: If authentication fails.
            PlexConnectionError: If connection fails.
        """
        try:
            self._server = PlexServer(self.url, self.token, timeout=self._timeout)
        except Unauthorized as e:
            raise PlexAuthError(f"Invalid Plex token: {e}") from e
        except Exception as e:
            raise PlexConnectionError(f"Failed to connect to Plex server: {e}") from e
        logger.debug("Connected to Plex at {}", self.url)

    @property
    def server(self) -> PlexServer:
        """Get the connected server, connecting if necessary."""
        if self._server is None:
            self.connect()
        return self._server  # type: ignore[return-value]

    @property
    def server_name(self) -> str:
        """Get the server's friendly name."""
        return self.server.friendlyName

    def __enter__(self) -> PlexClient:
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        pass  # PlexServer doesn't need explicit cleanup

    def get_libraries(self) -> list[PlexLibrary]:
        """Get all library sections."""
        sections = self.server.library.sections()
        return [
            PlexLibrary(
                key=str(section.key),
                title=section.title,
                type=section.type,
                locations=list(getattr(section, "locations", None) or []),
            )
            for section in sections
        ]

    def get_owner(self) -> User:
        """Get the account owning the token as a library user."""
        name = getattr(self.server, "myPlexUsername", None) or "owner"
        return User(id=str(name), name=str(name))

    def export_snapshot(
        self,
        library_names: list[str] | None = None,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> LibrarySnapshot:
        """Export movie and TV libraries with the owner's watch state.

        Args:
            library_names: Libraries to export. If None, exports every movie
                and TV library.
            progress_callback: Optional callback for progress updates.
                Signature: (stage: str, current: int, total: int)

        Returns:
            Snapshot of the exported libraries.

        Raises:
            PlexNotFoundError: If a named library does not exist.
        """
        progress = progress_callback or (lambda *args: None)
        owner = self.get_owner()

        libraries = [lib for lib in self.get_libraries() if lib.is_movie_library or lib.is_tv_library]
        if library_names is not None:
            known = {lib.title for lib in libraries}
            for name in library_names:
                if name not in known:
                    raise PlexNotFoundError(f"Library '{name}' not found")
            libraries = [lib for lib in libraries if lib.title in library_names]

        items: list[Item] = [Folder(id=COLLECTIONS_FOLDER_ID, name="Collections")]
        marks: list[WatchMarkRecord] = []

        for library in libraries:
            progress(f"Exporting: {library.title}", 0, 0)
            section = self.server.library.sectionByID(int(library.key))
            folder = Folder(
                id=library.folder_id,
                name=library.title,
                path=library.locations[0] if library.locations else None,
            )
            items.append(folder)

            if library.is_tv_library:
                self._export_shows(section, folder, owner, items, marks, progress)
            else:
                self._export_movies(section, folder, owner, items, marks, progress)
            items.extend(self._export_collections(section))

        logger.info("Exported {} items from {} libraries", len(items), len(libraries))
        return LibrarySnapshot(
            source=self.server_name,
            created_at=datetime.now(UTC),
            users=[owner],
            items=[item.model_dump() for item in items],
            watch_marks=marks,
        )

    def _export_shows(
        self,
        section: object,
        folder: Folder,
        owner: User,
        items: list[Item],
        marks: list[WatchMarkRecord],
        progress: Callable[[str, int, int], None],
    ) -> None:
        shows = section.all()  # type: ignore[attr-defined]
        total = len(shows)
        for i, show in enumerate(shows):
            progress(f"Exporting: {show.title}", i + 1, total)
            series = Series(
                id=str(show.ratingKey),
                name=show.title,
                year=getattr(show, "year", None),
                series_key=str(show.guid) if getattr(show, "guid", None) else "",
                parent_id=folder.id,
                ancestor_ids=[folder.id],
            )
            items.append(series)

            try:
                episodes = show.episodes()
            except NotFound as e:
                raise PlexNotFoundError(f"Show not found: {show.ratingKey}") from e

            for plex_episode in episodes:
                episode = Episode(
                    id=str(plex_episode.ratingKey),
                    name=plex_episode.title or "",
                    path=_file_path(plex_episode),
                    series_key=series.series_key,
                    series_id=series.id,
                    series_name=series.name,
                    parent_index=plex_episode.parentIndex,
                    index=plex_episode.index,
                    parent_id=str(plex_episode.parentRatingKey),
                    ancestor_ids=[folder.id, series.id, str(plex_episode.parentRatingKey)],
                )
                items.append(episode)
                marks.extend(self._watch_mark(owner, plex_episode, episode.id))

    def _export_movies(
        self,
        section: object,
        folder: Folder,
        owner: User,
        items: list[Item],
        marks: list[WatchMarkRecord],
        progress: Callable[[str, int, int], None],
    ) -> None:
        movies = section.all()  # type: ignore[attr-defined]
        total = len(movies)
        for i, plex_movie in enumerate(movies):
            progress("Exporting movies", i + 1, total)
            movie = Movie(
                id=str(plex_movie.ratingKey),
                name=plex_movie.title,
                year=getattr(plex_movie, "year", None),
                path=_file_path(plex_movie),
                parent_id=folder.id,
                ancestor_ids=[folder.id],
            )
            items.append(movie)
            marks.extend(self._watch_mark(owner, plex_movie, movie.id))

    def _export_collections(self, section: object) -> list[BoxSet]:
        box_sets = []
        for collection in section.collections():  # type: ignore[attr-defined]
            box_sets.append(
                BoxSet(
                    id=f"plex-collection-{collection.ratingKey}",
                    name=collection.title,
                    parent_id=COLLECTIONS_FOLDER_ID,
                    ancestor_ids=[COLLECTIONS_FOLDER_ID],
                    linked_children=[
                        LinkedChild(item_id=str(member.ratingKey))
                        for member in collection.items()
                    ],
                )
            )
        return box_sets

    def _watch_mark(self, owner: User, plex_item: object, item_id: str) -> list[WatchMarkRecord]:
        """Build the owner's watch mark for a Plex video, if it has any state."""
        view_count = getattr(plex_item, "viewCount", None) or 0
        view_offset = getattr(plex_item, "viewOffset", None) or 0
        last_viewed = _as_utc(getattr(plex_item, "lastViewedAt", None))
        if not view_count and not view_offset and last_viewed is None:
            return []
        return [
            WatchMarkRecord(
                user_id=owner.id,
                item_id=item_id,
                played=view_count > 0,
                play_count=view_count,
                last_played_at=last_viewed,
                resume_position_ticks=view_offset * TICKS_PER_MILLISECOND,
            )
        ]
