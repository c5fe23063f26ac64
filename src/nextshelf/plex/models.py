"""Data models for Plex content."""

from pydantic import BaseModel


class PlexLibrary(BaseModel):
    """A Plex library section."""

    key: str
    title: str
    type: str  # "movie", "show", "artist", "photo"
    locations: list[str] = []  # Folder paths configured for this library

    @property
    def is_movie_library(self) -> bool:
        """Check if this is a movie library."""
        return self.type == "movie"

    @property
    def is_tv_library(self) -> bool:
        """Check if this is a TV show library."""
        return self.type == "show"

    @property
    def folder_id(self) -> str:
        """Get the id of the library folder in an exported snapshot."""
        return f"plex-section-{self.key}"
