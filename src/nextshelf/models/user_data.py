"""Data models for users and their per-item playback state."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

# Playback positions are stored in 100 ns ticks
TICKS_PER_MILLISECOND = 10_000


class User(BaseModel):
    """A library user."""

    id: str
    name: str = ""
    latest_item_excludes: list[str] = Field(default_factory=list)  # Folder ids


class WatchMark(BaseModel):
    """What a user has done with one item."""

    played: bool = False
    play_count: int = 0
    last_played_at: datetime | None = None
    resume_position_ticks: int = Field(default=0, ge=0)

    @field_validator("last_played_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_partially_watched(self) -> bool:
        """Check if playback stopped somewhere inside the item."""
        return self.resume_position_ticks > 0
