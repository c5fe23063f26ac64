"""Data models for next-up resolution."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field, field_validator

from nextshelf.models import Episode

# Timestamp of a series the user never started
NEVER_STARTED = datetime.min.replace(tzinfo=UTC)

# Timestamp of a series with a watched episode but no recorded play date.
# Sorts below every real date but is not NEVER_STARTED.
PLAYED_NEVER_DATED = NEVER_STARTED + timedelta(days=1)


class NextUpQuery(BaseModel):
    """Parameters of a next-up request."""

    user_id: str
    series_id: str | None = None
    parent_id: str | None = None
    enable_rewatching: bool = False
    disable_first_episode: bool = False
    next_up_date_cutoff: datetime = NEVER_STARTED
    start_index: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=0)
    enable_total_record_count: bool = True
    fields: list[str] | None = None

    @field_validator("next_up_date_cutoff")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_series_scoped(self) -> bool:
        """Check if the request names a single series."""
        return bool(self.series_id)


@dataclass(frozen=True)
class NextUpCandidate:
    """A series ranked by when it was last watched.

    The next episode itself is only computed when ``resolve`` is called, so
    series dropped by the visibility filter never pay for it.
    """

    last_watched_at: datetime
    _resolver: Callable[[], Episode | None] = field(repr=False)

    @property
    def is_never_started(self) -> bool:
        """Check if the user never watched anything in the series."""
        return self.last_watched_at == NEVER_STARTED

    def resolve(self) -> Episode | None:
        """Compute the next episode, or None if there is nothing to offer."""
        return self._resolver()


class NextUpResult(BaseModel):
    """A page of next-up episodes."""

    items: list[Episode] = Field(default_factory=list)
    total_record_count: int | None = None  # None when counting was disabled
    start_index: int | None = None
