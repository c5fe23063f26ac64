"""Tests for single-series next-up resolution."""

from conftest import LibraryBuilder, at

from nextshelf.models import TICKS_PER_MILLISECOND
from nextshelf.nextup import NEVER_STARTED, PLAYED_NEVER_DATED


class TestNextEpisode:
    """Tests for finding the next episode in play order."""

    def test_next_after_last_watched(self, builder: LibraryBuilder) -> None:
        """Test the episode after the last watched one is offered."""
        show = builder.series("show")
        e1, e2, e3 = builder.season(show, 1, 3)
        builder.watch(e1, at(1))
        builder.watch(e2, at(2))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user)

        assert candidate.last_watched_at == at(2)
        assert candidate.resolve() == e3

    def test_crosses_season_boundary(self, builder: LibraryBuilder) -> None:
        """Test the next season starts after a season finale."""
        show = builder.series("show")
        s1 = builder.season(show, 1, 2)
        s2 = builder.season(show, 2, 2)
        for episode in s1:
            builder.watch(episode, at(3))

        assert builder.resolver().get_next_up(show.series_key, builder.user).resolve() == s2[0]

    def test_last_watched_follows_episode_order(self, builder: LibraryBuilder) -> None:
        """Test rewatching an early episode does not move next up backwards."""
        show = builder.series("show")
        e1, e2, e3, e4 = builder.season(show, 1, 4)
        builder.watch(e3, at(1))
        builder.watch(e1, at(5))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user)

        # Ranked by the furthest episode, not the most recent play
        assert candidate.last_watched_at == at(1)
        assert candidate.resolve() == e4

    def test_never_started_offers_first_episode(self, builder: LibraryBuilder) -> None:
        """Test an unstarted series is ranked NEVER_STARTED and offers episode 1."""
        show = builder.series("show")
        e1, _ = builder.season(show, 1, 2)

        candidate = builder.resolver().get_next_up(show.series_key, builder.user)

        assert candidate.last_watched_at == NEVER_STARTED
        assert candidate.is_never_started
        assert candidate.resolve() == e1

    def test_played_without_date(self, builder: LibraryBuilder) -> None:
        """Test a played episode with no play date ranks as PLAYED_NEVER_DATED."""
        show = builder.series("show")
        e1, e2 = builder.season(show, 1, 2)
        builder.watch(e1, when=None)

        candidate = builder.resolver().get_next_up(show.series_key, builder.user)

        assert candidate.last_watched_at == PLAYED_NEVER_DATED
        assert not candidate.is_never_started
        assert candidate.resolve() == e2

    def test_skips_virtual_episodes(self, builder: LibraryBuilder) -> None:
        """Test episodes without a file are never offered."""
        show = builder.series("show")
        e1 = builder.episode(show, 1, 1)
        builder.episode(show, 1, 2, is_virtual=True)
        e3 = builder.episode(show, 1, 3)
        builder.watch(e1, at(1))

        assert builder.resolver().get_next_up(show.series_key, builder.user).resolve() == e3

    def test_partially_watched_next_episode(self, builder: LibraryBuilder) -> None:
        """Test nothing is offered when the next episode is already in progress."""
        show = builder.series("show")
        e1, e2 = builder.season(show, 1, 2)
        builder.watch(e1, at(1))
        builder.watch(e2, at(2), played=False, resume_position_ticks=90_000 * TICKS_PER_MILLISECOND)

        assert builder.resolver().get_next_up(show.series_key, builder.user).resolve() is None

    def test_series_finished(self, builder: LibraryBuilder) -> None:
        """Test a fully watched series offers nothing."""
        show = builder.series("show")
        for episode in builder.season(show, 1, 2):
            builder.watch(episode, at(1))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user)

        assert candidate.last_watched_at == at(1)
        assert candidate.resolve() is None

    def test_other_series_ignored(self, builder: LibraryBuilder) -> None:
        """Test episodes of another series never leak into the result."""
        show = builder.series("show")
        other = builder.series("other")
        (e1,) = builder.season(show, 1, 1)
        builder.season(other, 1, 2)
        builder.watch(e1, at(1))

        assert builder.resolver().get_next_up(show.series_key, builder.user).resolve() is None

    def test_resolution_is_deferred(self, builder: LibraryBuilder) -> None:
        """Test the next episode reflects state at resolve time."""
        show = builder.series("show")
        e1, e2, e3 = builder.season(show, 1, 3)
        builder.watch(e1, at(1))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user)
        builder.watch(e2, at(2))

        assert candidate.resolve() == e3


class TestRewatching:
    """Tests for rewatch mode."""

    def test_follows_play_history(self, builder: LibraryBuilder) -> None:
        """Test rewatching continues after the most recently played episode."""
        show = builder.series("show")
        e1, e2, e3 = builder.season(show, 1, 3)
        builder.watch(e2, at(2))
        builder.watch(e3, at(3))
        builder.watch(e1, at(10))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user, rewatching=True)

        assert candidate.last_watched_at == at(10)
        assert candidate.resolve() == e2

    def test_only_offers_played_episodes(self, builder: LibraryBuilder) -> None:
        """Test rewatching never offers an unplayed episode."""
        show = builder.series("show")
        e1, e2 = builder.season(show, 1, 2)
        builder.watch(e1, at(1))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user, rewatching=True)

        assert candidate.resolve() is None

    def test_partially_watched_next_episode(self, builder: LibraryBuilder) -> None:
        """Test nothing is offered when the next rewatch episode is in progress."""
        show = builder.series("show")
        e1, e2, _ = builder.season(show, 1, 3)
        builder.watch(e2, at(2), resume_position_ticks=90_000 * TICKS_PER_MILLISECOND)
        builder.watch(e1, at(5))

        candidate = builder.resolver().get_next_up(show.series_key, builder.user, rewatching=True)

        assert candidate.last_watched_at == at(5)
        assert candidate.resolve() is None

    def test_offers_played_special(self, builder: LibraryBuilder) -> None:
        """Test rewatching interleaves played specials and passes over unplayed ones."""
        show = builder.series("show")
        s1 = builder.season(show, 1, 2)
        (s2e1,) = builder.season(show, 2, 1)
        builder.episode(show, 0, 1, airs_after_season=1)
        played_special = builder.episode(show, 0, 2, airs_after_season=1)
        builder.watch(s2e1, at(1))
        builder.watch(played_special, at(2))
        builder.watch(s1[0], at(3))
        builder.watch(s1[1], at(10))

        resolver = builder.resolver(specials=True)
        candidate = resolver.get_next_up(show.series_key, builder.user, rewatching=True)

        assert candidate.last_watched_at == at(10)
        assert candidate.resolve() == played_special


class TestSpecials:
    """Tests for specials placed between regular episodes."""

    def test_specials_hidden_by_default(self, builder: LibraryBuilder) -> None:
        """Test specials are skipped unless enabled."""
        show = builder.series("show")
        s1 = builder.season(show, 1, 2)
        s2 = builder.season(show, 2, 1)
        builder.episode(show, 0, 1, airs_after_season=1)
        for episode in s1:
            builder.watch(episode, at(1))

        assert builder.resolver().get_next_up(show.series_key, builder.user).resolve() == s2[0]

    def test_special_after_season(self, builder: LibraryBuilder) -> None:
        """Test a special airing after season 1 is offered after its finale."""
        show = builder.series("show")
        s1 = builder.season(show, 1, 2)
        builder.season(show, 2, 1)
        special = builder.episode(show, 0, 1, airs_after_season=1)
        for episode in s1:
            builder.watch(episode, at(1))

        resolver = builder.resolver(specials=True)
        assert resolver.get_next_up(show.series_key, builder.user).resolve() == special

    def test_special_before_season_premiere(self, builder: LibraryBuilder) -> None:
        """Test a special airing before S2E1 is offered after the S1 finale."""
        show = builder.series("show")
        s1 = builder.season(show, 1, 2)
        builder.season(show, 2, 2)
        special = builder.episode(show, 0, 1, airs_before_season=2, airs_before_episode=1)
        for episode in s1:
            builder.watch(episode, at(1))

        resolver = builder.resolver(specials=True)
        assert resolver.get_next_up(show.series_key, builder.user).resolve() == special

    def test_earlier_special_not_offered(self, builder: LibraryBuilder) -> None:
        """Test a special that aired before the last watched episode is passed over."""
        show = builder.series("show")
        e1, e2 = builder.season(show, 1, 2)
        builder.episode(show, 0, 1, airs_before_season=1)
        builder.watch(e1, at(1))

        resolver = builder.resolver(specials=True)
        assert resolver.get_next_up(show.series_key, builder.user).resolve() == e2

    def test_unplaced_specials_ignored(self, builder: LibraryBuilder) -> None:
        """Test specials without a season marker are not interleaved."""
        show = builder.series("show")
        e1, e2 = builder.season(show, 1, 2)
        builder.episode(show, 0, 1)
        builder.watch(e1, at(1))

        resolver = builder.resolver(specials=True)
        assert resolver.get_next_up(show.series_key, builder.user).resolve() == e2

    def test_watched_special_skipped(self, builder: LibraryBuilder) -> None:
        """Test a special already watched is not offered again."""
        show = builder.series("show")
        s1 = builder.season(show, 1, 1)
        s2 = builder.season(show, 2, 1)
        special = builder.episode(show, 0, 1, airs_after_season=1)
        builder.watch(s1[0], at(1))
        builder.watch(special, at(2))

        resolver = builder.resolver(specials=True)
        assert resolver.get_next_up(show.series_key, builder.user).resolve() == s2[0]
