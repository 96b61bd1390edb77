"""
Unit Tests for SpamLimiter

Sliding-window limit of three central messages per user per five seconds.
"""

import pytest

from lavalink_music_bot.application.services.spam_limiter import SpamLimiter

GUILD_ID = 1000
USER_ID = 111


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return SpamLimiter(threshold=3, window_seconds=5.0, clock=clock)


class TestAllow:
    def test_fourth_message_in_window_dropped(self, limiter, clock):
        results = []
        for _ in range(4):
            results.append(limiter.allow(GUILD_ID, USER_ID))
            clock.advance(1.0)

        assert results == [True, True, True, False]

    def test_slot_frees_when_oldest_leaves_window(self, limiter, clock):
        for _ in range(3):
            limiter.allow(GUILD_ID, USER_ID)
        clock.advance(4.0)
        assert not limiter.allow(GUILD_ID, USER_ID)

        clock.advance(1.0)
        assert limiter.allow(GUILD_ID, USER_ID)

    def test_dropped_messages_do_not_extend_the_block(self, limiter, clock):
        for _ in range(3):
            limiter.allow(GUILD_ID, USER_ID)
        for _ in range(8):
            clock.advance(0.5)
            limiter.allow(GUILD_ID, USER_ID)

        clock.advance(1.0)
        assert limiter.allow(GUILD_ID, USER_ID)

    def test_users_are_independent(self, limiter):
        for _ in range(3):
            limiter.allow(GUILD_ID, USER_ID)

        assert limiter.allow(GUILD_ID, USER_ID + 1)
        assert limiter.allow(GUILD_ID + 1, USER_ID)
        assert not limiter.allow(GUILD_ID, USER_ID)


class TestSweep:
    def test_evicts_idle_users(self, limiter, clock):
        limiter.allow(GUILD_ID, USER_ID)
        clock.advance(6.0)
        limiter.allow(GUILD_ID, USER_ID + 1)
        clock.advance(4.0)

        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_keeps_recent_users(self, limiter, clock):
        limiter.allow(GUILD_ID, USER_ID)
        clock.advance(9.0)

        assert limiter.sweep() == 0
        assert len(limiter) == 1


class TestConstruction:
    def test_defaults(self):
        limiter = SpamLimiter()

        assert limiter.threshold == 3
        assert limiter.window_seconds == 5.0

    @pytest.mark.parametrize(("threshold", "window"), [(0, 5.0), (3, 0), (3, -1.0)])
    def test_rejects_invalid_limits(self, threshold, window):
        with pytest.raises(ValueError):
            SpamLimiter(threshold=threshold, window_seconds=window)
