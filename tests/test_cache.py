"""Tests for the TTL cache, state cache and refresh throttle."""

from types import SimpleNamespace

from aura.inference.cache import RefreshThrottle, StateCache, TTLCache


class FakeClock:
    def __init__(self, t: float = 1_700_000_000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class TestTTLCache:
    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = TTLCache(45.0, clock=clock)
        cache.set("k", 0.7)
        clock.advance(44.9)
        assert cache.get("k") == 0.7

    def test_expires_at_ttl(self):
        clock = FakeClock()
        cache = TTLCache(45.0, clock=clock)
        cache.set("k", 0.7)
        clock.advance(45.0)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_stale_entries_evicted_on_write(self):
        clock = FakeClock()
        cache = TTLCache(10.0, clock=clock)
        cache.set("old", 1)
        clock.advance(11)
        cache.set("new", 2)
        assert len(cache) == 1

    def test_clear(self):
        cache = TTLCache(10.0, clock=FakeClock())
        cache.set(("a", 1), 1)
        cache.clear()
        assert cache.get(("a", 1)) is None


class TestStateCache:
    def test_empty_is_not_fresh(self):
        assert not StateCache(45.0, clock=FakeClock()).fresh()

    def test_freshness_window(self):
        clock = FakeClock()
        cache = StateCache(45.0, clock=clock)
        cache.replace(SimpleNamespace(timestamp=clock()))
        clock.advance(30)
        assert cache.fresh()
        clock.advance(20)
        assert not cache.fresh()

    def test_invalidate_keeps_state(self):
        clock = FakeClock()
        cache = StateCache(45.0, clock=clock)
        state = SimpleNamespace(timestamp=clock())
        cache.replace(state)
        cache.invalidate()
        assert not cache.fresh()
        assert cache.state is state

        cache.replace(SimpleNamespace(timestamp=clock()))
        assert cache.fresh()


class TestRefreshThrottle:
    def test_one_trigger_per_interval(self):
        clock = FakeClock()
        throttle = RefreshThrottle(10.0, clock=clock)
        assert throttle.try_acquire()
        assert not throttle.try_acquire()
        clock.advance(9.9)
        assert not throttle.try_acquire()
        clock.advance(0.2)
        assert throttle.try_acquire()

    def test_reset(self):
        throttle = RefreshThrottle(10.0, clock=FakeClock())
        throttle.try_acquire()
        throttle.reset()
        assert throttle.try_acquire()
