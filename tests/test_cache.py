from __future__ import annotations

from campaignpulse.cache import TtlCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_ttl_expiry_and_force_refresh() -> None:
    clock = FakeClock()
    cache: TtlCache[list[str]] = TtlCache(ttl_seconds=300, clock=clock)
    cache.set("loc1", ["a"])

    assert cache.get("loc1") == ["a"]
    assert cache.get("loc1", force_refresh=True) is None

    clock.now += 299
    assert cache.get("loc1") == ["a"]
    clock.now += 1
    assert cache.get("loc1") is None


def test_invalidate_one_or_all() -> None:
    cache: TtlCache[int] = TtlCache(clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert "a" not in cache
    assert "b" in cache

    cache.invalidate()
    assert len(cache) == 0
