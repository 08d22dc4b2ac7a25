"""Tests for the analysis result cache."""

from __future__ import annotations

from pathlib import Path

from contextintel.results import RunMetadata, Synthesis, SynthesizedContext
from contextintel.stores import AnalysisCache, CacheStore


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _context(analysis_id: str = "analysis_1_abcd") -> SynthesizedContext:
    return SynthesizedContext(
        synthesis=Synthesis(overall_confidence=0.42, key_insights=["cached"]),
        metadata=RunMetadata(analysis_id=analysis_id, components_analyzed=3, fingerprint="fp"),
    )


def test_cache_satisfies_store_protocol() -> None:
    assert isinstance(AnalysisCache(), CacheStore)


def test_cache_round_trip_through_disk(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    clock = _Clock()
    cache = AnalysisCache(cache_path, clock=clock)
    cache.set("fp", _context(), ttl=60)
    cache.persist()

    reloaded = AnalysisCache(cache_path, clock=clock)
    value = reloaded.get("fp")

    assert value is not None
    assert value.synthesis.key_insights == ["cached"]
    assert value.metadata.components_analyzed == 3
    assert value == _context()


def test_entries_expire(tmp_path: Path) -> None:
    clock = _Clock()
    cache = AnalysisCache(clock=clock)
    cache.set("fp", _context(), ttl=10)

    clock.now += 5
    assert cache.get("fp") is not None
    clock.now += 10
    assert cache.get("fp") is None
    assert len(cache) == 0


def test_non_positive_ttl_is_not_stored() -> None:
    cache = AnalysisCache()
    cache.set("fp", _context(), ttl=0)
    assert cache.get("fp") is None


def test_prune_and_eviction() -> None:
    clock = _Clock()
    cache = AnalysisCache(clock=clock, max_entries=2)
    cache.set("short", _context(), ttl=1)
    cache.set("long", _context(), ttl=100)
    cache.set("longer", _context(), ttl=200)

    assert len(cache) == 2
    assert cache.get("short") is None

    clock.now += 150
    assert cache.prune_expired() == 1
    assert cache.get("longer") is not None


def test_unreadable_cache_file_is_ignored(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text("{not json", encoding="utf-8")

    cache = AnalysisCache(cache_path)
    assert len(cache) == 0

    cache_path.write_text('{"version": 99, "entries": {}}', encoding="utf-8")
    assert len(AnalysisCache(cache_path)) == 0


def test_clear_then_persist_empties_file(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache = AnalysisCache(cache_path)
    cache.set("fp", _context(), ttl=60)
    cache.persist()

    cache.clear()
    cache.persist()

    assert len(AnalysisCache(cache_path)) == 0
