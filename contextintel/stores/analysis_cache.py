"""Cache for synthesized analysis results keyed by input fingerprint."""

from __future__ import annotations

import json
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from ..logging import get_logger
from ..results import SynthesizedContext

_CACHE_VERSION = 1


@runtime_checkable
class CacheStore(Protocol):
    """Minimal key-value contract the orchestrator relies on."""

    def get(self, key: str) -> Optional[SynthesizedContext]:
        ...

    def set(self, key: str, value: SynthesizedContext, ttl: float) -> None:
        ...


class AnalysisCache:
    """Stores synthesized results with a time-to-live, optionally mirrored to a JSON file."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        clock: Callable[[], float] = time.time,
        max_entries: int = 256,
    ) -> None:
        self._path = path
        self._clock = clock
        self._max_entries = max_entries
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        self.logger = get_logger("stores.analysis_cache")
        if self._path is not None:
            self._load(self._path)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[SynthesizedContext]:
        entry = self._entries.get(key)
        if not entry:
            return None
        expires_at = entry.get("expires_at")
        if isinstance(expires_at, (int, float)) and expires_at <= self._clock():
            self._entries.pop(key, None)
            self._dirty = True
            return None
        value = entry.get("value")
        if isinstance(value, SynthesizedContext):
            return value
        try:
            restored = SynthesizedContext.model_validate(value)
        except ValidationError:
            self.logger.debug("Dropping unreadable cache entry %s", key)
            self._entries.pop(key, None)
            self._dirty = True
            return None
        entry["value"] = restored
        return restored

    def set(self, key: str, value: SynthesizedContext, ttl: float) -> None:
        if ttl <= 0:
            return
        self._entries[key] = {
            "value": value,
            "expires_at": self._clock() + ttl,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        if len(self._entries) > self._max_entries:
            oldest = min(self._entries, key=lambda k: float(self._entries[k]["expires_at"]))  # type: ignore[arg-type]
            self._entries.pop(oldest, None)
        self._dirty = True

    def prune_expired(self) -> int:
        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if isinstance(entry.get("expires_at"), (int, float)) and entry["expires_at"] <= now  # type: ignore[operator]
        ]
        for key in expired:
            self._entries.pop(key, None)
        if expired:
            self._dirty = True
        return len(expired)

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        self.prune_expired()
        entries: Dict[str, Dict[str, object]] = {}
        for key, entry in self._entries.items():
            value = entry.get("value")
            if isinstance(value, SynthesizedContext):
                value = value.model_dump(mode="json", by_alias=True)
            entries[key] = {**entry, "value": value}
        payload = {
            "version": _CACHE_VERSION,
            "entries": entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            self.logger.debug("Ignoring unreadable cache file %s", path)
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        valid_entries: Dict[str, Dict[str, object]] = {}
        for key, raw in entries.items():
            if not isinstance(key, str) or not isinstance(raw, dict):
                continue
            if not isinstance(raw.get("value"), dict) or not isinstance(raw.get("expires_at"), (int, float)):
                continue
            valid_entries[key] = raw
        self._entries = valid_entries
        self._dirty = False


__all__ = ["AnalysisCache", "CacheStore"]
