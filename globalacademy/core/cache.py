"""
In-process TTL cache for translated strings
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
import time

from globalacademy.core.logging import get_logger, metrics_logger
from globalacademy.utils.language import LanguageCode

logger = get_logger(__name__)

CacheKey = Tuple[str, LanguageCode, LanguageCode]


@dataclass
class CachedTranslation:
    source_text: str
    source_language: LanguageCode
    target_language: LanguageCode
    translated_text: str
    timestamp: float

    @property
    def key(self) -> CacheKey:
        return (self.source_text, self.source_language, self.target_language)


class TranslationCache:
    """Translations keyed by (text, source, target) with time-based expiry.

    Entries live for ``ttl_seconds`` after they were stored. Once the
    population passes ``max_entries`` the cache keeps only the ``trim_to``
    most recently stored entries (drop-oldest, reads do not refresh an entry).

    There is no locking: every mutation replaces the mapping or a single key,
    so concurrent requests can at worst repeat a backend call.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 1000,
        trim_to: int = 500,
        clock: Callable[[], float] = time.time,
    ):
        if trim_to <= 0 or trim_to >= max_entries:
            raise ValueError("trim_to must be positive and smaller than max_entries")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.trim_to = trim_to
        self._clock = clock
        self._entries: Dict[CacheKey, CachedTranslation] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def now(self) -> float:
        return self._clock()

    def lookup(self, text: str, source: LanguageCode, target: LanguageCode) -> Optional[str]:
        self.evict_expired()
        entry = self._entries.get((text, source, target))
        return entry.translated_text if entry else None

    def store(self, entry: CachedTranslation) -> None:
        self._entries[entry.key] = entry
        if len(self._entries) > self.max_entries:
            newest = sorted(self._entries.values(), key=lambda e: e.timestamp)[-self.trim_to:]
            self._entries = {e.key: e for e in newest}
            logger.info("Translation cache trimmed",
                        kept=len(self._entries),
                        max_entries=self.max_entries)
        metrics_logger.log_cache_size(len(self._entries))

    def evict_expired(self) -> int:
        """Drop every entry older than the TTL; returns how many were removed."""
        cutoff = self.now() - self.ttl_seconds
        fresh = {k: e for k, e in self._entries.items() if e.timestamp > cutoff}
        removed = len(self._entries) - len(fresh)
        if removed:
            self._entries = fresh
            metrics_logger.log_cache_size(len(fresh))
            logger.debug("Expired translations evicted", removed=removed)
        return removed

    def clear(self) -> None:
        self._entries = {}
        metrics_logger.log_cache_size(0)
