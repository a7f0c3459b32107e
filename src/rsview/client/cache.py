"""
Result Cache.

Content-addressed store for AnalysisResults. Keys are fingerprints of the
submitted source text; capacity is bounded and eviction is FIFO by insertion
order (a hit does not refresh an entry).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..config import DEFAULT_CACHE_SIZE
from ..core.types import AnalysisResult, CacheEntry

logger = logging.getLogger(__name__)

_MASK_64 = (1 << 64) - 1


def fingerprint(text: str) -> str:
    """
    Fingerprint source text with a 64-bit polynomial rolling hash.

    Deterministic across processes, so it can key a shared cache.

    Args:
        text: Any string, including the empty string.

    Returns:
        str: ``code_`` followed by 16 lowercase hex digits.
    """
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & _MASK_64
    return f"code_{h:016x}"


@dataclass
class CacheStats:
    """
    Counters for one ResultCache.

    Attributes:
        entries: Entries currently held.
        capacity: Maximum entries.
        hits: Lookups that returned a result.
        misses: Lookups that found nothing.
        evictions: Entries dropped to make room.
    """

    entries: int
    capacity: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return round(self.hits / total, 4) if total else 0.0


class ResultCache:
    """Bounded FIFO cache of AnalysisResults keyed by fingerprint."""

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE, enabled: bool = True):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._enabled = enabled
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)
        if not self._enabled:
            self.clear()

    def get(self, key: str) -> Optional[AnalysisResult]:
        if not self._enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            logger.debug(f"Cache miss: {key}")
            return None

        self._hits += 1
        logger.debug(f"Cache hit: {key}")
        return entry.result

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, result: AnalysisResult) -> None:
        """
        Store ``result`` under ``key``.

        Replacing an existing key keeps its insertion position. Inserting a
        new key at capacity evicts the oldest-inserted entry first.
        """
        if not self._enabled:
            return

        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict_oldest()

        self._entries[key] = CacheEntry(fingerprint=key, result=result)

    def _evict_oldest(self) -> None:
        oldest = next(iter(self._entries))
        del self._entries[oldest]
        self._evictions += 1
        logger.debug(f"Cache evicted: {oldest}")

    def clear(self) -> None:
        self._entries.clear()

    def get_stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._entries),
            capacity=self.max_size,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
