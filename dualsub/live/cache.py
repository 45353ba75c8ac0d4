from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

log = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


class TranslationCache:
    """
    Insertion-ordered memo of translations keyed by (provider, target language, text).

    When a new key arrives at capacity the oldest half is dropped in one go
    instead of one entry per insert.
    """

    def __init__(self, max_size: int = 500, name: str = "translation"):
        if max_size < 2:
            raise ValueError("cache max_size must be >= 2")
        self.max_size = int(max_size)
        self.name = name
        self._entries: Dict[CacheKey, str] = {}

    @staticmethod
    def _key(provider: str, lang: str, text: str) -> CacheKey:
        return (provider, lang, text)

    def get(self, provider: str, lang: str, text: str) -> Optional[str]:
        return self._entries.get(self._key(provider, lang, text))

    def put(self, provider: str, lang: str, text: str, translation: str) -> None:
        key = self._key(provider, lang, text)
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict_oldest_half()
        self._entries[key] = translation

    def _evict_oldest_half(self) -> None:
        drop = self.max_size // 2
        for key in list(self._entries)[:drop]:
            del self._entries[key]
        log.debug("cache_evicted", extra={"cache": self.name, "evicted": drop, "size": len(self._entries)})

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries
