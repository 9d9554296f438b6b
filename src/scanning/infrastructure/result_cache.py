"""
Кэш результатов сканирования.

Повторный снимок той же таблички с теми же настройками не гоняется через
OCR заново. Ключ - SHA-256 от изображения и ScanConfig.
LRU вытеснение + TTL.
"""

import hashlib
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

from config.settings import SCAN_CACHE_MAX_SIZE, SCAN_CACHE_TTL_SECONDS
from contracts.scan_dto import RobustScanResult, ScanConfig


@dataclass
class CacheStats:
    """Статистика кэша."""
    size: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class ScanResultCache:
    """
    In-memory LRU/TTL кэш RobustScanResult.

    Один кэш на оркестратор (на сессию).
    """

    def __init__(
        self,
        max_size: int = SCAN_CACHE_MAX_SIZE,
        ttl_seconds: float = SCAN_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, RobustScanResult]]" = OrderedDict()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(image_data_uri: str, config: ScanConfig) -> str:
        digest = hashlib.sha256()
        digest.update(image_data_uri.encode("utf-8", errors="replace"))
        digest.update(config.model_dump_json().encode("utf-8"))
        return digest.hexdigest()

    def get(self, key: str) -> Optional[RobustScanResult]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        stored_at, result = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            self._misses += 1
            logger.debug(f"[ScanResultCache] Запись устарела: {key[:12]}")
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return result.model_copy(deep=True)

    def put(self, key: str, result: RobustScanResult) -> None:
        if self.max_size <= 0:
            return

        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = (self._clock(), result.model_copy(deep=True))

        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"[ScanResultCache] Вытеснено: {evicted[:12]}")

    def clear(self) -> None:
        self._entries.clear()
        logger.info("[ScanResultCache] Кэш очищен")

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), hits=self._hits, misses=self._misses)

    def to_dict(self) -> Dict[str, float]:
        stats = self.stats()
        return {"size": stats.size, "hits": stats.hits, "misses": stats.misses, "hit_rate": stats.hit_rate}
