"""Topic selector matching with optional caching of compiled templates."""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from typing import Any

from cachetools import LRUCache

from .templates import TemplateError, template_regexp

DEFAULT_TOPIC_SELECTOR_STORE_LRU_MAX_ENTRIES_PER_SHARD = 10_000
DEFAULT_TOPIC_SELECTOR_STORE_LRU_SHARD_COUNT = 256
TOPIC_SELECTOR_STORE_RISTRETTO_DEFAULT_CACHE_NUM_COUNTERS = 60_000_000
TOPIC_SELECTOR_STORE_RISTRETTO_CACHE_MAX_COST = 100_000_000


class TopicSelectorStore:
    """Matches topics against selectors, caching compiled templates and results."""

    def __init__(self, cache: Any = None, skip_select: bool = False) -> None:
        self.cache = cache
        self.skip_select = skip_select

    def match(self, topic: str, topic_selector: str) -> bool:
        """Tell whether ``topic`` is selected by ``topic_selector``."""
        if topic_selector == "*" or topic == topic_selector:
            return True
        key = f"m_{topic_selector}_{topic}"
        if self.cache is not None and (cached := self.cache.get(key)) is not None:
            return cached
        pattern = self.get_regexp(topic_selector)
        if pattern is None:
            return False
        matched = pattern.fullmatch(topic) is not None
        if self.cache is not None:
            self.cache.set(key, matched, 4)
        return matched

    def get_regexp(self, topic_selector: str) -> re.Pattern[str] | None:
        """Return the compiled template, or None if the selector is a raw string."""
        if "{" not in topic_selector:
            return None
        key = f"t_{topic_selector}"
        if self.cache is not None and (cached := self.cache.get(key)) is not None:
            return cached
        try:
            pattern = template_regexp(topic_selector)
        except TemplateError:
            return None
        if self.cache is not None:
            self.cache.set(key, pattern, 19)
        return pattern


def _fnv32a(data: bytes) -> int:
    value = 0x811C9DC5
    for byte in data:
        value = ((value ^ byte) * 0x01000193) & 0xFFFFFFFF
    return value


class ShardedLRUCache:
    """LRU cache split into shards chosen by the FNV-1a hash of the key."""

    def __init__(self, max_entries_per_shard: int, shard_count: int) -> None:
        if max_entries_per_shard <= 0 or shard_count <= 0:
            raise ValueError("max_entries_per_shard and shard_count must be positive")
        self._shards = [(LRUCache(max_entries_per_shard), threading.Lock()) for _ in range(shard_count)]

    @property
    def shard_count(self) -> int:
        return len(self._shards)

    def _shard(self, key: str) -> tuple[LRUCache, threading.Lock]:
        return self._shards[_fnv32a(key.encode("utf-8")) % len(self._shards)]

    def get(self, key: str) -> Any:
        """Return the cached value, or None if absent."""
        shard, lock = self._shard(key)
        with lock:
            return shard.get(key)

    def set(self, key: str, value: Any, cost: int = 1) -> bool:
        """Store a value; the cost is ignored."""
        shard, lock = self._shard(key)
        with lock:
            shard[key] = value
        return True


class CostBoundedCache:
    """Cache evicting least recently used entries once their total cost exceeds ``max_cost``."""

    def __init__(self, num_counters: int, max_cost: int) -> None:
        if num_counters <= 0:
            raise ValueError("num_counters can't be zero")
        if max_cost <= 0:
            raise ValueError("max_cost can't be zero")
        self.num_counters = num_counters
        self.max_cost = max_cost
        self._entries: OrderedDict[str, tuple[Any, int]] = OrderedDict()
        self._total_cost = 0
        self._lock = threading.Lock()

    @property
    def total_cost(self) -> int:
        return self._total_cost

    def get(self, key: str) -> Any:
        """Return the cached value, or None if absent."""
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key][0]

    def set(self, key: str, value: Any, cost: int) -> bool:
        """Store a value; return False if it is too costly to be kept."""
        if cost > self.max_cost:
            return False
        with self._lock:
            _, previous_cost = self._entries.pop(key, (None, 0))
            self._entries[key] = (value, cost)
            self._total_cost += cost - previous_cost
            while self._total_cost > self.max_cost or len(self._entries) > self.num_counters:
                self._total_cost -= self._entries.popitem(last=False)[1][1]
        return True


def new_topic_selector_store_lru(max_entries_per_shard: int, shard_count: int) -> TopicSelectorStore:
    """Create a store backed by a sharded LRU cache; 0 entries disables caching."""
    if max_entries_per_shard == 0:
        return TopicSelectorStore()
    shard_count = shard_count or DEFAULT_TOPIC_SELECTOR_STORE_LRU_SHARD_COUNT
    return TopicSelectorStore(ShardedLRUCache(max_entries_per_shard, shard_count), skip_select=True)


def new_topic_selector_store_ristretto(num_counters: int, max_cost: int) -> TopicSelectorStore:
    """Create a store backed by a cost-bounded cache; 0 counters disables caching."""
    if num_counters == 0:
        return TopicSelectorStore()
    try:
        return TopicSelectorStore(CostBoundedCache(num_counters, max_cost))
    except ValueError as err:
        raise ValueError(f"unable to create cache: {err}") from err