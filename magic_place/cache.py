"""
Heatmap Cache

Memoizes built heatmaps per (image source, original width, original
height). The store is an explicit object so hosts and tests can own and
reset it; get_heatmap() falls back to a process-wide default instance.
"""

import hashlib
import os
import threading
from collections import OrderedDict
from typing import Callable, Optional

import numpy as np
from PIL import Image

from .config import CACHE_MAX_ENTRIES
from .heatmap import Heatmap, ImageSource, build_heatmap
from .logging_config import get_logger

logger = get_logger('cache')


def source_identity(source: ImageSource) -> str:
    """
    Deterministic identity string for an image source.

    Paths and URLs identify themselves; in-memory sources (bytes, pixel
    arrays, PIL images) are identified by a SHA-1 of their content.
    """
    if isinstance(source, str):
        return source
    if isinstance(source, os.PathLike):
        return os.fspath(source)

    digest = hashlib.sha1()
    if isinstance(source, (bytes, bytearray, memoryview)):
        digest.update(bytes(source))
    elif isinstance(source, np.ndarray):
        digest.update(str((source.shape, source.dtype.str)).encode())
        digest.update(np.ascontiguousarray(source).tobytes())
    elif isinstance(source, Image.Image):
        digest.update(f"{source.mode}:{source.size}".encode())
        digest.update(source.tobytes())
    else:
        return f"{type(source).__name__}:{id(source)}"
    return f"sha1:{digest.hexdigest()}"


def make_cache_key(source_id: str, original_width: int, original_height: int) -> str:
    return f"{source_id}@{original_width}x{original_height}"


class HeatmapCache:
    """Build-or-fetch store for heatmaps, optionally LRU-bounded."""

    def __init__(self, max_entries: Optional[int] = None):
        """
        Initialize cache.

        Args:
            max_entries: Keep at most this many heatmaps, evicting the least
                recently used; None for unbounded
        """
        if max_entries is not None and max_entries <= 0:
            raise ValueError(f"max_entries must be positive or None, got {max_entries}")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Heatmap]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Optional[Heatmap]:
        with self._lock:
            heatmap = self._entries.get(key)
            if heatmap is not None:
                self._entries.move_to_end(key)
            return heatmap

    def get_or_build(self, key: str, builder: Callable[[], Heatmap]) -> Heatmap:
        """
        Return the cached heatmap for key, building and storing it on a miss.

        The builder runs outside the lock; if two callers race on the same
        key, the first stored result is kept and returned to both.
        """
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                logger.debug(f"Cache hit: {key[:80]}")
                return cached
            self.misses += 1

        logger.debug(f"Cache miss, building: {key[:80]}")
        heatmap = builder()

        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                self._entries.move_to_end(key)
                return existing
            self._entries[key] = heatmap
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"Cache evicted: {evicted[:80]}")
        return heatmap

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0


# Global default instance
_default_cache: Optional[HeatmapCache] = None
_default_cache_lock = threading.Lock()


def default_cache() -> HeatmapCache:
    """Get or create the process-wide cache (singleton)."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = HeatmapCache(max_entries=CACHE_MAX_ENTRIES)
        return _default_cache


def get_heatmap(
    source: ImageSource,
    original_width: int,
    original_height: int,
    cache: Optional[HeatmapCache] = None
) -> Heatmap:
    """
    Build or fetch the heatmap for an image.

    Args:
        source: Image source (path, URL, data URL, bytes, array or PIL image)
        original_width: Image width in the caller's pixel space
        original_height: Image height in the caller's pixel space
        cache: Store to use (default: process-wide cache)

    Returns:
        Heatmap shared with other callers; treat as read-only
    """
    store = cache if cache is not None else default_cache()
    key = make_cache_key(source_identity(source), original_width, original_height)
    return store.get_or_build(
        key, lambda: build_heatmap(source, original_width, original_height)
    )
