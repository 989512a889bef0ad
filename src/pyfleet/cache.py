"""Keyed, revalidating cache of server entities.

Entries are addressed by tuple keys (see :class:`VehicleKeys`) so related
entries can be invalidated together by prefix. The cache is the only place
that stores fetched entities; consumers read through :meth:`EntityCache.fetch`
and mutations reconcile through :meth:`write`, :meth:`invalidate` and
:meth:`remove`.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from pyfleet._constants import DEFAULT_STALE_AFTER

_logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[Hashable, ...]
CacheListener = Callable[[CacheKey], None]


class VehicleKeys:
    """Hierarchical cache keys for vehicle data.

    ``maintenance(id)`` sits under ``detail(id)``, so invalidating a
    vehicle's detail key also invalidates its maintenance history.
    """

    ALL: CacheKey = ("vehicles",)

    @classmethod
    def lists(cls) -> CacheKey:
        return (*cls.ALL, "list")

    @classmethod
    def details(cls) -> CacheKey:
        return (*cls.ALL, "detail")

    @classmethod
    def detail(cls, vehicle_id: int) -> CacheKey:
        return (*cls.details(), vehicle_id)

    @classmethod
    def maintenance(cls, vehicle_id: int) -> CacheKey:
        return (*cls.detail(vehicle_id), "maintenance")


def _copy_value(value: Any) -> Any:
    # Entities are frozen models; only the containers need copying.
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def _matches(key: CacheKey, prefix: CacheKey) -> bool:
    return key[: len(prefix)] == prefix


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached value. Entries are replaced, never edited in place."""

    value: Any
    fetched_at: float
    stale: bool = False


class EntityCache:
    """Async cache with staleness, in-flight de-duplication and listeners.

    Ordering: results are stored in completion order, so a load finishing
    after a :meth:`write` overwrites it. :meth:`invalidate` detaches loads
    in flight for matching keys, so the next :meth:`fetch` starts a new
    load. A detached load still resolves its own callers; its result is
    stored as stale, and only if nothing was stored for the key since it
    started. A load that started before a :meth:`remove` resolves its
    callers without re-creating the entry.
    """

    def __init__(
        self,
        *,
        stale_after: float = DEFAULT_STALE_AFTER,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_after = stale_after
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, asyncio.Task[Any]] = {}
        self._invalidations: dict[CacheKey, int] = {}
        self._removals: dict[CacheKey, int] = {}
        self._writes: dict[CacheKey, int] = {}
        self._listeners: list[CacheListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if entry.stale:
            return False
        return (self._clock() - entry.fetched_at) < self._stale_after

    def get(self, key: Sequence[Hashable]) -> Any | None:
        """Return the cached value (fresh or stale) without loading."""
        entry = self._entries.get(tuple(key))
        if entry is None:
            return None
        return _copy_value(entry.value)

    def is_fresh(self, key: Sequence[Hashable]) -> bool:
        entry = self._entries.get(tuple(key))
        return entry is not None and self._is_fresh(entry)

    def is_loading(self, key: Sequence[Hashable]) -> bool:
        return tuple(key) in self._inflight

    def __contains__(self, key: object) -> bool:
        return isinstance(key, tuple) and key in self._entries

    async def fetch(self, key: Sequence[Hashable], loader: Callable[[], Awaitable[T]]) -> T:
        """Return the value for *key*, loading it when missing or stale.

        Concurrent callers for the same key share one load. Cancelling a
        caller does not cancel the shared load; its result is still stored
        for everyone else.
        """
        cache_key = tuple(key)
        entry = self._entries.get(cache_key)
        if entry is not None and self._is_fresh(entry):
            _logger.debug("Cache hit %s", cache_key)
            return _copy_value(entry.value)  # type: ignore[no-any-return]

        task = self._inflight.get(cache_key)
        if task is None:
            _logger.debug("Cache miss %s; loading", cache_key)
            task = asyncio.ensure_future(
                self._load(
                    cache_key,
                    loader,
                    invalidations=self._invalidations.get(cache_key, 0),
                    removals=self._removals.get(cache_key, 0),
                    writes=self._writes.get(cache_key, 0),
                )
            )
            self._inflight[cache_key] = task
            task.add_done_callback(functools.partial(self._load_done, cache_key))
        else:
            _logger.debug("Joining in-flight load for %s", cache_key)

        value = await asyncio.shield(task)
        return _copy_value(value)  # type: ignore[no-any-return]

    async def _load(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[Any]],
        *,
        invalidations: int,
        removals: int,
        writes: int,
    ) -> Any:
        value = await loader()
        if self._removals.get(key, 0) != removals:
            _logger.debug("Not storing load result for %s; entry was removed meanwhile", key)
            return value
        stale = self._invalidations.get(key, 0) != invalidations
        if stale and self._writes.get(key, 0) != writes:
            _logger.debug("Dropping detached load result for %s; a newer value was stored", key)
            return value
        self._store(key, value, stale=stale)
        return value

    def _load_done(self, key: CacheKey, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.debug("Load for %s failed: %s", key, exc)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _store(self, key: CacheKey, value: Any, *, stale: bool = False) -> None:
        self._writes[key] = self._writes.get(key, 0) + 1
        self._entries[key] = CacheEntry(value=_copy_value(value), fetched_at=self._clock(), stale=stale)
        self._notify(key)

    def write(self, key: Sequence[Hashable], value: Any) -> None:
        """Seed or overwrite an entry and mark it fresh."""
        cache_key = tuple(key)
        _logger.debug("Cache write %s", cache_key)
        self._store(cache_key, value)

    def invalidate(self, prefix: Sequence[Hashable]) -> int:
        """Mark every entry whose key starts with *prefix* as stale.

        Loads in flight for matching keys are detached: the next fetch
        starts a new load, and the detached result is stored as stale.
        Returns the number of stored entries that were marked.
        """
        cache_prefix = tuple(prefix)
        for key in list(self._inflight):
            if _matches(key, cache_prefix):
                self._invalidations[key] = self._invalidations.get(key, 0) + 1
                del self._inflight[key]
                _logger.debug("Detached in-flight load for %s", key)

        marked: list[CacheKey] = []
        for key, entry in list(self._entries.items()):
            if not _matches(key, cache_prefix):
                continue
            self._invalidations[key] = self._invalidations.get(key, 0) + 1
            if not entry.stale:
                self._entries[key] = CacheEntry(value=entry.value, fetched_at=entry.fetched_at, stale=True)
            marked.append(key)

        _logger.debug("Invalidated %d entr(ies) under %s", len(marked), cache_prefix)
        for key in marked:
            self._notify(key)
        return len(marked)

    def remove(self, key: Sequence[Hashable]) -> bool:
        """Evict an entry entirely. Returns ``True`` if one was stored."""
        cache_key = tuple(key)
        self._removals[cache_key] = self._removals.get(cache_key, 0) + 1
        existed = self._entries.pop(cache_key, None) is not None
        _logger.debug("Cache remove %s (existed=%s)", cache_key, existed)
        if existed:
            self._notify(cache_key)
        return existed

    def clear(self) -> None:
        keys = list(self._entries)
        for key in keys:
            self.remove(key)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """Call *listener* with the key after every change to an entry."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, key: CacheKey) -> None:
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception:
                _logger.warning("Cache listener failed for %s", key, exc_info=True)
