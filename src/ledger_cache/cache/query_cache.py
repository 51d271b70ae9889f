"""Keyed cache of server resources.

The QueryCache is the single shared mutable state of the data layer. It is
only ever changed through ``request`` (loads) and ``invalidate`` (staleness),
and all changes happen synchronously between awaits on one event loop, so no
locking is needed.

Guarantees:
- At most one loader call per key is in flight for concurrent requests.
- A failed load keeps the previous value visible and marks the entry ``error``.
- Responses are timestamp-gated: a fetch issued before the stored value was
  fetched never overwrites it, whatever order responses arrive in.
- Loads run in their own task; a caller that is cancelled walks away while the
  result still lands in the cache.
"""

import asyncio
import math
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable

from ledger_cache.entities import CacheEntry, CacheStatus, KeyPattern, ResourceKey
from ledger_cache.logging import get_logger

Loader = Callable[[], Awaitable[Any]]
Subscriber = Callable[[CacheEntry], None]


@dataclass
class _Fetch:
    """One in-flight load of a key."""

    issued_at: float
    task: "asyncio.Task[Any] | None" = field(default=None, repr=False)


def _consume_exception(task: "asyncio.Task[Any]") -> None:
    # Background refetches may have no awaiting caller.
    if not task.cancelled():
        task.exception()


def _hits(target: ResourceKey | KeyPattern, key: ResourceKey) -> bool:
    if isinstance(target, KeyPattern):
        return target.matches(key)
    return target == key


class QueryCache:
    """Process-wide store of fetched resource states.

    Example:
        ```python
        cache = QueryCache()

        teams = await cache.request(keys.teams(), client.list_teams)
        cache.get(keys.teams()).status  # CacheStatus.FRESH

        cache.invalidate(keys.teams())
        cache.get(keys.teams()).status  # CacheStatus.STALE, value still readable
        ```
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        """Initialize an empty cache.

        Args:
            clock: Timestamp source for fetch ordering. Defaults to time.monotonic.
        """
        self._clock = clock or time.monotonic
        self._last_tick = -math.inf
        self._entries: dict[ResourceKey, CacheEntry] = {}
        self._loaders: dict[ResourceKey, Loader] = {}
        self._inflight: dict[ResourceKey, _Fetch] = {}
        self._invalidated_at: dict[ResourceKey, float] = {}
        self._subscribers: dict[ResourceKey, list[Subscriber]] = {}
        self._logger = get_logger("ledger_cache.query_cache")

    def get(self, key: ResourceKey) -> CacheEntry | None:
        """Return the current entry snapshot for a key, or None if never requested."""
        return self._entries.get(key)

    def keys(self) -> list[ResourceKey]:
        return list(self._entries)

    async def request(self, key: ResourceKey, loader: Loader) -> Any:
        """Read a resource through the cache.

        - fresh: returns the cached value without calling ``loader``
        - loading: awaits the fetch already in flight
        - absent, stale or error: calls ``loader`` and stores the outcome

        Args:
            key: Resource key
            loader: Zero-argument coroutine function fetching the resource

        Returns:
            The resource value

        Raises:
            Exception: Whatever ``loader`` raised, for callers awaiting that load
        """
        self._loaders[key] = loader
        entry = self._entries.get(key)

        if entry is not None and entry.status is CacheStatus.FRESH:
            return entry.value

        fetch = self._inflight.get(key)
        if fetch is None or entry is None or entry.status is not CacheStatus.LOADING:
            fetch = self._start(key, loader)

        return await asyncio.shield(fetch.task)

    def invalidate(self, *targets: ResourceKey | KeyPattern) -> list[ResourceKey]:
        """Mark matching entries stale and refetch the ones being watched.

        Stale entries keep their last value so consumers can keep showing it
        while a refetch is pending. Keys never requested are ignored. A key
        matched by several targets is invalidated (and refetched) once.

        Args:
            targets: Concrete keys and/or key patterns

        Returns:
            The keys that were marked stale
        """
        matched = [key for key in self._entries if any(_hits(target, key) for target in targets)]

        now = self._now()
        for key in matched:
            self._invalidated_at[key] = now
            entry = self._entries[key]
            if entry.status is not CacheStatus.STALE:
                self._set(replace(entry, status=CacheStatus.STALE))

        if matched:
            self._logger.debug(
                "Invalidated",
                targets=[str(target) for target in targets],
                keys=[str(key) for key in matched],
            )

        for key in matched:
            if self._subscribers.get(key) and key in self._loaders:
                self._refetch(key)

        return matched

    def subscribe(self, key: ResourceKey, callback: Subscriber) -> Callable[[], None]:
        """Watch a key.

        The callback receives every new entry snapshot for the key. While at
        least one subscriber is registered, invalidating the key triggers an
        immediate refetch.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(key, None)

        return unsubscribe

    def stats(self) -> dict[str, int]:
        """Count entries per status plus in-flight loads and watched keys."""
        counts = {status.value: 0 for status in CacheStatus}
        for entry in self._entries.values():
            counts[entry.status.value] += 1
        counts["total"] = len(self._entries)
        counts["in_flight"] = len(self._inflight)
        counts["subscribed"] = len(self._subscribers)
        return counts

    async def aclose(self) -> None:
        """Cancel in-flight loads at process teardown."""
        tasks = [fetch.task for fetch in self._inflight.values() if fetch.task is not None]
        self._inflight.clear()
        self._subscribers.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _now(self) -> float:
        # Strictly increasing, even if the clock repeats a reading.
        now = self._clock()
        if now <= self._last_tick:
            now = math.nextafter(self._last_tick, math.inf)
        self._last_tick = now
        return now

    def _start(self, key: ResourceKey, loader: Loader) -> _Fetch:
        previous = self._entries.get(key)
        fetch = _Fetch(issued_at=self._now())

        self._set(
            CacheEntry(
                key=key,
                value=previous.value if previous else None,
                status=CacheStatus.LOADING,
                last_updated=previous.last_updated if previous else None,
            )
        )

        fetch.task = asyncio.get_running_loop().create_task(self._run(key, loader, fetch))
        fetch.task.add_done_callback(_consume_exception)
        self._inflight[key] = fetch
        return fetch

    def _refetch(self, key: ResourceKey) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the next request() refetches the stale entry.
            return
        self._start(key, self._loaders[key])

    async def _run(self, key: ResourceKey, loader: Loader, fetch: _Fetch) -> Any:
        self._logger.debug("Fetch started", key=str(key))
        try:
            value = await loader()
        except Exception as exc:
            self._settle_error(key, fetch, exc)
            raise
        return self._settle(key, fetch, value)

    def _settle(self, key: ResourceKey, fetch: _Fetch, value: Any) -> Any:
        current = self._entries[key]
        is_current = self._inflight.get(key) is fetch
        if is_current:
            del self._inflight[key]

        if current.last_updated is not None and fetch.issued_at < current.last_updated:
            self._logger.debug(
                "Discarded out-of-order response",
                key=str(key),
                issued_at=fetch.issued_at,
                last_updated=current.last_updated,
            )
            return current.value

        if self._invalidated_at.get(key, -math.inf) > fetch.issued_at:
            # Issued before the latest invalidation: value may predate a mutation.
            status = CacheStatus.LOADING if key in self._inflight else CacheStatus.STALE
        elif key in self._inflight:
            status = CacheStatus.LOADING
        else:
            status = CacheStatus.FRESH

        self._set(CacheEntry(key=key, value=value, status=status, last_updated=fetch.issued_at))
        self._logger.debug("Fetch settled", key=str(key), status=status.value)
        return value

    def _settle_error(self, key: ResourceKey, fetch: _Fetch, exc: Exception) -> None:
        if self._inflight.get(key) is not fetch:
            # Superseded by a newer fetch, which decides the entry's state.
            self._logger.debug("Ignored superseded failure", key=str(key), error=str(exc))
            return

        del self._inflight[key]
        current = self._entries[key]
        self._set(replace(current, status=CacheStatus.ERROR, error=exc))
        self._logger.warning("Fetch failed", key=str(key), error=str(exc))

    def _set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry
        for callback in list(self._subscribers.get(entry.key, ())):
            try:
                callback(entry)
            except Exception:
                self._logger.exception("Subscriber failed", key=str(entry.key))
