"""
Timed caches backing tab completion.

TimedCache
- Explicit map with an insertion timestamp per entry and a fixed time-to-live that
  runs from insertion, whatever happens to the value afterwards.
- Expiry is enforced lazily on lookup and by sweep(), which the cache runs itself
  at most once per sweep interval while it is being used; callers may run it too.
- An optional capacity evicts the oldest insertion first.
- One threading.Lock guards the map; it is never held while user code runs.

TabCompletionCache
- One CacheEntry per sender. A request whose token count matches the entry and
  whose partial extends the entry's partial is answered by narrowing the stored
  suggestions; anything else recomputes. Each entry carries its own lock held for
  the whole lookup/compute/update step, so two requests of one sender cannot lose
  updates while different senders never wait on each other's compute.
"""
import functools
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field

from .utils import fold

logger = logging.getLogger(__name__)


class TimedCache:
    """
    Thread-safe map whose entries expire ttl seconds after insertion.
    """

    def __init__(self, ttl, /, *, sweep=None, capacity=None, clock=time.monotonic):
        if ttl <= 0:
            raise ValueError("timed-cache ttl must be positive")
        if sweep is not None and sweep <= 0:
            raise ValueError("timed-cache sweep interval must be positive")
        if capacity is not None and capacity < 1:
            raise ValueError("timed-cache capacity must be at least 1")
        self._ttl = ttl
        self._sweep = sweep
        self._capacity = capacity
        self._clock = clock
        self._entries = OrderedDict()
        self._lock = threading.Lock()
        self._swept = clock()

    @property
    def ttl(self):
        return self._ttl

    def _expired(self, inserted, now, /):
        return now - inserted >= self._ttl

    def _housekeep(self, now, /):
        if self._sweep is not None and now - self._swept >= self._sweep:
            self._purge(now)

    def _purge(self, now, /):
        expired = [key for key, (inserted, _) in self._entries.items() if self._expired(inserted, now)]
        for key in expired:
            del self._entries[key]
        self._swept = now
        if expired:
            logger.debug("swept %d expired cache entr%s", len(expired), "y" if len(expired) == 1 else "ies")
        return len(expired)

    def _insert(self, key, value, now, /):
        self._entries.pop(key, None)
        self._entries[key] = (now, value)
        while self._capacity is not None and len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("evicted cache entry of %r (capacity %d)", evicted, self._capacity)

    def get(self, key, default=None, /):
        """
        Return the live value for key, or default when absent or expired.
        """
        with self._lock:
            now = self._clock()
            self._housekeep(now)
            try:
                inserted, value = self._entries[key]
            except KeyError:
                return default
            if self._expired(inserted, now):
                del self._entries[key]
                return default
            return value

    def put(self, key, value, /):
        """
        Store value under key; the time-to-live restarts from now.
        """
        with self._lock:
            now = self._clock()
            self._housekeep(now)
            self._insert(key, value, now)

    def setdefault(self, key, factory, /):
        """
        Return the live value for key, inserting factory() first when there is none.
        """
        with self._lock:
            now = self._clock()
            self._housekeep(now)
            entry = self._entries.get(key)
            if entry is not None and not self._expired(entry[0], now):
                return entry[1]
            value = factory()
            self._insert(key, value, now)
            return value

    def remove(self, key, /):
        with self._lock:
            return self._entries.pop(key, (None, None))[1]

    def sweep(self):
        """
        Drop every expired entry now; return how many were dropped.
        """
        with self._lock:
            return self._purge(self._clock())

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __contains__(self, key):
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self):
        with self._lock:
            return len(self._entries)


_MISSING = object()


@dataclass(slots=True)
class CacheEntry:
    """
    Last completion answer for one sender.

    count is the number of tokens of the line it was computed for (None while the
    entry is fresh) and partial the token being completed at that time. Prefixes
    are compared through fold() with case_sensitive, the same way the completer
    filters its candidates.
    """
    suggestions: list[str] = field(default_factory=list)
    count: int | None = None
    partial: str = ""
    case_sensitive: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def narrows(self, count, partial, /):
        """
        Whether a request (count, partial) can be answered from this entry.
        """
        return self.count is not None and self.count == count and self._matches(partial, self.partial)

    def narrow(self, partial, /):
        self.suggestions = [suggestion for suggestion in self.suggestions if self._matches(suggestion, partial)]
        self.partial = partial
        return list(self.suggestions)

    def _matches(self, candidate, partial, /):
        return fold(candidate, self.case_sensitive).startswith(fold(partial, self.case_sensitive))

    def store(self, suggestions, count, partial, /):
        self.suggestions = list(suggestions)
        self.count = count
        self.partial = partial
        return list(self.suggestions)


class TabCompletionCache:
    """
    Per-sender completion cache with prefix narrowing.
    """

    def __init__(self, ttl=120.0, sweep=300.0, capacity=None, /, *, case_sensitive=False, clock=time.monotonic):
        self._cache = TimedCache(ttl, sweep=sweep, capacity=capacity, clock=clock)
        self._factory = functools.partial(CacheEntry, case_sensitive=bool(case_sensitive))

    @classmethod
    def from_settings(cls, settings, /, *, clock=time.monotonic):
        return cls(
            settings.completion_ttl,
            settings.completion_sweep,
            settings.completion_capacity,
            case_sensitive=settings.case_sensitive,
            clock=clock,
        )

    def get_tab_complete_options(self, sender, count, partial, compute, /):
        """
        Answer a completion request for sender.

        count is the token count of the line, partial the token being completed and
        compute a zero-argument callable producing the full suggestion list. compute
        is skipped when the previous answer for the same token count can be narrowed.
        """
        entry = self._cache.setdefault(sender, self._factory)
        with entry.lock:
            if entry.narrows(count, partial):
                logger.debug("narrowing %d cached suggestion(s) to %r", len(entry.suggestions), partial)
                return entry.narrow(partial)
            logger.debug("computing suggestions for %r (token count %d)", partial, count)
            return entry.store(compute(), count, partial)

    def invalidate(self, sender, /):
        self._cache.remove(sender)

    def sweep(self):
        return self._cache.sweep()

    def __len__(self):
        return len(self._cache)


__all__ = (
    "TimedCache",
    "CacheEntry",
    "TabCompletionCache",
)
