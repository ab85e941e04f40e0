"""In-memory per-project task cache.

One entry per project cache key (see ``core.identifiers.build_cache_key``).
The cache is an explicit object owned by whoever composes the sync engine;
there is no module-level instance.

Entries are read-modify-written on the event loop thread only, so each
``mutate`` call is atomic relative to other mutations.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from core.identifiers import CacheKey, is_disabled_key
from core.project_task import ProjectTask

logger = logging.getLogger("checklist_sync.cache")

TaskMutator = Callable[[List[ProjectTask]], List[ProjectTask]]


@dataclass
class CacheEntry:
    tasks: List[ProjectTask] = field(default_factory=list)
    stale: bool = False
    # generation of the refetch that last replaced this entry
    generation: int = 0
    fetched: bool = False


class TaskCache:
    def __init__(self) -> None:
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._next_generation = 0

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[CacheKey]:
        return iter(list(self._entries))

    def get(self, key: CacheKey) -> Optional[List[ProjectTask]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return list(entry.tasks)

    def replace(self, key: CacheKey, tasks: List[ProjectTask], generation: Optional[int] = None) -> bool:
        """Swap in an authoritative task list.

        With ``generation`` (from ``begin_fetch``), a result older than the one
        already applied is rejected and False is returned.
        """
        if is_disabled_key(key):
            return False
        entry = self._entries.setdefault(key, CacheEntry())
        if generation is not None:
            if generation < entry.generation:
                logger.debug("rejecting stale refetch for %s (gen %s < %s)", key[1], generation, entry.generation)
                return False
            entry.generation = generation
        entry.tasks = list(tasks)
        entry.stale = False
        entry.fetched = True
        logger.debug("cache replaced for %s: %s tasks", key[1], len(entry.tasks))
        return True

    def mutate(self, key: CacheKey, fn: TaskMutator) -> List[ProjectTask]:
        """Apply a functional update to an entry, creating it when missing."""
        if is_disabled_key(key):
            return []
        entry = self._entries.setdefault(key, CacheEntry())
        entry.tasks = list(fn(list(entry.tasks)))
        logger.debug("cache mutated for %s: %s tasks", key[1], len(entry.tasks))
        return list(entry.tasks)

    def invalidate(self, key: CacheKey) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            entry.stale = True

    def is_stale(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def has_fetched(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return bool(entry and entry.fetched)

    def begin_fetch(self, key: CacheKey) -> int:
        """Token ordering refetches by start time."""
        self._next_generation += 1
        return self._next_generation

    def drop(self, key: CacheKey) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug("cache entry dropped for %s", key[1])

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["CacheEntry", "TaskCache", "TaskMutator"]
