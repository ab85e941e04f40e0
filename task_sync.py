"""Composition root: one cache and one store client shared by every open project.

``TaskSyncSession`` owns the ``TaskCache`` and hands out a ``TaskSyncEngine``
per project. Closing a project aborts its pending re-verifications and drops
its cache entry.
"""

import logging
from typing import Dict, List, Optional

import requests

from application.sync_engine import TaskSyncEngine
from config import SyncSettings, load_settings
from core.errors import ConsistencyWarning
from core.identifiers import build_cache_key, is_disabled_key
from infrastructure.task_cache import TaskCache
from infrastructure.task_store import AsyncTaskStore, TaskStoreClient
from util.debug_flags import configure_logging
from util.sync_status import sync_status_label

logger = logging.getLogger("checklist_sync")


class TaskSyncSession:
    def __init__(
        self,
        settings: Optional[SyncSettings] = None,
        store=None,
        cache: Optional[TaskCache] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings or load_settings()
        if store is None:
            client = TaskStoreClient(
                self.settings.base_url,
                session=session,
                token_provider=lambda: self.settings.token,
                timeout=self.settings.request_timeout,
            )
            store = AsyncTaskStore(client)
        self.store = store
        self.cache = cache or TaskCache()
        self._engines: Dict[str, TaskSyncEngine] = {}
        self._warnings: List[ConsistencyWarning] = []

    def engine(self, project_id: Optional[str]) -> TaskSyncEngine:
        """Engine for a project; invalid ids get a disabled engine that never hits the network."""
        key = build_cache_key(project_id)
        if is_disabled_key(key):
            return TaskSyncEngine(
                project_id, self.store, self.cache, verify_delay=self.settings.verify_delay
            )
        engine = self._engines.get(key[1])
        if engine is None or engine.abort.aborted:
            engine = TaskSyncEngine(
                key[1],
                self.store,
                self.cache,
                verify_delay=self.settings.verify_delay,
                on_warning=self._warnings.append,
            )
            self._engines[key[1]] = engine
        return engine

    def open_projects(self) -> List[str]:
        return list(self._engines)

    def close_project(self, project_id: str) -> None:
        key = build_cache_key(project_id)
        if is_disabled_key(key):
            return
        engine = self._engines.pop(key[1], None)
        if engine is not None:
            engine.close()
        else:
            self.cache.drop(key)

    def close(self) -> None:
        for project_id in list(self._engines):
            self.close_project(project_id)

    def consume_warnings(self) -> List[ConsistencyWarning]:
        warnings = list(self._warnings)
        self._warnings.clear()
        for engine in self._engines.values():
            engine.consume_warnings()
        return warnings

    def status_label(self, project_id: Optional[str]) -> str:
        """Footer label for a project; projects not open yet read as idle."""
        key = build_cache_key(project_id)
        engine = None if is_disabled_key(key) else self._engines.get(key[1])
        if engine is None:
            engine = TaskSyncEngine(project_id, self.store, self.cache)
        return sync_status_label(engine.status_snapshot())

    async def wait_idle(self) -> None:
        for engine in list(self._engines.values()):
            await engine.wait_idle()


def open_session(settings: Optional[SyncSettings] = None) -> TaskSyncSession:
    """Session configured from the user config, with debug flags applied."""
    settings = settings or load_settings()
    enabled = configure_logging(settings.debug)
    if enabled:
        logger.debug("debug flags: %s", ", ".join(enabled))
    return TaskSyncSession(settings)


__all__ = ["TaskSyncSession", "open_session"]
