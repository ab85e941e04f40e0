"""Task synchronization engine.

Every mutation runs the same sequence against one project's task collection:

1. validate   - resolve identifiers, sanitize ``sourceId``
2. request    - one store call; failures are raised to the caller
3. merge      - optimistic cache update, visible before the server confirms
4. refetch    - invalidate and read the authoritative collection
5. verify     - compare the refetch with the expected post-mutation state
6. reconcile  - replace the cache with the refetch; on mismatch wait
                ``verify_delay`` and re-verify once, then record a
                ``ConsistencyWarning`` if the store still disagrees

Steps 4-6 run as a background task after the mutation call returns. They
never raise: errors there are logged and recorded. The original write is
never retried, only the verification read.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from core.errors import ConsistencyWarning, TaskSyncError, ValidationError
from core.identifiers import (
    build_cache_key,
    extract_canonical_id,
    is_disabled_key,
    is_legacy_numeric_id,
    is_valid_uuid,
    sanitize_source_id,
)
from core.project_task import UNSET, METADATA_FIELDS, ProjectTask, TaskDraft, TaskUpdate
from infrastructure.task_cache import TaskCache
from application.ports import TaskStore

logger = logging.getLogger("checklist_sync.engine")
verify_logger = logging.getLogger("checklist_sync.engine.verify")

OP_CREATE = "create"
OP_UPDATE = "update"
OP_DELETE = "delete"

LOOKUP_EXACT = "exact"
LOOKUP_CLEAN_UUID = "clean-uuid"
LOOKUP_SOURCE_ID = "source-id"

DEFAULT_VERIFY_DELAY = 1.0


class AbortHandle:
    """Teardown signal for a project context.

    Pending re-verifications check it before touching the cache.
    """

    def __init__(self) -> None:
        self._aborted = False
        self.reason: Optional[str] = None

    def abort(self, reason: str = "context closed") -> None:
        self._aborted = True
        self.reason = reason

    @property
    def aborted(self) -> bool:
        return self._aborted


@dataclass(frozen=True)
class TaskIdResolution:
    task_id: str
    method: str
    original_id: str


@dataclass
class Expectation:
    """Post-mutation state a verification refetch must show."""

    operation: str
    task_id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    previous_updated_at: Optional[str] = None


def _values_match(attr: str, expected: Any, actual: Any) -> bool:
    if expected == actual:
        return True
    if attr in METADATA_FIELDS and expected in (None, "") and actual in (None, ""):
        return True
    if attr == "due_date" and isinstance(expected, str) and isinstance(actual, str):
        return expected[:10] == actual[:10]
    return False


def verify_expectation(tasks: List[ProjectTask], expectation: Expectation) -> Optional[str]:
    """Reason the refetched collection contradicts the expectation, or None."""
    found = next((t for t in tasks if t.id == expectation.task_id), None)
    if expectation.operation == OP_DELETE:
        return "task still present after delete" if found is not None else None
    if found is None:
        return f"task missing after {expectation.operation}"
    if expectation.operation == OP_CREATE:
        return None
    if expectation.previous_updated_at is not None and found.updated_at == expectation.previous_updated_at:
        return f"updatedAt unchanged ({found.updated_at})"
    mismatched = [
        f"{attr}: expected {expected!r}, got {found.field_value(attr)!r}"
        for attr, expected in expectation.fields.items()
        if not _values_match(attr, expected, found.field_value(attr))
    ]
    if mismatched:
        return "; ".join(mismatched)
    return None


def _find_by_id(tasks: List[ProjectTask], task_id: str) -> Optional[ProjectTask]:
    wanted = task_id.lower()
    return next((t for t in tasks if t.id and t.id.lower() == wanted), None)


def _find_by_source(tasks: List[ProjectTask], source_id: str) -> Optional[ProjectTask]:
    wanted = source_id.lower() if is_valid_uuid(source_id) else source_id
    for task in tasks:
        if not task.source_id or not is_valid_uuid(task.id):
            continue
        current = task.source_id.lower() if is_valid_uuid(task.source_id) else task.source_id
        if current == wanted:
            return task
    return None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskSyncEngine:
    def __init__(
        self,
        project_id: Optional[str],
        store: TaskStore,
        cache: TaskCache,
        verify_delay: float = DEFAULT_VERIFY_DELAY,
        abort: Optional[AbortHandle] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_warning: Optional[Callable[[ConsistencyWarning], None]] = None,
    ) -> None:
        self.project_id = project_id or ""
        self.cache_key = build_cache_key(project_id)
        if not is_disabled_key(self.cache_key):
            self.project_id = self.cache_key[1]
        self.store = store
        self.cache = cache
        self.verify_delay = verify_delay
        self.abort = abort or AbortHandle()
        self._sleep = sleep
        self._on_warning = on_warning
        self._pending: Set[asyncio.Task] = set()
        self._warnings: List[ConsistencyWarning] = []
        self.last_fetch: Optional[str] = None
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return not is_disabled_key(self.cache_key)

    @property
    def tasks(self) -> List[ProjectTask]:
        if not self.enabled:
            return []
        return self.cache.get(self.cache_key) or []

    def get_task(self, task_id: str) -> Optional[ProjectTask]:
        return next((t for t in self.tasks if t.id == task_id), None)

    async def load_tasks(self, force: bool = False) -> List[ProjectTask]:
        """Fetch the project's tasks unless a fresh cache entry exists.

        With a disabled cache key no request is made and an empty list is
        returned. Store errors propagate; the cache is left as it was.
        """
        if not self.enabled:
            logger.debug("task fetch skipped: project id %r is not usable", self.project_id)
            return []
        if not force and not self.cache.is_stale(self.cache_key):
            return self.tasks
        generation = self.cache.begin_fetch(self.cache_key)
        logger.debug("fetching tasks for project %s", self.project_id)
        tasks = await self.store.list_tasks(self.project_id)
        self.last_fetch = _now()
        if not self.abort.aborted:
            self.cache.replace(self.cache_key, tasks, generation)
        logger.debug("fetched %s tasks for project %s", len(tasks), self.project_id)
        return tasks if self.abort.aborted else self.tasks

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _require_enabled(self) -> None:
        if self.enabled:
            return
        if is_legacy_numeric_id(self.project_id):
            raise ValidationError(f"Legacy numeric project id {self.project_id} is not supported", self.project_id)
        raise ValidationError(f"Invalid project id format: {self.project_id!r}", self.project_id)

    def resolve_task_id(self, task_id: str) -> TaskIdResolution:
        """Canonical database id for a UI-side task reference.

        Order: a UUID as given; a cached task whose sourceId equals the
        reference; for a compound reference, a cached task with the extracted
        UUID as id, then one with it as sourceId, then the bare extracted UUID
        while the project was never fetched. Ids come back lower-cased unless
        the cache holds them otherwise. Raises ``ValidationError`` when none
        applies.
        """
        if not task_id or not isinstance(task_id, str):
            raise ValidationError("Task id is required", task_id)
        tasks = self.tasks
        if is_valid_uuid(task_id):
            cached = _find_by_id(tasks, task_id)
            return TaskIdResolution(cached.id if cached else task_id.lower(), LOOKUP_EXACT, task_id)
        match = _find_by_source(tasks, task_id)
        if match is not None:
            logger.debug("resolved %s via sourceId to task %s", task_id, match.id)
            return TaskIdResolution(match.id, LOOKUP_SOURCE_ID, task_id)
        canonical = extract_canonical_id(task_id)
        if is_valid_uuid(canonical):
            cached = _find_by_id(tasks, canonical)
            if cached is not None:
                logger.debug("resolved compound id %s to task %s", task_id, cached.id)
                return TaskIdResolution(cached.id, LOOKUP_CLEAN_UUID, task_id)
            match = _find_by_source(tasks, canonical)
            if match is not None:
                logger.debug("resolved %s via sourceId %s to task %s", task_id, canonical, match.id)
                return TaskIdResolution(match.id, LOOKUP_SOURCE_ID, task_id)
            if not self.cache.has_fetched(self.cache_key):
                logger.debug("resolved compound id %s to %s without a fetched cache", task_id, canonical)
                return TaskIdResolution(canonical.lower(), LOOKUP_CLEAN_UUID, task_id)
        raise ValidationError(f"Cannot resolve task id {task_id!r} to a stored task", task_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_task(self, draft: TaskDraft) -> ProjectTask:
        self._require_enabled()
        if draft.project_id and draft.project_id.lower() != self.project_id:
            raise ValidationError(
                f"Task belongs to project {draft.project_id}, not {self.project_id}", draft.project_id
            )
        payload = replace(draft, project_id=self.project_id, source_id=sanitize_source_id(draft.source_id))
        logger.debug("creating task for project %s: %s", self.project_id, payload.text)
        created = await self.store.create_task(self.project_id, payload)
        if not is_valid_uuid(created.id):
            logger.warning("store returned non-UUID id %r for new task", created.id)

        def _append(tasks: List[ProjectTask]) -> List[ProjectTask]:
            return [t for t in tasks if t.id != created.id] + [created]

        self.cache.mutate(self.cache_key, _append)
        self._schedule(Expectation(OP_CREATE, created.id))
        return created

    async def update_task(self, task_id: str, update: Union[TaskUpdate, Dict[str, Any]]) -> ProjectTask:
        self._require_enabled()
        if isinstance(update, dict):
            try:
                update = TaskUpdate.from_dict(update)
            except ValueError as exc:
                raise ValidationError(str(exc), task_id) from exc
        if update.is_empty():
            raise ValidationError("No fields to update", task_id)
        resolution = self.resolve_task_id(task_id)
        if update.source_id is not UNSET:
            update = replace(update, source_id=sanitize_source_id(update.source_id))
        previous = self.get_task(resolution.task_id)
        logger.debug(
            "updating task %s (%s via %s): %s",
            resolution.task_id,
            resolution.original_id,
            resolution.method,
            update.to_payload(),
        )
        updated = await self.store.update_task(self.project_id, resolution.task_id, update)

        def _merge(tasks: List[ProjectTask]) -> List[ProjectTask]:
            merged: List[ProjectTask] = []
            replaced = False
            for task in tasks:
                if not replaced and task.id == resolution.task_id:
                    merged.append(updated)
                    replaced = True
                else:
                    merged.append(task)
            if not replaced:
                merged.append(updated)
            return merged

        self.cache.mutate(self.cache_key, _merge)
        self._schedule(
            Expectation(
                OP_UPDATE,
                resolution.task_id,
                fields=update.changed_fields(),
                previous_updated_at=previous.updated_at if previous else None,
            )
        )
        return updated

    async def set_completed(self, task_id: str, completed: bool) -> ProjectTask:
        return await self.update_task(task_id, TaskUpdate(completed=completed))

    async def delete_task(self, task_id: str) -> Dict[str, Any]:
        self._require_enabled()
        resolution = self.resolve_task_id(task_id)
        logger.debug("deleting task %s from project %s", resolution.task_id, self.project_id)
        result = await self.store.delete_task(self.project_id, resolution.task_id)
        self.cache.mutate(self.cache_key, lambda tasks: [t for t in tasks if t.id != resolution.task_id])
        self._schedule(Expectation(OP_DELETE, resolution.task_id))
        return result

    # ------------------------------------------------------------------
    # Verification / reconciliation
    # ------------------------------------------------------------------

    def _schedule(self, expectation: Expectation) -> None:
        task = asyncio.get_running_loop().create_task(self._reconcile(expectation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refetch_and_verify(self, expectation: Expectation) -> Optional[str]:
        if self.abort.aborted:
            return None
        self.cache.invalidate(self.cache_key)
        generation = self.cache.begin_fetch(self.cache_key)
        try:
            tasks = await self.store.list_tasks(self.project_id)
        except TaskSyncError as exc:
            self.last_error = str(exc)
            logger.warning("verification refetch failed for project %s: %s", self.project_id, exc)
            return f"refetch failed: {exc}"
        self.last_fetch = _now()
        if self.abort.aborted:
            logger.debug("project %s closed during refetch; cache left alone", self.project_id)
            return None
        self.cache.replace(self.cache_key, tasks, generation)
        return verify_expectation(tasks, expectation)

    async def _reconcile(self, expectation: Expectation) -> None:
        try:
            reason = await self._refetch_and_verify(expectation)
            if reason is None:
                verify_logger.debug("%s %s verified", expectation.operation, expectation.task_id)
                return
            verify_logger.info(
                "%s %s not reflected by store (%s); re-verifying in %.1fs",
                expectation.operation,
                expectation.task_id,
                reason,
                self.verify_delay,
            )
            await self._sleep(self.verify_delay)
            if self.abort.aborted:
                logger.debug("re-verification of %s skipped: %s", expectation.task_id, self.abort.reason)
                return
            reason = await self._refetch_and_verify(expectation)
            if reason is None:
                verify_logger.debug("%s %s verified on retry", expectation.operation, expectation.task_id)
                return
            self._record_warning(
                ConsistencyWarning(expectation.operation, self.project_id, expectation.task_id, reason)
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.last_error = str(exc)
            logger.warning("reconciliation of %s %s failed: %s", expectation.operation, expectation.task_id, exc)

    def _record_warning(self, warning: ConsistencyWarning) -> None:
        self._warnings.append(warning)
        logger.warning("Task sync consistency warning: %s", warning)
        if self._on_warning is not None:
            try:
                self._on_warning(warning)
            except Exception as exc:
                logger.warning("consistency warning hook failed: %s", exc)

    def consume_warnings(self) -> List[ConsistencyWarning]:
        warnings = list(self._warnings)
        self._warnings.clear()
        return warnings

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def wait_idle(self) -> None:
        """Wait for every scheduled reconciliation, including ones started meanwhile."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self, drop_cache: bool = True) -> None:
        self.abort.abort()
        if drop_cache and self.enabled:
            self.cache.drop(self.cache_key)

    def status_snapshot(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "enabled": self.enabled,
            "last_fetch": self.last_fetch,
            "pending": self.pending,
            "warnings": len(self._warnings),
            "last_error": self.last_error,
            "closed": self.abort.aborted,
        }


__all__ = [
    "AbortHandle",
    "Expectation",
    "TaskIdResolution",
    "TaskSyncEngine",
    "verify_expectation",
    "OP_CREATE",
    "OP_UPDATE",
    "OP_DELETE",
    "LOOKUP_EXACT",
    "LOOKUP_CLEAN_UUID",
    "LOOKUP_SOURCE_ID",
]
