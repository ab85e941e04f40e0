import asyncio
import uuid

from config import SyncSettings
from core.identifiers import build_cache_key
from core.project_task import ProjectTask, TaskDraft
from infrastructure.task_cache import TaskCache
from infrastructure.task_store import AsyncTaskStore
from task_sync import TaskSyncSession

PROJECT = "3f1c2a4e-8b7d-4c6e-9a1b-2d3e4f5a6b7c"
OTHER = "0b5d7c1e-2f3a-4b4c-a5d6-e7f8091a2b3c"


class MemoryStore:
    def __init__(self, keep_deletes=False):
        self.rows = {}
        self.list_calls = 0
        self.keep_deletes = keep_deletes

    async def list_tasks(self, project_id):
        self.list_calls += 1
        return [ProjectTask.from_dict(r) for r in self.rows.values() if r["projectId"] == project_id]

    async def create_task(self, project_id, draft):
        row = dict(draft.to_payload(), id=str(uuid.uuid4()), updatedAt="2025-05-01T10:00:00Z")
        self.rows[row["id"]] = row
        return ProjectTask.from_dict(row)

    async def update_task(self, project_id, task_id, update):
        raise NotImplementedError

    async def delete_task(self, project_id, task_id):
        if not self.keep_deletes:
            self.rows.pop(task_id, None)
        return {"success": True}


def _session(store=None):
    return TaskSyncSession(SyncSettings(verify_delay=0), store=store or MemoryStore())


def test_session_builds_http_store_from_settings():
    session = TaskSyncSession(SyncSettings(base_url="https://x.example/api", token="t", request_timeout=4))

    assert isinstance(session.store, AsyncTaskStore)
    assert session.store.client.base_url == "https://x.example/api"
    assert session.store.client.timeout == 4
    assert session.store.client.token_provider() == "t"


def test_session_reuses_engine_per_project_and_shares_cache():
    cache = TaskCache()
    session = TaskSyncSession(SyncSettings(verify_delay=0), store=MemoryStore(), cache=cache)

    first = session.engine(PROJECT.upper())
    assert session.engine(PROJECT) is first
    assert session.engine(OTHER) is not first
    assert first.cache is cache
    assert sorted(session.open_projects()) == sorted([PROJECT, OTHER])


def test_invalid_project_gets_disabled_engine_without_registration():
    store = MemoryStore()
    session = _session(store)

    engine = session.engine("42")

    assert not engine.enabled
    assert asyncio.run(engine.load_tasks()) == []
    assert store.list_calls == 0
    assert session.open_projects() == []


def test_close_project_drops_cache_and_aborts_engine():
    session = _session()
    engine = session.engine(PROJECT)

    async def scenario():
        await engine.create_task(TaskDraft(project_id=PROJECT, text="x"))
        await session.wait_idle()

    asyncio.run(scenario())
    assert session.cache.get(build_cache_key(PROJECT))

    session.close_project(PROJECT)

    assert engine.abort.aborted
    assert session.cache.get(build_cache_key(PROJECT)) is None
    assert session.engine(PROJECT) is not engine


def test_session_collects_consistency_warnings():
    store = MemoryStore(keep_deletes=True)
    session = _session(store)
    engine = session.engine(PROJECT)

    async def scenario():
        created = await engine.create_task(TaskDraft(project_id=PROJECT, text="x"))
        await engine.delete_task(created.id)
        await session.wait_idle()

    asyncio.run(scenario())

    warnings = session.consume_warnings()
    assert [w.operation for w in warnings] == ["delete"]
    assert session.consume_warnings() == []
    assert engine.consume_warnings() == []



def test_status_label_reports_open_and_unopened_projects():
    store = MemoryStore(keep_deletes=True)
    session = _session(store)

    assert session.status_label(PROJECT) == "Tasks sync ■ fetched=—"
    assert session.status_label("42") == "Tasks sync □ (invalid project id)"
    assert session.open_projects() == []

    engine = session.engine(PROJECT)

    async def scenario():
        created = await engine.create_task(TaskDraft(project_id=PROJECT, text="x"))
        await engine.delete_task(created.id)
        await session.wait_idle()

    asyncio.run(scenario())

    label = session.status_label(PROJECT)
    assert label.startswith("Tasks sync ■ !")
    assert "warnings=1" in label
    assert "fetched=—" not in label
