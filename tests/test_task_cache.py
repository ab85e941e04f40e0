from core.identifiers import DISABLED_CACHE_KEY, build_cache_key
from core.project_task import Origin, ProjectTask, Stage
from infrastructure.task_cache import TaskCache

KEY = build_cache_key("3f1c2a4e-8b7d-4c6e-9a1b-2d3e4f5a6b7c")


def _task(n, completed=False):
    return ProjectTask(
        id=f"00000000-0000-4000-8000-{n:012d}",
        project_id=KEY[1],
        text=f"task {n}",
        stage=Stage.DELIVERY,
        origin=Origin.CUSTOM,
        completed=completed,
    )


def test_get_missing_entry_is_none_and_stale():
    cache = TaskCache()

    assert cache.get(KEY) is None
    assert cache.is_stale(KEY)
    assert not cache.has_fetched(KEY)


def test_replace_and_get_return_copies():
    cache = TaskCache()
    tasks = [_task(1), _task(2)]

    assert cache.replace(KEY, tasks)
    tasks.append(_task(3))
    snapshot = cache.get(KEY)
    snapshot.clear()

    assert len(cache.get(KEY)) == 2
    assert not cache.is_stale(KEY)
    assert cache.has_fetched(KEY)


def test_mutate_creates_entry_and_applies_function():
    cache = TaskCache()

    cache.mutate(KEY, lambda tasks: tasks + [_task(1)])
    result = cache.mutate(KEY, lambda tasks: [t for t in tasks if t.id != _task(1).id] + [_task(1, completed=True)])

    assert result == [_task(1, completed=True)]
    assert not cache.has_fetched(KEY)


def test_invalidate_marks_entry_stale():
    cache = TaskCache()
    cache.replace(KEY, [_task(1)])

    cache.invalidate(KEY)

    assert cache.is_stale(KEY)
    assert cache.get(KEY) == [_task(1)]


def test_older_refetch_is_rejected():
    cache = TaskCache()
    older = cache.begin_fetch(KEY)
    newer = cache.begin_fetch(KEY)

    assert cache.replace(KEY, [_task(1), _task(2)], generation=newer)
    assert not cache.replace(KEY, [_task(1)], generation=older)
    assert [t.id for t in cache.get(KEY)] == [_task(1).id, _task(2).id]


def test_disabled_key_is_never_stored():
    cache = TaskCache()

    assert not cache.replace(DISABLED_CACHE_KEY, [_task(1)])
    assert cache.mutate(DISABLED_CACHE_KEY, lambda tasks: tasks + [_task(1)]) == []
    assert DISABLED_CACHE_KEY not in cache


def test_drop_and_clear():
    cache = TaskCache()
    cache.replace(KEY, [_task(1)])

    cache.drop(KEY)
    cache.drop(KEY)
    assert KEY not in cache
    cache.replace(KEY, [_task(1)])
    cache.clear()
    assert list(cache.keys()) == []
