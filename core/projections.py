"""Read-only projections over a project's cached tasks.

Pure functions, no I/O: callers pass the task list they got from the cache.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from .identifiers import extract_canonical_id
from .project_task import Origin, ProjectTask, Stage


@dataclass(frozen=True)
class StageProgress:
    stage: Stage
    total: int
    completed: int

    @property
    def percent(self) -> int:
        if not self.total:
            return 0
        return int((self.completed / self.total) * 100)


def tasks_by_stage(tasks: Iterable[ProjectTask], stage: Union[Stage, str]) -> List[ProjectTask]:
    target = Stage.from_string(stage)
    return [t for t in tasks if t.stage is target]


def tasks_by_origin(tasks: Iterable[ProjectTask], origin: Union[Origin, str]) -> List[ProjectTask]:
    target = Origin.from_string(origin)
    return [t for t in tasks if t.origin is target]


def tasks_by_source(
    tasks: Iterable[ProjectTask], source_id: str, stage: Optional[Union[Stage, str]] = None
) -> List[ProjectTask]:
    matched = [t for t in tasks if t.source_id == source_id]
    if stage is None:
        return matched
    target = Stage.from_string(stage)
    return [t for t in matched if t.stage is target]


def find_by_source_id(tasks: Iterable[ProjectTask], source_id: str) -> Optional[ProjectTask]:
    """First task whose sourceId matches, exactly or by its canonical prefix.

    Tie-break is list order; two tasks sharing a sourceId are not disambiguated.
    """
    if not source_id:
        return None
    ordered = list(tasks)
    for task in ordered:
        if task.source_id == source_id:
            return task
    canonical = extract_canonical_id(source_id)
    if canonical == source_id:
        return None
    for task in ordered:
        if task.source_id and extract_canonical_id(task.source_id) == canonical:
            return task
    return None


def completion_summary(tasks: Iterable[ProjectTask]) -> Dict[Stage, StageProgress]:
    counts: Dict[Stage, List[int]] = {stage: [0, 0] for stage in Stage}
    for task in tasks:
        bucket = counts[task.stage]
        bucket[0] += 1
        if task.completed:
            bucket[1] += 1
    return {stage: StageProgress(stage, total, done) for stage, (total, done) in counts.items()}


def overall_progress(tasks: Iterable[ProjectTask]) -> int:
    items = list(tasks)
    if not items:
        return 0
    return int((sum(1 for t in items if t.completed) / len(items)) * 100)


__all__ = [
    "StageProgress",
    "tasks_by_stage",
    "tasks_by_origin",
    "tasks_by_source",
    "find_by_source_id",
    "completion_summary",
    "overall_progress",
]
