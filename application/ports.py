from typing import Any, Dict, List, Protocol

from core.project_task import ProjectTask, TaskDraft, TaskUpdate


class TaskStore(Protocol):
    async def list_tasks(self, project_id: str) -> List[ProjectTask]:
        ...

    async def create_task(self, project_id: str, draft: TaskDraft) -> ProjectTask:
        ...

    async def update_task(self, project_id: str, task_id: str, update: TaskUpdate) -> ProjectTask:
        ...

    async def delete_task(self, project_id: str, task_id: str) -> Dict[str, Any]:
        ...
