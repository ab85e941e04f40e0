import asyncio
from typing import Any, Dict, List

from core.project_task import ProjectTask, TaskDraft, TaskUpdate
from .http_client import TaskStoreClient


class AsyncTaskStore:
    """``application.ports.TaskStore`` over the blocking HTTP client.

    Each call runs the blocking request off the event loop; results come back
    to the loop thread, which owns all cache state.
    """

    def __init__(self, client: TaskStoreClient) -> None:
        self.client = client

    async def list_tasks(self, project_id: str) -> List[ProjectTask]:
        return await asyncio.to_thread(self.client.list_tasks, project_id)

    async def create_task(self, project_id: str, draft: TaskDraft) -> ProjectTask:
        return await asyncio.to_thread(self.client.create_task, project_id, draft)

    async def update_task(self, project_id: str, task_id: str, update: TaskUpdate) -> ProjectTask:
        return await asyncio.to_thread(self.client.update_task, project_id, task_id, update)

    async def delete_task(self, project_id: str, task_id: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.delete_task, project_id, task_id)
