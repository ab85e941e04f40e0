import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from core.errors import AuthenticationRequired, ServerError
from core.project_task import ProjectTask, TaskDraft, TaskUpdate

logger = logging.getLogger("checklist_sync.store")


class TaskStoreClient:
    """Blocking client for the remote project task collection.

    One HTTP call per method, no retries and no caching. Task ids passed to
    ``update_task`` / ``delete_task`` must already be canonical.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token_provider = token_provider or (lambda: None)
        self.timeout = timeout

    def _tasks_url(self, project_id: str, task_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/projects/{quote(project_id, safe='')}/tasks"
        if task_id is not None:
            url = f"{url}/{quote(task_id, safe='')}"
        return url

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        logger.debug("%s %s %s", method.upper(), url, payload if payload is not None else "")
        try:
            resp = self.session.request(method, url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("task store network error on %s %s: %s", method.upper(), url, exc)
            raise ServerError(f"Task store network error: {exc}") from exc
        logger.debug("%s %s -> %s", method.upper(), url, resp.status_code)
        if resp.status_code in (401, 403):
            raise AuthenticationRequired(f"Authentication required (HTTP {resp.status_code})", resp.status_code)
        if resp.status_code >= 400:
            raise ServerError(f"Task store error: {resp.status_code} {resp.text[:200]}", resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise ServerError(f"Task store returned invalid JSON ({resp.status_code})", resp.status_code) from exc

    def list_tasks(self, project_id: str) -> List[ProjectTask]:
        data = self._request("get", self._tasks_url(project_id))
        if not isinstance(data, list):
            raise ServerError("Task store returned a non-list task collection")
        return [ProjectTask.from_dict(item) for item in data]

    def create_task(self, project_id: str, draft: TaskDraft) -> ProjectTask:
        data = self._request("post", self._tasks_url(project_id), draft.to_payload())
        return ProjectTask.from_dict(_unwrap_task(data))

    def update_task(self, project_id: str, task_id: str, update: TaskUpdate) -> ProjectTask:
        data = self._request("put", self._tasks_url(project_id, task_id), update.to_payload())
        return ProjectTask.from_dict(_unwrap_task(data))

    def delete_task(self, project_id: str, task_id: str) -> Dict[str, Any]:
        data = self._request("delete", self._tasks_url(project_id, task_id))
        return data if isinstance(data, dict) else {"success": True}


def _unwrap_task(data: Any) -> Dict[str, Any]:
    # some endpoints answer {"success": true, "task": {...}}
    if isinstance(data, dict) and isinstance(data.get("task"), dict):
        return data["task"]
    if not isinstance(data, dict):
        raise ServerError("Task store returned an unexpected task payload")
    return data
