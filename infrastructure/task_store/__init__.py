from .http_client import TaskStoreClient
from .async_store import AsyncTaskStore

__all__ = [
    "TaskStoreClient",
    "AsyncTaskStore",
]
