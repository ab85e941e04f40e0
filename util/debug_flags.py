"""Debug flags for task sync diagnostics.

Each flag switches one ``checklist_sync.*`` logger to DEBUG. Flags come from
the user config (``debug: [...]``) or ``CHECKLIST_SYNC_DEBUG=tasks,task_api``;
``all`` enables every flag.
"""

import logging
from typing import Dict, Iterable, List, Optional

ROOT_LOGGER = "checklist_sync"

DEBUG_FLAGS: Dict[str, str] = {
    "tasks": "checklist_sync.engine",
    "task_api": "checklist_sync.store",
    "task_lookup": "checklist_sync.ids",
    "task_completion": "checklist_sync.engine.verify",
    "task_persistence": "checklist_sync.cache",
}

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def normalize_flags(flags: Iterable[str]) -> List[str]:
    result: List[str] = []
    for raw in flags or []:
        flag = str(raw).strip().lower()
        if flag.startswith("debug_"):
            flag = flag[len("debug_"):]
        if flag == "all":
            return list(DEBUG_FLAGS)
        if flag in DEBUG_FLAGS and flag not in result:
            result.append(flag)
    return result


def configure_logging(flags: Iterable[str] = (), level: int = logging.WARNING, handler: Optional[logging.Handler] = None) -> List[str]:
    """Attach one handler to the package logger and apply debug flags.

    Returns the flags that were enabled. Safe to call repeatedly: the handler
    is installed once.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    if not root.handlers:
        stream = handler or logging.StreamHandler()
        stream.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(stream)
    enabled = normalize_flags(flags)
    for flag, name in DEBUG_FLAGS.items():
        logging.getLogger(name).setLevel(logging.DEBUG if flag in enabled else logging.NOTSET)
    # child records reach the root handler regardless of the root level
    return enabled


def is_enabled(flag: str) -> bool:
    name = DEBUG_FLAGS.get(flag)
    if not name:
        return False
    return logging.getLogger(name).isEnabledFor(logging.DEBUG)


__all__ = ["DEBUG_FLAGS", "normalize_flags", "configure_logging", "is_enabled"]
