"""Identifier classification and canonicalization.

Task and project identifiers reach the sync layer in several shapes:

- canonical UUIDs assigned by the store,
- compound identifiers (a UUID followed by extra hyphen-separated segments)
  used by preset-derived tasks,
- legacy numeric ids from the pre-UUID primary-key scheme,
- arbitrary strings the UI uses before a task is persisted.

Nothing in this module raises: classification failures are return values
because they gate later logic rather than signal faults.
"""

import logging
import re
from typing import Any, Optional, Tuple

logger = logging.getLogger("checklist_sync.ids")

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_NUMERIC_RE = re.compile(r"^[0-9]+$")

UUID_SEGMENTS = 5
CACHE_NAMESPACE = "project-tasks"

CacheKey = Tuple[str, str]
DISABLED_CACHE_KEY: CacheKey = (CACHE_NAMESPACE, "__disabled__")


def is_valid_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_UUID_RE.match(value))


def is_legacy_numeric_id(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_NUMERIC_RE.match(value))


def extract_canonical_id(value: str) -> str:
    """Strip suffix segments from a compound identifier.

    More than four hyphens means more segments than a plain UUID carries:
    the first five segments are rejoined and returned. Anything else is
    returned unchanged, so the function is idempotent and the identity on
    canonical UUIDs.
    """
    if not isinstance(value, str) or value.count("-") <= 4:
        return value
    parts = value.split("-")
    if len(parts) < UUID_SEGMENTS:
        return value
    canonical = "-".join(parts[:UUID_SEGMENTS])
    logger.debug("extracted %s from compound id %s", canonical, value)
    return canonical


def is_compound_id(value: Any) -> bool:
    """True when value is a valid UUID followed by at least one suffix segment."""
    if not isinstance(value, str):
        return False
    canonical = extract_canonical_id(value)
    return canonical != value and is_valid_uuid(canonical)


def sanitize_source_id(value: Optional[str]) -> Optional[str]:
    """Return a value safe to persist in the UUID-typed sourceId column."""
    if value is None:
        return None
    if is_valid_uuid(value) or is_compound_id(value):
        return value
    logger.debug("dropping invalid sourceId %r", value)
    return None


def build_cache_key(project_id: Optional[str]) -> CacheKey:
    """Cache key for a project's task collection.

    Missing, legacy numeric and non-UUID project ids all map to
    ``DISABLED_CACHE_KEY``; no network read may be issued for that key.
    """
    if not project_id:
        return DISABLED_CACHE_KEY
    if is_legacy_numeric_id(project_id):
        logger.warning("legacy numeric project id %s is no longer supported", project_id)
        return DISABLED_CACHE_KEY
    if not is_valid_uuid(project_id):
        logger.warning("invalid project id format: %s", project_id)
        return DISABLED_CACHE_KEY
    return (CACHE_NAMESPACE, project_id.lower())


def is_disabled_key(key: CacheKey) -> bool:
    return key == DISABLED_CACHE_KEY


__all__ = [
    "CacheKey",
    "DISABLED_CACHE_KEY",
    "is_valid_uuid",
    "is_legacy_numeric_id",
    "extract_canonical_id",
    "is_compound_id",
    "sanitize_source_id",
    "build_cache_key",
    "is_disabled_key",
]
