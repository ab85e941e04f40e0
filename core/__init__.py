from .project_task import Stage, Origin, ProjectTask, TaskDraft, TaskUpdate, UNSET
from .errors import (
    TaskSyncError,
    ValidationError,
    AuthenticationRequired,
    ServerError,
    ConsistencyWarning,
    user_message,
)
from .identifiers import (
    CacheKey,
    DISABLED_CACHE_KEY,
    is_valid_uuid,
    is_legacy_numeric_id,
    extract_canonical_id,
    is_compound_id,
    sanitize_source_id,
    build_cache_key,
    is_disabled_key,
)
from .projections import (
    StageProgress,
    tasks_by_stage,
    tasks_by_origin,
    tasks_by_source,
    find_by_source_id,
    completion_summary,
    overall_progress,
)
from .display_names import (
    format_factor_task_name,
    format_heuristic_task_name,
    format_framework_task_name,
    policy_task_display_name,
    extract_core_task_name,
    extract_stage_from_task_name,
    extract_task_code,
    is_task_already_formatted,
    task_display_name,
)

__all__ = [
    "Stage",
    "Origin",
    "ProjectTask",
    "TaskDraft",
    "TaskUpdate",
    "UNSET",
    # Errors
    "TaskSyncError",
    "ValidationError",
    "AuthenticationRequired",
    "ServerError",
    "ConsistencyWarning",
    "user_message",
    # Identifiers
    "CacheKey",
    "DISABLED_CACHE_KEY",
    "is_valid_uuid",
    "is_legacy_numeric_id",
    "extract_canonical_id",
    "is_compound_id",
    "sanitize_source_id",
    "build_cache_key",
    "is_disabled_key",
    # Consumer projections
    "StageProgress",
    "tasks_by_stage",
    "tasks_by_origin",
    "tasks_by_source",
    "find_by_source_id",
    "completion_summary",
    "overall_progress",
    # Display names
    "format_factor_task_name",
    "format_heuristic_task_name",
    "format_framework_task_name",
    "policy_task_display_name",
    "extract_core_task_name",
    "extract_stage_from_task_name",
    "extract_task_code",
    "is_task_already_formatted",
    "task_display_name",
]
