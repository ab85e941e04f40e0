import re
from typing import Optional, Union

from .project_task import Origin, ProjectTask, Stage

_STANDARD_RE = re.compile(r"^(?:.+) - (?:.+) - Task (?:\d+): (.+)$")
_POLICY_RE = re.compile(r"^Policy: (.+) - (?:.+) - Task (?:\d+)$")
_STAGE_RE = re.compile(r"^(?:.+) - (Identification|Definition|Delivery|Closure) - Task (?:\d+)")
_CODE_RE = re.compile(r"^([A-Z0-9]+) - (?:.+) - Task (?:\d+)")
_FORMATTED_RE = re.compile(r"^(?:[A-Z0-9]+) - (?:.+) - Task (?:\d+): (?:.+)$")
_FORMATTED_POLICY_RE = re.compile(r"^Policy: (?:.+) - (?:.+) - Task (?:\d+)$")


def _stage_label(stage: Union[Stage, str]) -> str:
    return Stage.from_string(stage).label


def format_factor_task_name(text: str, index: int, stage: Union[Stage, str]) -> str:
    return f"SF{index:02d} - {_stage_label(stage)} - Task {index + 1}: {text}"


def format_heuristic_task_name(text: str, index: int, stage: Union[Stage, str]) -> str:
    return f"UH{index:02d} - {_stage_label(stage)} - Task {index + 1}: {text}"


def format_framework_task_name(text: str, framework_name: str, index: int, stage: Union[Stage, str]) -> str:
    code = framework_name[:3].upper()
    return f"{code}{index:02d} - {_stage_label(stage)} - Task {index + 1}: {text}"


def policy_task_display_name(policy_name: str, stage: Union[Stage, str], task_index: int) -> str:
    return f"Policy: {policy_name} - {_stage_label(stage)} - Task {task_index + 1}"


def extract_core_task_name(display_name: str) -> str:
    """Task text without its ``CODE## - Stage - Task #:`` prefix."""
    match = _STANDARD_RE.match(display_name)
    if match:
        return match.group(1)
    match = _POLICY_RE.match(display_name)
    if match:
        return match.group(1)
    return display_name


def extract_stage_from_task_name(task_name: str) -> Optional[Stage]:
    match = _STAGE_RE.match(task_name)
    if not match:
        return None
    return Stage.from_string(match.group(1))


def extract_task_code(task_name: str) -> Optional[str]:
    match = _CODE_RE.match(task_name)
    return match.group(1) if match else None


def is_task_already_formatted(task_name: str) -> bool:
    return bool(_FORMATTED_RE.match(task_name) or _FORMATTED_POLICY_RE.match(task_name))


def task_display_name(task: ProjectTask, index: int = 0, framework_name: str = "") -> str:
    if is_task_already_formatted(task.text):
        return task.text
    if task.origin is Origin.FACTOR:
        return format_factor_task_name(task.text, index, task.stage)
    if task.origin is Origin.HEURISTIC:
        return format_heuristic_task_name(task.text, index, task.stage)
    if task.origin is Origin.FRAMEWORK and framework_name:
        return format_framework_task_name(task.text, framework_name, index, task.stage)
    return task.text
