from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional


class Stage(Enum):
    IDENTIFICATION = "identification"
    DEFINITION = "definition"
    DELIVERY = "delivery"
    CLOSURE = "closure"

    @classmethod
    def from_string(cls, value: Any) -> "Stage":
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        for stage in cls:
            if stage.value == token:
                return stage
        raise ValueError(f"Invalid stage: {value!r}")

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Origin(Enum):
    HEURISTIC = "heuristic"
    FACTOR = "factor"
    POLICY = "policy"
    CUSTOM = "custom"
    FRAMEWORK = "framework"

    @classmethod
    def from_string(cls, value: Any) -> "Origin":
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        for origin in cls:
            if origin.value == token:
                return origin
        raise ValueError(f"Invalid origin: {value!r}")


# python attribute -> wire (camelCase) name
_WIRE_NAMES: Dict[str, str] = {
    "project_id": "projectId",
    "source_id": "sourceId",
    "due_date": "dueDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}
_ATTR_NAMES: Dict[str, str] = {v: k for k, v in _WIRE_NAMES.items()}

METADATA_FIELDS = ("notes", "priority", "due_date", "owner", "status")


def wire_name(attr: str) -> str:
    return _WIRE_NAMES.get(attr, attr)


def _encode(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass
class ProjectTask:
    id: str
    project_id: str
    text: str
    stage: Stage
    origin: Origin
    source_id: Optional[str] = None
    completed: bool = False
    notes: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    owner: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectTask":
        """Build a task from a store payload (camelCase or snake_case keys)."""
        values: Dict[str, Any] = {}
        known = {f.name for f in fields(cls)}
        for key, value in (data or {}).items():
            attr = _ATTR_NAMES.get(key, key)
            if attr in known:
                values[attr] = value
        values["id"] = str(values.get("id", ""))
        values["project_id"] = str(values.get("project_id", ""))
        values["text"] = values.get("text") or ""
        values["stage"] = Stage.from_string(values.get("stage") or Stage.IDENTIFICATION)
        values["origin"] = Origin.from_string(values.get("origin") or Origin.CUSTOM)
        values["completed"] = bool(values.get("completed", False))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {wire_name(f.name): _encode(getattr(self, f.name)) for f in fields(self)}

    def field_value(self, attr: str) -> Any:
        return _encode(getattr(self, attr))


@dataclass
class TaskDraft:
    """Payload for creating a task; the store assigns id and timestamps."""

    project_id: str
    text: str
    stage: Stage = Stage.IDENTIFICATION
    origin: Origin = Origin.CUSTOM
    source_id: Optional[str] = None
    completed: bool = False
    notes: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    owner: Optional[str] = None
    status: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = {wire_name(f.name): _encode(getattr(self, f.name)) for f in fields(self)}
        # optional metadata is only sent when present
        for attr in METADATA_FIELDS:
            if payload.get(wire_name(attr)) is None:
                payload.pop(wire_name(attr), None)
        return payload


class _Unset:
    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class TaskUpdate:
    """Partial update: only fields that were set are sent to the store.

    Setting a field to ``None`` clears it on the server; leaving it ``UNSET``
    leaves it untouched.
    """

    text: Any = UNSET
    stage: Any = UNSET
    origin: Any = UNSET
    source_id: Any = UNSET
    completed: Any = UNSET
    notes: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET
    owner: Any = UNSET
    status: Any = UNSET

    def __post_init__(self) -> None:
        if self.stage is not UNSET and self.stage is not None:
            self.stage = Stage.from_string(self.stage)
        if self.origin is not UNSET and self.origin is not None:
            self.origin = Origin.from_string(self.origin)
        if self.completed is not UNSET and self.completed is not None:
            self.completed = bool(self.completed)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskUpdate":
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            attr = _ATTR_NAMES.get(key, key)
            if attr not in known:
                raise ValueError(f"Unknown task field: {key!r}")
            values[attr] = value
        return cls(**values)

    def changed_fields(self) -> Dict[str, Any]:
        """Set fields keyed by attribute name."""
        return {f.name: _encode(getattr(self, f.name)) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def to_payload(self) -> Dict[str, Any]:
        return {wire_name(attr): value for attr, value in self.changed_fields().items()}

    def is_empty(self) -> bool:
        return not self.changed_fields()


__all__ = [
    "Stage",
    "Origin",
    "ProjectTask",
    "TaskDraft",
    "TaskUpdate",
    "UNSET",
    "METADATA_FIELDS",
    "wire_name",
]
