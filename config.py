from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

USER_CONFIG_PATH = Path(os.environ.get("CHECKLIST_SYNC_CONFIG") or Path.home() / ".checklist_sync.yaml")

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_VERIFY_DELAY = 1.0


def _load_config() -> Dict[str, Any]:
    if not USER_CONFIG_PATH.exists():
        return {}
    try:
        data = yaml.safe_load(USER_CONFIG_PATH.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def _save_config(data: Dict[str, Any]) -> None:
    if not data:
        if USER_CONFIG_PATH.exists():
            USER_CONFIG_PATH.unlink()
        return
    USER_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    USER_CONFIG_PATH.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")


def _float_setting(env_name: str, raw: Any, default: float) -> float:
    value = os.environ.get(env_name, raw)
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 0 else default


def get_user_token() -> str:
    return os.environ.get("CHECKLIST_SYNC_TOKEN") or str(_load_config().get("token", "") or "")


def set_user_token(value: str) -> None:
    data = _load_config()
    value = (value or "").strip()
    if value:
        data["token"] = value
    else:
        data.pop("token", None)
    _save_config(data)


def get_base_url() -> str:
    value = os.environ.get("CHECKLIST_SYNC_BASE_URL") or _load_config().get("base_url") or DEFAULT_BASE_URL
    return str(value).rstrip("/")


def set_base_url(value: str) -> None:
    data = _load_config()
    value = (value or "").strip()
    if value:
        data["base_url"] = value
    else:
        data.pop("base_url", None)
    _save_config(data)


def get_debug_flags() -> List[str]:
    raw = os.environ.get("CHECKLIST_SYNC_DEBUG")
    if raw is None:
        raw = _load_config().get("debug") or []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(flag).strip().lower() for flag in raw if str(flag).strip()]


@dataclass
class SyncSettings:
    base_url: str = DEFAULT_BASE_URL
    token: str = ""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    verify_delay: float = DEFAULT_VERIFY_DELAY
    debug: List[str] = field(default_factory=list)


def load_settings() -> SyncSettings:
    """Settings from the user config file, environment variables taking precedence."""
    data = _load_config()
    return SyncSettings(
        base_url=get_base_url(),
        token=get_user_token(),
        request_timeout=_float_setting("CHECKLIST_SYNC_TIMEOUT", data.get("request_timeout"), DEFAULT_REQUEST_TIMEOUT),
        verify_delay=_float_setting("CHECKLIST_SYNC_VERIFY_DELAY", data.get("verify_delay"), DEFAULT_VERIFY_DELAY),
        debug=get_debug_flags(),
    )
