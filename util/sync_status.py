from typing import Any, Dict


def sync_status_label(snapshot: Dict[str, Any]) -> str:
    """One-line status for a project's task sync (see ``TaskSyncEngine.status_snapshot``)."""
    if not snapshot.get("enabled"):
        return "Tasks sync □ (invalid project id)"
    label = "Tasks sync ■"
    if snapshot.get("closed"):
        return f"{label} closed"
    if snapshot.get("warnings") or snapshot.get("last_error"):
        label = f"{label} !"
    parts = []
    if snapshot.get("pending"):
        parts.append(f"verifying={snapshot['pending']}")
    if snapshot.get("warnings"):
        parts.append(f"warnings={snapshot['warnings']}")
    parts.append(f"fetched={snapshot.get('last_fetch') or '—'}")
    return f"{label} " + " ".join(parts)


__all__ = ["sync_status_label"]
