"""HookEvent builder.

Every event occurrence is built here once; ``raw_payload`` is what command
hooks receive on stdin.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from hookwise.types.config import HookSettings
from hookwise.types.hooks import FILE_PATH_KEYS, EventKind, HookEvent


def extract_file_path(tool_input: dict[str, Any] | None) -> str | None:
    """The first recognizable file-path field of a tool's input."""
    if not tool_input:
        return None
    for key in FILE_PATH_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def build_event(
    kind: EventKind,
    session_id: str,
    *,
    cwd: str | Path = ".",
    tool_name: str | None = None,
    tool_input: dict[str, Any] | None = None,
    tool_use_id: str | None = None,
    tool_response: Any = None,
    error: str | None = None,
    prompt: str | None = None,
    source: str | None = None,
    stop_reason: str | None = None,
    stop_hook_active: bool | None = None,
    notification_type: str | None = None,
    notification: dict[str, Any] | None = None,
    settings: HookSettings | None = None,
) -> HookEvent:
    """Build a HookEvent and its serialized payload.

    Only fields that are set are written into the payload, apart from the
    common ones every hook receives.
    """
    settings = settings or HookSettings()
    payload: dict[str, Any] = {
        "session_id": session_id,
        "cwd": str(cwd),
        "hook_event_name": kind.value,
        "transcript_path": settings.transcript_path,
        "permission_mode": settings.permission_mode,
    }
    optional: dict[str, Any] = {
        "tool_name": tool_name,
        "tool_input": tool_input,
        "tool_use_id": tool_use_id,
        "tool_response": tool_response,
        "error": error,
        "prompt": prompt,
        "source": source,
        "stop_reason": stop_reason,
        "stop_hook_active": stop_hook_active,
        "notification_type": notification_type,
        "notification": notification,
    }
    payload.update({k: v for k, v in optional.items() if v is not None})

    return HookEvent(
        kind=kind,
        session_id=session_id,
        raw_payload=payload,
        tool_name=tool_name,
        tool_input=tool_input,
        file_path=extract_file_path(tool_input),
        source=source,
    )


def build_from_payload(kind: EventKind, payload: dict[str, Any]) -> HookEvent:
    """Rebuild a HookEvent from an already-serialized payload (CLI input)."""
    tool_input = payload.get("tool_input")
    if not isinstance(tool_input, dict):
        tool_input = None
    tool_name = payload.get("tool_name")
    source = payload.get("source") or payload.get("notification_type")
    merged = {**payload, "hook_event_name": kind.value}
    merged.setdefault("cwd", ".")
    return HookEvent(
        kind=kind,
        session_id=str(payload.get("session_id", "")),
        raw_payload=merged,
        tool_name=str(tool_name) if tool_name is not None else None,
        tool_input=tool_input,
        file_path=extract_file_path(tool_input),
        source=str(source) if source is not None else None,
    )
