"""File change tracking across a turn.

PreToolUse records a content hash for every file a tool call may touch;
PostToolUse re-hashes those files and promotes the ones that differ into the
turn's ``changed`` list, which the Stop validator later reads.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import anyio

from hookwise.state.turn import TurnStateStore
from hookwise.types.hooks import FILE_PATH_KEYS, EventKind, HookEvent

logger = logging.getLogger(__name__)

PATH_LIST_KEYS = ("paths", "files")

_CHUNK_SIZE = 64 * 1024


def hash_file(path: str | Path) -> str | None:
    """SHA-256 hex digest of a regular file, or None if it cannot be read."""
    p = Path(path)
    if not p.is_file():
        return None
    digest = hashlib.sha256()
    try:
        with p.open("rb") as f:
            while chunk := f.read(_CHUNK_SIZE):
                digest.update(chunk)
    except OSError:
        return None
    return digest.hexdigest()


def hash_files(paths: Iterable[str]) -> dict[str, str | None]:
    return {path: hash_file(path) for path in paths}


def extract_paths(tool_input: dict[str, Any] | None) -> list[str]:
    """File paths a tool call names, de-duplicated in order."""
    if not tool_input:
        return []
    found: list[str] = []
    for key in FILE_PATH_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value and value not in found:
            found.append(value)
    for key in PATH_LIST_KEYS:
        values = tool_input.get(key)
        if not isinstance(values, list):
            continue
        for value in values:
            if isinstance(value, str) and value and value not in found:
                found.append(value)
    return found


def _resolve(path: str, cwd: str) -> str:
    p = Path(path)
    if not p.is_absolute():
        p = Path(cwd) / p
    return str(p)


class FileTracker:
    """Maintains the project's :class:`TurnState` from tool events."""

    def __init__(self, store: TurnStateStore | None = None) -> None:
        self._store = store or TurnStateStore()

    @property
    def store(self) -> TurnStateStore:
        return self._store

    async def before_tool(self, event: HookEvent) -> list[str]:
        """Record pre-execution hashes. Returns the paths recorded."""
        tool_use_id = event.tool_use_id
        if event.kind != EventKind.PRE_TOOL_USE or not tool_use_id:
            return []
        paths = [_resolve(p, event.cwd) for p in extract_paths(event.tool_input)]
        if not paths:
            return []

        hashes = hash_files(paths)

        def _record() -> None:
            with self._store.locked(event.cwd) as handle:
                handle.state.pending[tool_use_id] = hashes
                handle.save()

        await anyio.to_thread.run_sync(_record)
        logger.debug("Tracking %d file(s) for tool call %s", len(paths), tool_use_id)
        return paths

    async def after_tool(self, event: HookEvent) -> list[str]:
        """Promote files that changed during the tool call. Returns new entries."""
        tool_use_id = event.tool_use_id
        if event.kind not in (EventKind.POST_TOOL_USE, EventKind.POST_TOOL_USE_FAILURE):
            return []
        if not tool_use_id:
            return []

        def _promote() -> list[str]:
            if not self._store.has_state_dir(event.cwd):
                return []
            with self._store.locked(event.cwd) as handle:
                state = handle.state
                before = state.pending.pop(tool_use_id, None)
                if before is None:
                    return []
                promoted = [
                    path for path, digest in before.items()
                    if hash_file(path) != digest and state.mark_changed(path)
                ]
                handle.save()
                return promoted

        promoted = await anyio.to_thread.run_sync(_promote)
        if promoted:
            logger.debug("Tool call %s changed: %s", tool_use_id, ", ".join(promoted))
        return promoted

    async def changed_files(self, project: str | Path) -> list[str]:
        state = await self._store.aload(project)
        return list(state.changed)

    async def reset(self, event: HookEvent) -> None:
        """Forget the turn (turn boundary)."""
        await self._store.aclear(event.cwd)
        logger.debug("Cleared turn state for %s on %s", event.cwd, event.kind.value)
