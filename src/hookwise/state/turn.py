"""Per-project turn state, shared across sessions and subagents.

The state file is only ever touched while holding an exclusive cross-process
lock on a sibling ``.lock`` sentinel. Access goes through
:meth:`TurnStateStore.locked`, which yields a handle that is only valid while
the lock is held.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import anyio
import yaml
from filelock import FileLock

from hookwise.errors import TurnStateError

logger = logging.getLogger(__name__)

STATE_FILE = "turn_state.yaml"
LOCK_SUFFIX = ".lock"


@dataclass(slots=True)
class TurnState:
    """Files touched during the current turn.

    ``pending`` maps tool_use_id -> {path: pre-execution hash or None}.
    ``changed`` lists paths confirmed modified, unique and in discovery order.
    """

    pending: dict[str, dict[str, str | None]] = field(default_factory=dict)
    changed: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> TurnState:
        return cls()

    def is_empty(self) -> bool:
        return not self.pending and not self.changed

    def mark_changed(self, path: str) -> bool:
        """Append *path* to ``changed`` unless already present."""
        if path in self.changed:
            return False
        self.changed.append(path)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "pending": {tid: dict(hashes) for tid, hashes in self.pending.items()},
            "changed": list(self.changed),
        }

    @classmethod
    def from_dict(cls, data: Any) -> TurnState:
        """Validate and convert parsed YAML. Raises ValueError on bad shape."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"expected a mapping, got {type(data).__name__}")

        pending_raw = data.get("pending") or {}
        changed_raw = data.get("changed") or []
        if not isinstance(pending_raw, dict):
            raise ValueError("'pending' must be a mapping")
        if not isinstance(changed_raw, list):
            raise ValueError("'changed' must be a list")

        pending: dict[str, dict[str, str | None]] = {}
        for tool_use_id, hashes in pending_raw.items():
            if not isinstance(hashes, dict):
                raise ValueError(f"pending entry for {tool_use_id!r} must be a mapping")
            entry: dict[str, str | None] = {}
            for path, digest in hashes.items():
                if digest is not None and not isinstance(digest, str):
                    raise ValueError(f"hash for {path!r} must be a string or null")
                entry[str(path)] = digest
            pending[str(tool_use_id)] = entry

        state = cls(pending=pending)
        for path in changed_raw:
            if not isinstance(path, str):
                raise ValueError("'changed' entries must be strings")
            state.mark_changed(path)
        return state


class TurnStateHandle:
    """Accessor yielded by :meth:`TurnStateStore.locked`; valid while locked."""

    def __init__(self, state_path: Path) -> None:
        self._path = state_path
        self._state: TurnState | None = None
        self._open = True

    @property
    def state(self) -> TurnState:
        self._check_open()
        if self._state is None:
            self._state = _read_state(self._path)
        return self._state

    def save(self, state: TurnState | None = None) -> None:
        """Persist *state* (or the loaded state) to disk."""
        self._check_open()
        if state is not None:
            self._state = state
        _write_state(self._path, self.state)

    def clear(self) -> None:
        self._check_open()
        self._state = TurnState.empty()
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise TurnStateError(f"Cannot remove turn state: {exc}", str(self._path)) from exc

    def _close(self) -> None:
        self._open = False

    def _check_open(self) -> None:
        if not self._open:
            raise TurnStateError("Turn state handle used after its lock was released")


class TurnStateStore:
    """Loads and saves :class:`TurnState` under ``<project>/<state_dir>/``.

    Lock acquisition blocks without a timeout. A wedged lock is a visible
    hang rather than a silent bypass.
    """

    def __init__(self, state_dir: str = ".hookwise") -> None:
        self._state_dir = state_dir

    def state_path(self, project: str | Path) -> Path:
        return Path(project).resolve() / self._state_dir / STATE_FILE

    def lock_path(self, project: str | Path) -> Path:
        path = self.state_path(project)
        return path.with_name(path.name + LOCK_SUFFIX)

    def has_state_dir(self, project: str | Path) -> bool:
        return self.state_path(project).parent.is_dir()

    @contextmanager
    def locked(self, project: str | Path) -> Iterator[TurnStateHandle]:
        """Hold the project's lock for the duration of the block."""
        state_path = self.state_path(project)
        lock_path = self.lock_path(project)
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            lock = FileLock(lock_path)
            lock.acquire()
        except OSError as exc:
            raise TurnStateError(f"Cannot acquire turn state lock: {exc}", str(lock_path)) from exc

        handle = TurnStateHandle(state_path)
        try:
            yield handle
        finally:
            handle._close()
            lock.release()

    def load(self, project: str | Path) -> TurnState:
        # Reads never create the state directory or its lock.
        if not self.has_state_dir(project):
            return TurnState.empty()
        with self.locked(project) as handle:
            return handle.state

    def save(self, project: str | Path, state: TurnState) -> None:
        with self.locked(project) as handle:
            handle.save(state)

    def clear(self, project: str | Path) -> None:
        if not self.has_state_dir(project):
            return
        with self.locked(project) as handle:
            handle.clear()

    # -- Async wrappers (lock waits run in a worker thread) -------------------

    async def aload(self, project: str | Path) -> TurnState:
        return await anyio.to_thread.run_sync(self.load, project)

    async def asave(self, project: str | Path, state: TurnState) -> None:
        await anyio.to_thread.run_sync(self.save, project, state)

    async def aclear(self, project: str | Path) -> None:
        await anyio.to_thread.run_sync(self.clear, project)


def _read_state(path: Path) -> TurnState:
    if not path.exists():
        return TurnState.empty()
    try:
        text = path.read_text()
    except OSError as exc:
        raise TurnStateError(f"Cannot read turn state: {exc}", str(path)) from exc
    try:
        return TurnState.from_dict(yaml.safe_load(text))
    except (yaml.YAMLError, ValueError) as exc:
        raise TurnStateError(f"Corrupt turn state file {path}: {exc}", str(path)) from exc


def _write_state(path: Path, state: TurnState) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".turn_state.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(state.to_dict(), f, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise TurnStateError(f"Cannot write turn state: {exc}", str(path)) from exc
    logger.debug("Saved turn state to %s (%d pending, %d changed)",
                 path, len(state.pending), len(state.changed))
