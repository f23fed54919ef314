"""Runtime settings for the hook pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from hookwise.types.hooks import DEFAULT_COMMAND_TIMEOUT, EventKind

# Kinds whose action has already happened; a Block only sets the exit code.
DEFAULT_STDERR_ONLY_KINDS = frozenset({
    EventKind.SESSION_START,
    EventKind.SESSION_END,
    EventKind.NOTIFICATION,
    EventKind.SUBAGENT_START,
    EventKind.PRE_COMPACT,
    EventKind.SETUP,
})


@dataclass(frozen=True, slots=True)
class HookSettings:
    """Knobs shared by the pipeline, the interceptor and the hookable agent."""

    state_dir: str = ".hookwise"
    default_command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    stderr_only_kinds: frozenset[EventKind] = field(
        default_factory=lambda: DEFAULT_STDERR_ONLY_KINDS,
    )
    forward_buffer_size: int = 256
    transcript_path: str = ""
    permission_mode: str = "bypassPermissions"
