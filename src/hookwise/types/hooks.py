"""Hook types: event kinds, events, hook definitions, outcomes, decisions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from hookwise.errors import HookConfigError

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Lifecycle events that can trigger hooks.

    Values are the wire names used in configuration and in ``hook_event_name``.
    """

    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"
    POST_TOOL_USE_FAILURE = "PostToolUseFailure"
    STOP = "Stop"
    SUBAGENT_START = "SubagentStart"
    SUBAGENT_STOP = "SubagentStop"
    SESSION_START = "SessionStart"
    SESSION_END = "SessionEnd"
    NOTIFICATION = "Notification"
    PRE_COMPACT = "PreCompact"
    SETUP = "Setup"
    PERMISSION_REQUEST = "PermissionRequest"

    @property
    def is_tool_event(self) -> bool:
        return self in _TOOL_EVENTS

    @property
    def is_blockable(self) -> bool:
        """Whether a Block on this kind can still stop the action."""
        return self in _BLOCKABLE_EVENTS

    @property
    def is_synchronous(self) -> bool:
        return self in _SYNCHRONOUS_EVENTS


_TOOL_EVENTS = frozenset({
    EventKind.PRE_TOOL_USE,
    EventKind.POST_TOOL_USE,
    EventKind.POST_TOOL_USE_FAILURE,
    EventKind.PERMISSION_REQUEST,
})

_BLOCKABLE_EVENTS = frozenset({
    EventKind.PRE_TOOL_USE,
    EventKind.USER_PROMPT_SUBMIT,
    EventKind.PERMISSION_REQUEST,
})

_SYNCHRONOUS_EVENTS = frozenset({
    EventKind.USER_PROMPT_SUBMIT,
    EventKind.STOP,
    EventKind.SUBAGENT_STOP,
})


@dataclass(frozen=True, slots=True)
class HookEvent:
    """One occurrence of a lifecycle event.

    ``raw_payload`` is the full serialized event sent verbatim to command hooks.
    Build instances with :func:`hookwise.hooks.events.build_event`.
    """

    kind: EventKind
    session_id: str
    raw_payload: dict[str, Any] = field(default_factory=dict)
    tool_name: str | None = None
    tool_input: dict[str, Any] | None = None
    file_path: str | None = None
    source: str | None = None

    @property
    def tool_use_id(self) -> str | None:
        value = self.raw_payload.get("tool_use_id")
        return value if isinstance(value, str) else None

    @property
    def cwd(self) -> str:
        return str(self.raw_payload.get("cwd", "."))


# tool_input fields that name the file a tool call touches, in lookup order
FILE_PATH_KEYS = ("file_path", "path", "file", "notebook_path")


# -- Hook definitions ------------------------------------------------------

DEFAULT_COMMAND_TIMEOUT = 600.0
DEFAULT_PROMPT_TIMEOUT = 30.0
DEFAULT_AGENT_TIMEOUT = 60.0


@dataclass(frozen=True, slots=True)
class CommandHook:
    """Runs a shell command with the event JSON on stdin.

    ``timeout`` of None means the configured default (600s unless overridden).
    """

    command: str
    timeout: float | None = None


@dataclass(frozen=True, slots=True)
class PromptHook:
    """Asks the evaluator a single-shot question."""

    prompt: str
    timeout: float = DEFAULT_PROMPT_TIMEOUT
    model: str | None = None


@dataclass(frozen=True, slots=True)
class AgentHook:
    """Asks the evaluator to run an agentic check."""

    prompt: str
    timeout: float = DEFAULT_AGENT_TIMEOUT
    model: str | None = None


HookDefinition = CommandHook | PromptHook | AgentHook


@dataclass(frozen=True, slots=True)
class HookGroup:
    """An optional matcher pattern plus the hooks it guards, in order."""

    hooks: tuple[HookDefinition, ...]
    matcher: str | None = None

    @property
    def pattern(self) -> str | None:
        """The effective regex, or None when the group matches everything."""
        if not self.matcher or self.matcher == "*":
            return None
        return self.matcher


@dataclass(frozen=True, slots=True)
class HookConfig:
    """Hook groups per event kind, in configuration order."""

    groups: dict[EventKind, tuple[HookGroup, ...]] = field(default_factory=dict)

    def groups_for(self, kind: EventKind) -> tuple[HookGroup, ...]:
        return self.groups.get(kind, ())

    def is_empty(self) -> bool:
        return not any(self.groups.values())

    def has_agentic_hooks(self) -> bool:
        """True if any group uses a prompt or agent hook."""
        return any(
            isinstance(hook, (PromptHook, AgentHook))
            for groups in self.groups.values()
            for group in groups
            for hook in group.hooks
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HookConfig:
        """Build a config from the external JSON shape.

        Accepts ``{"hooks": {"PreToolUse": [...]}}`` or the bare inner mapping.
        Unknown event kinds and hook types are skipped with a warning.
        """
        if not isinstance(data, dict):
            raise HookConfigError(f"Hook config must be a mapping, got {type(data).__name__}")
        if "hooks" in data and isinstance(data["hooks"], dict):
            data = data["hooks"]

        groups: dict[EventKind, tuple[HookGroup, ...]] = {}
        for key, raw_groups in data.items():
            try:
                kind = EventKind(key)
            except ValueError:
                logger.warning("Skipping unsupported hook event kind '%s'", key)
                continue
            if not isinstance(raw_groups, list):
                raise HookConfigError(f"Hooks for {key} must be a list of matcher groups")
            groups[kind] = tuple(_parse_group(key, g) for g in raw_groups)
        return cls(groups=groups)

    @classmethod
    def merge(cls, configs: list[HookConfig]) -> HookConfig:
        """Concatenate groups per event kind, preserving order."""
        merged: dict[EventKind, tuple[HookGroup, ...]] = {}
        for config in configs:
            for kind, kind_groups in config.groups.items():
                merged[kind] = merged.get(kind, ()) + kind_groups
        return cls(groups=merged)


def _parse_group(kind_name: str, raw: Any) -> HookGroup:
    if not isinstance(raw, dict):
        raise HookConfigError(f"Matcher group for {kind_name} must be a mapping")
    raw_hooks = raw.get("hooks") or []
    if not raw_hooks:
        raise HookConfigError(f"Hook entry for {kind_name} has an empty hooks list")

    hooks: list[HookDefinition] = []
    for entry in raw_hooks:
        hook = _parse_hook(kind_name, entry)
        if hook is not None:
            hooks.append(hook)

    matcher = raw.get("matcher")
    return HookGroup(hooks=tuple(hooks), matcher=str(matcher) if matcher is not None else None)


def _parse_hook(kind_name: str, entry: Any) -> HookDefinition | None:
    if not isinstance(entry, dict):
        raise HookConfigError(f"Hook definition for {kind_name} must be a mapping")
    hook_type = entry.get("type", "command")
    timeout = entry.get("timeout")
    match hook_type:
        case "command":
            command = entry.get("command")
            if not command:
                raise HookConfigError(f"Command hook for {kind_name} has no command")
            if timeout is None:
                return CommandHook(command=str(command))
            return CommandHook(command=str(command), timeout=float(timeout))
        case "prompt" | "agent":
            prompt = entry.get("prompt")
            if not prompt:
                raise HookConfigError(f"{hook_type} hook for {kind_name} has no prompt")
            hook_cls = PromptHook if hook_type == "prompt" else AgentHook
            if timeout is None:
                return hook_cls(prompt=str(prompt), model=entry.get("model"))
            return hook_cls(prompt=str(prompt), timeout=float(timeout), model=entry.get("model"))
        case _:
            logger.warning("Skipping unknown hook type '%s' for %s", hook_type, kind_name)
            return None


# -- Outcomes ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Allow:
    precedence: ClassVar[int] = 0


@dataclass(frozen=True, slots=True)
class AllowWithContext:
    text: str
    precedence: ClassVar[int] = 1


@dataclass(frozen=True, slots=True)
class AllowWithUpdatedInput:
    input: dict[str, Any]
    precedence: ClassVar[int] = 2


@dataclass(frozen=True, slots=True)
class ShouldContinue:
    reason: str
    precedence: ClassVar[int] = 3


@dataclass(frozen=True, slots=True)
class Block:
    reason: str
    precedence: ClassVar[int] = 4


Outcome = Allow | Block | AllowWithContext | AllowWithUpdatedInput | ShouldContinue


@dataclass(frozen=True, slots=True)
class Decision:
    """The merged result for one event.

    ``outcome`` is the highest-precedence entry of ``outcomes`` (first one wins
    on ties), or ``Allow()`` when nothing ran.
    """

    outcome: Outcome = field(default_factory=Allow)
    outcomes: tuple[Outcome, ...] = ()

    @classmethod
    def merge(cls, outcomes: list[Outcome] | tuple[Outcome, ...]) -> Decision:
        winner: Outcome = Allow()
        for outcome in outcomes:
            if outcome.precedence > winner.precedence:
                winner = outcome
        return cls(outcome=winner, outcomes=tuple(outcomes))

    @property
    def blocked(self) -> bool:
        return isinstance(self.outcome, Block)

    @property
    def reason(self) -> str | None:
        if isinstance(self.outcome, (Block, ShouldContinue)):
            return self.outcome.reason
        return None

    @property
    def context(self) -> str | None:
        if isinstance(self.outcome, AllowWithContext):
            return self.outcome.text
        return None

    @property
    def contexts(self) -> list[str]:
        """Every context text emitted, in execution order."""
        return [o.text for o in self.outcomes if isinstance(o, AllowWithContext)]
