"""Session notification and prompt types exchanged with the wrapped agent."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolCallStarted:
    """The agent dispatched a tool call."""

    session_id: str
    tool_call_id: str
    title: str
    raw_input: dict[str, Any] | None = None

    notification_type = "tool_call"

    def to_dict(self) -> dict[str, Any]:
        return {"sessionUpdate": self.notification_type, **asdict(self)}


@dataclass(frozen=True, slots=True)
class ToolCallUpdated:
    """Progress or completion of a previously started tool call."""

    session_id: str
    tool_call_id: str
    status: str = "completed"  # "in_progress" | "completed" | "failed"
    raw_output: Any = None

    notification_type = "tool_call_update"

    def to_dict(self) -> dict[str, Any]:
        return {"sessionUpdate": self.notification_type, **asdict(self)}


@dataclass(frozen=True, slots=True)
class AgentMessage:
    """A chunk of the agent's visible reply."""

    session_id: str
    text: str

    notification_type = "agent_message"

    def to_dict(self) -> dict[str, Any]:
        return {"sessionUpdate": self.notification_type, **asdict(self)}


@dataclass(frozen=True, slots=True)
class AgentThought:
    """A chunk of the agent's reasoning."""

    session_id: str
    text: str

    notification_type = "agent_thought"

    def to_dict(self) -> dict[str, Any]:
        return {"sessionUpdate": self.notification_type, **asdict(self)}


@dataclass(frozen=True, slots=True)
class PlanUpdate:
    session_id: str
    entries: tuple[str, ...] = ()

    notification_type = "plan"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionUpdate": self.notification_type,
            "session_id": self.session_id,
            "entries": list(self.entries),
        }


Notification = ToolCallStarted | ToolCallUpdated | AgentMessage | AgentThought | PlanUpdate


@dataclass(frozen=True, slots=True)
class PromptRequest:
    """A user prompt for one session; each entry is one text block."""

    session_id: str
    prompt: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.prompt)

    def with_context(self, context: str) -> PromptRequest:
        """Return a copy with *context* inserted as the first block."""
        return replace(self, prompt=(context, *self.prompt))


@dataclass(frozen=True, slots=True)
class PromptResponse:
    """Final response of a turn. ``meta`` carries structured annotations."""

    stop_reason: str = "end_turn"
    text: str = ""
    meta: dict[str, Any] = field(default_factory=dict)
