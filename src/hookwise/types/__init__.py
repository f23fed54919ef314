"""Type definitions for hookwise."""

from hookwise.types.config import HookSettings
from hookwise.types.hooks import (
    AgentHook,
    Allow,
    AllowWithContext,
    AllowWithUpdatedInput,
    Block,
    CommandHook,
    Decision,
    EventKind,
    HookConfig,
    HookDefinition,
    HookEvent,
    HookGroup,
    Outcome,
    PromptHook,
    ShouldContinue,
)
from hookwise.types.notifications import (
    AgentMessage,
    AgentThought,
    Notification,
    PlanUpdate,
    PromptRequest,
    PromptResponse,
    ToolCallStarted,
    ToolCallUpdated,
)

__all__ = [
    "AgentHook",
    "AgentMessage",
    "AgentThought",
    "Allow",
    "AllowWithContext",
    "AllowWithUpdatedInput",
    "Block",
    "CommandHook",
    "Decision",
    "EventKind",
    "HookConfig",
    "HookDefinition",
    "HookEvent",
    "HookGroup",
    "HookSettings",
    "Notification",
    "Outcome",
    "PlanUpdate",
    "PromptHook",
    "PromptRequest",
    "PromptResponse",
    "ShouldContinue",
    "ToolCallStarted",
    "ToolCallUpdated",
]
