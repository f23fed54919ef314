"""hookwise -- hook interception and decision pipeline for agent runtimes.

Usage:
    import hookwise

    config = hookwise.HookConfig.from_dict({"hooks": {"PreToolUse": [
        {"matcher": "Bash", "hooks": [{"type": "command", "command": "./check.sh"}]},
    ]}})
    pipeline = hookwise.HookPipeline()
    event = hookwise.build_event(hookwise.EventKind.PRE_TOOL_USE, "s1",
                                 tool_name="Bash", tool_input={"command": "ls"})
    decision = await pipeline.process(event, config)
    if decision.blocked:
        print(decision.reason)
"""

from hookwise.core.agent import Agent, HookableAgent
from hookwise.core.config import load_hook_config, load_settings
from hookwise.core.meta import apply_stop_decision
from hookwise.errors import (
    EvaluationFailed,
    EvaluatorTransportError,
    HookBlockedError,
    HookCancelledError,
    HookConfigError,
    HookwiseError,
    TurnStateError,
    ValidatorTransportError,
)
from hookwise.hooks import (
    CommandHookRunner,
    Evaluator,
    HookPipeline,
    InterceptedStreams,
    NotificationInterceptor,
    ValidationRequest,
    ValidatorEngine,
    ValidatorResult,
    build_event,
    classify_outcome,
    matches,
)
from hookwise.state import FileTracker, TurnState, TurnStateStore
from hookwise.types import (
    AgentHook,
    Allow,
    AllowWithContext,
    AllowWithUpdatedInput,
    Block,
    CommandHook,
    Decision,
    EventKind,
    HookConfig,
    HookEvent,
    HookGroup,
    HookSettings,
    PromptHook,
    PromptRequest,
    PromptResponse,
    ShouldContinue,
)

__version__ = "0.1.0"

__all__ = [
    # Core API
    "Agent",
    "HookableAgent",
    "HookPipeline",
    "NotificationInterceptor",
    "InterceptedStreams",
    "apply_stop_decision",
    "build_event",
    "classify_outcome",
    "matches",
    "load_hook_config",
    "load_settings",
    # Runners and collaborators
    "CommandHookRunner",
    "Evaluator",
    "ValidatorEngine",
    "ValidationRequest",
    "ValidatorResult",
    # State
    "FileTracker",
    "TurnState",
    "TurnStateStore",
    # Types
    "AgentHook",
    "Allow",
    "AllowWithContext",
    "AllowWithUpdatedInput",
    "Block",
    "CommandHook",
    "Decision",
    "EventKind",
    "HookConfig",
    "HookEvent",
    "HookGroup",
    "HookSettings",
    "PromptHook",
    "PromptRequest",
    "PromptResponse",
    "ShouldContinue",
    # Errors
    "EvaluationFailed",
    "EvaluatorTransportError",
    "HookBlockedError",
    "HookCancelledError",
    "HookConfigError",
    "HookwiseError",
    "TurnStateError",
    "ValidatorTransportError",
]
