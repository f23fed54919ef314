"""Hook pipeline: select, run, merge."""

from __future__ import annotations

import logging

from hookwise.errors import HookConfigError
from hookwise.hooks.command import CommandHookRunner
from hookwise.hooks.evaluator import Evaluator, EvaluatorHookRunner
from hookwise.hooks.matcher import select_groups
from hookwise.hooks.validator import ValidatorEngine, ValidatorRunner
from hookwise.observability import metrics
from hookwise.observability.tracing import span
from hookwise.state.tracker import FileTracker
from hookwise.types.config import HookSettings
from hookwise.types.hooks import (
    AgentHook,
    CommandHook,
    Decision,
    EventKind,
    HookConfig,
    HookDefinition,
    HookEvent,
    Outcome,
    PromptHook,
)

logger = logging.getLogger(__name__)

# Only Stop discards the tracked file set; subagent sessions share it.
_TURN_BOUNDARIES = frozenset({EventKind.STOP})


def outcome_name(outcome: Outcome) -> str:
    return type(outcome).__name__


def hook_type(hook: HookDefinition) -> str:
    match hook:
        case CommandHook():
            return "command"
        case PromptHook():
            return "prompt"
        case AgentHook():
            return "agent"


class HookPipeline:
    """Runs the hooks configured for one event and merges their outcomes.

    Hooks run sequentially in configuration order. The validator, when
    configured, runs after all hooks. The config is passed to every
    :meth:`process` call rather than held here.
    """

    def __init__(
        self,
        command_runner: CommandHookRunner | None = None,
        evaluator: Evaluator | None = None,
        validator: ValidatorEngine | None = None,
        tracker: FileTracker | None = None,
        settings: HookSettings | None = None,
    ) -> None:
        self._settings = settings or HookSettings()
        self._commands = command_runner or CommandHookRunner()
        self._evaluator = EvaluatorHookRunner(evaluator) if evaluator is not None else None
        self._tracker = tracker
        self._validator = ValidatorRunner(validator, tracker) if validator is not None else None

    @property
    def settings(self) -> HookSettings:
        return self._settings

    @property
    def tracker(self) -> FileTracker | None:
        return self._tracker

    def check_config(self, config: HookConfig) -> None:
        """Raise HookConfigError if *config* needs an evaluator and none is set."""
        if self._evaluator is None and config.has_agentic_hooks():
            raise HookConfigError(
                "Hook config contains prompt or agent hooks but no evaluator is configured",
            )

    async def process(self, event: HookEvent, config: HookConfig) -> Decision:
        self.check_config(config)
        attributes = {"hook.event": event.kind.value, "hook.session_id": event.session_id}
        if event.tool_name:
            attributes["hook.tool_name"] = event.tool_name

        with span("hookwise.pipeline", attributes) as s:
            await self._track(event)

            outcomes: list[Outcome] = []
            for group in select_groups(config.groups_for(event.kind), event):
                for hook in group.hooks:
                    outcome = await self._run_hook(hook, event)
                    outcomes.append(outcome)

            if self._validator is not None:
                outcomes.append(await self._validator.run(event))

            decision = Decision.merge(outcomes)

            if self._tracker is not None and event.kind in _TURN_BOUNDARIES:
                await self._tracker.reset(event)

            s.set_attribute("hook.outcome", outcome_name(decision.outcome))
            s.set_attribute("hook.count", len(outcomes))

        metrics.record_decision(event.kind.value, outcome_name(decision.outcome))
        if outcomes:
            logger.debug("%s: %d outcome(s), merged to %s",
                         event.kind.value, len(outcomes), outcome_name(decision.outcome))
        return decision

    async def _track(self, event: HookEvent) -> None:
        if self._tracker is None:
            return
        if event.kind == EventKind.PRE_TOOL_USE:
            await self._tracker.before_tool(event)
        elif event.kind in (EventKind.POST_TOOL_USE, EventKind.POST_TOOL_USE_FAILURE):
            await self._tracker.after_tool(event)

    async def _run_hook(self, hook: HookDefinition, event: HookEvent) -> Outcome:
        kind = event.kind.value
        with metrics.timed_hook(kind, hook_type(hook)):
            match hook:
                case CommandHook():
                    timeout = hook.timeout
                    if timeout is None:
                        timeout = self._settings.default_command_timeout
                    outcome = await self._commands.run(hook, event, timeout)
                case PromptHook() | AgentHook():
                    if self._evaluator is None:
                        raise HookConfigError(f"{hook_type(hook)} hook requires an evaluator")
                    outcome = await self._evaluator.run(hook, event)
        metrics.record_hook_run(kind, hook_type(hook), outcome_name(outcome))
        return outcome
