"""Prompt and agent hooks, delegated to an external Evaluator."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import anyio

from hookwise.errors import EvaluationFailed
from hookwise.types.hooks import AgentHook, Allow, Block, HookEvent, Outcome, PromptHook

logger = logging.getLogger(__name__)

ARGUMENTS_PLACEHOLDER = "$ARGUMENTS"


@runtime_checkable
class Evaluator(Protocol):
    """Judges a rendered hook prompt.

    Returns normally to allow. Raises :class:`~hookwise.errors.EvaluationFailed`
    for a negative verdict and
    :class:`~hookwise.errors.EvaluatorTransportError` when it cannot be reached.
    """

    async def evaluate(self, prompt: str, is_agent: bool, input: dict[str, Any]) -> None: ...


def render_prompt(template: str, payload: dict[str, Any]) -> str:
    """Substitute ``$ARGUMENTS`` with the event payload as JSON."""
    if ARGUMENTS_PLACEHOLDER not in template:
        return template
    return template.replace(ARGUMENTS_PLACEHOLDER, json.dumps(payload, default=str))


class EvaluatorHookRunner:
    def __init__(self, evaluator: Evaluator) -> None:
        self._evaluator = evaluator

    async def run(self, hook: PromptHook | AgentHook, event: HookEvent) -> Outcome:
        match hook:
            case AgentHook():
                is_agent = True
            case PromptHook():
                is_agent = False

        prompt = render_prompt(hook.prompt, event.raw_payload)
        with anyio.move_on_after(hook.timeout) as scope:
            try:
                await self._evaluator.evaluate(prompt, is_agent, event.raw_payload)
            except EvaluationFailed as exc:
                logger.info("%s hook blocked %s: %s",
                            "Agent" if is_agent else "Prompt", event.kind.value, exc.reason)
                return Block(reason=exc.reason)

        if scope.cancelled_caught:
            logger.warning("%s hook timed out after %ss on %s",
                           "Agent" if is_agent else "Prompt", hook.timeout, event.kind.value)
        return Allow()
