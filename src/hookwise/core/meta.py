"""Stop-hook decision to response metadata."""

from __future__ import annotations

from dataclasses import replace

from hookwise.types.hooks import Decision, ShouldContinue
from hookwise.types.notifications import PromptResponse

SHOULD_CONTINUE_KEY = "hook_should_continue"
REASON_KEY = "hook_reason"


def apply_stop_decision(response: PromptResponse, decision: Decision) -> PromptResponse:
    """Annotate *response* when a Stop hook asked the agent to keep going.

    Only ``ShouldContinue`` writes metadata; any other outcome returns the
    response unchanged.
    """
    if not isinstance(decision.outcome, ShouldContinue):
        return response
    meta = {
        **response.meta,
        SHOULD_CONTINUE_KEY: True,
        REASON_KEY: decision.outcome.reason,
    }
    return replace(response, meta=meta)


def should_continue(response: PromptResponse) -> bool:
    return bool(response.meta.get(SHOULD_CONTINUE_KEY, False))
