"""Command hook output classification.

:func:`classify_outcome` maps every (exit code, stdout, stderr) triple to an
Outcome and never raises; all fail-open decisions for command hooks are made
here.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from hookwise.types.hooks import (
    Allow,
    AllowWithContext,
    AllowWithUpdatedInput,
    Block,
    EventKind,
    Outcome,
    ShouldContinue,
)

logger = logging.getLogger(__name__)

BLOCK_EXIT_CODE = 2
DEFAULT_DENY_REASON = "Denied by hook"
DEFAULT_STOP_REASON = "Hook requested stop"

_STOP_KINDS = frozenset({EventKind.STOP, EventKind.SUBAGENT_STOP})


def classify_outcome(
    kind: EventKind,
    exit_code: int | None,
    stdout: str,
    stderr: str,
    command: str = "",
) -> Outcome:
    """Classify the result of one command hook run."""
    if exit_code == BLOCK_EXIT_CODE:
        reason = stderr.strip() or stdout.strip()
        if not reason:
            reason = f"Command '{command}' exited with code {BLOCK_EXIT_CODE}"
        return Block(reason=reason)

    if exit_code != 0:
        logger.warning("Hook command %r returned unexpected exit code %s", command, exit_code)
        return Allow()

    data = _parse_json_object(stdout)
    if data is None:
        return Allow()

    try:
        candidates = [
            _decode_specific(data.get("hookSpecificOutput")),
            _decode_top_level(kind, data),
        ]
    except Exception:  # total: garbage in, Allow out
        logger.warning("Could not decode output of hook command %r", command, exc_info=True)
        return Allow()

    winner: Outcome = Allow()
    for outcome in candidates:
        if outcome.precedence > winner.precedence:
            winner = outcome
    return winner


def _parse_json_object(stdout: str) -> dict[str, Any] | None:
    text = stdout.strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        logger.debug("Hook stdout is not JSON, treating as Allow")
        return None
    if not isinstance(data, dict):
        return None
    return data


def _context(value: Any) -> Outcome:
    if isinstance(value, str) and value:
        return AllowWithContext(text=value)
    return Allow()


def _decode_specific(output: Any) -> Outcome:
    """Decode ``hookSpecificOutput``, tagged by ``hookEventName``."""
    if not isinstance(output, dict):
        return Allow()

    match output.get("hookEventName"):
        case "PreToolUse":
            decision = output.get("permissionDecision")
            if decision in ("deny", "block"):
                reason = output.get("permissionDecisionReason")
                return Block(reason=reason if isinstance(reason, str) and reason else DEFAULT_DENY_REASON)
            updated = output.get("updatedInput")
            if isinstance(updated, dict):
                return AllowWithUpdatedInput(input=updated)
            return _context(output.get("additionalContext"))
        case "Stop":
            reason = output.get("reason")
            if isinstance(reason, str) and reason:
                return ShouldContinue(reason=reason)
            return Allow()
        case "PostToolUse" | "PostToolUseFailure" | "UserPromptSubmit" | "SessionStart" | "Notification":
            return _context(output.get("additionalContext"))
        case other:
            logger.debug("Ignoring hookSpecificOutput for unrecognized event %r", other)
            return Allow()


def _decode_top_level(kind: EventKind, data: dict[str, Any]) -> Outcome:
    if data.get("continue") is False:
        reason = data.get("stopReason")
        return Block(reason=reason if isinstance(reason, str) and reason else DEFAULT_STOP_REASON)

    if data.get("decision") == "block":
        reason = data.get("reason")
        reason = reason if isinstance(reason, str) and reason else DEFAULT_DENY_REASON
        if kind in _STOP_KINDS:
            return ShouldContinue(reason=reason)
        return Block(reason=reason)

    return _context(data.get("additionalContext"))
