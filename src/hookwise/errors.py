"""Exception hierarchy for hookwise.

Hook execution problems (spawn failures, timeouts, malformed output) are
never raised; they are recovered to ``Allow`` inside the runners. Everything
below is what *does* reach callers.
"""

from __future__ import annotations


class HookwiseError(Exception):
    """Base class for all hookwise errors."""


class HookConfigError(HookwiseError):
    """Raised when a hook configuration cannot be used."""


class TurnStateError(HookwiseError):
    """Raised when the turn-state file cannot be locked, read, or written.

    The store never resets state on its own; a corrupt file surfaces here.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class EvaluationFailed(HookwiseError):
    """Raised by an Evaluator when the evaluated prompt does not pass."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class EvaluatorTransportError(HookwiseError):
    """The Evaluator could not be reached at all."""


class ValidatorTransportError(HookwiseError):
    """The Validator Engine could not be reached at all."""


class HookBlockedError(HookwiseError):
    """A synchronous event was blocked by a hook."""

    def __init__(self, reason: str, kind: str | None = None) -> None:
        super().__init__(f"Blocked by hook: {reason}")
        self.reason = reason
        self.kind = kind


class HookCancelledError(HookwiseError):
    """A prompt was cancelled by a hook-issued cancel signal."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Cancelled by notification hook (session {session_id})")
        self.session_id = session_id
