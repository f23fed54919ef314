"""Adapter over an external Validator Engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from hookwise.state.tracker import FileTracker
from hookwise.types.hooks import Allow, Block, EventKind, HookEvent, Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationRequest:
    kind: EventKind
    tool_name: str | None = None
    file_path: str | None = None
    changed_files: tuple[str, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ValidatorResult:
    """Verdict of one validator on one request."""

    name: str
    passed: bool
    blocking: bool = True
    message: str = ""


@runtime_checkable
class ValidatorEngine(Protocol):
    """Runs the validators that apply to a request.

    Raises :class:`~hookwise.errors.ValidatorTransportError` when unreachable.
    """

    async def validate(self, request: ValidationRequest) -> list[ValidatorResult]: ...


def block_reason(result: ValidatorResult) -> str:
    return f"blocked by validator '{result.name}': {result.message}"


class ValidatorRunner:
    def __init__(self, engine: ValidatorEngine, tracker: FileTracker | None = None) -> None:
        self._engine = engine
        self._tracker = tracker

    async def build_request(self, event: HookEvent) -> ValidationRequest:
        changed: tuple[str, ...] = ()
        if event.kind == EventKind.STOP and self._tracker is not None:
            changed = tuple(await self._tracker.changed_files(event.cwd))
        return ValidationRequest(
            kind=event.kind,
            tool_name=event.tool_name,
            file_path=event.file_path,
            changed_files=changed,
            payload=event.raw_payload,
        )

    async def run(self, event: HookEvent) -> Outcome:
        request = await self.build_request(event)
        results = await self._engine.validate(request)

        for result in results:
            if not result.passed and result.blocking:
                logger.info("Validator %s blocked %s: %s", result.name, event.kind.value, result.message)
                return Block(reason=block_reason(result))
            if not result.passed:
                logger.warning("Validator %s failed (non-blocking): %s", result.name, result.message)
        return Allow()
