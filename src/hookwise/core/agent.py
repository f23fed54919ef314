"""Hookable agent wrapper.

Wraps any :class:`Agent` and fires the synchronous lifecycle events around
its calls: SessionStart after a session is created or loaded,
UserPromptSubmit before a prompt (can block or add context) and Stop after
it (can ask the caller to keep going).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import anyio
from anyio.abc import ObjectReceiveStream

from hookwise.core.meta import apply_stop_decision
from hookwise.errors import HookBlockedError, HookCancelledError, HookwiseError
from hookwise.hooks.events import build_event
from hookwise.hooks.interceptor import NotificationInterceptor
from hookwise.hooks.pipeline import HookPipeline
from hookwise.types.config import HookSettings
from hookwise.types.hooks import (
    Block,
    Decision,
    EventKind,
    HookConfig,
    ShouldContinue,
)
from hookwise.types.notifications import PromptRequest, PromptResponse

logger = logging.getLogger(__name__)

SOURCE_STARTUP = "startup"
SOURCE_RESUME = "resume"

# Kinds that only make sense through their dedicated methods
_MANAGED_KINDS = frozenset({
    EventKind.USER_PROMPT_SUBMIT,
    EventKind.STOP,
    EventKind.SESSION_START,
    EventKind.SESSION_END,
})


@runtime_checkable
class Agent(Protocol):
    """The session/prompt surface hookwise wraps."""

    async def new_session(self, cwd: str) -> str: ...

    async def load_session(self, session_id: str, cwd: str) -> None: ...

    async def prompt(self, request: PromptRequest) -> PromptResponse: ...

    async def cancel(self, session_id: str) -> None: ...


class HookableAgent:
    """An :class:`Agent` that runs hooks around the wrapped agent's calls.

    ``exit_code`` is a side channel for hosts that run as hook-style
    processes: it becomes 2 when a hook blocks an event whose action already
    happened (see ``HookSettings.stderr_only_kinds``).
    """

    def __init__(
        self,
        inner: Agent,
        config: HookConfig,
        pipeline: HookPipeline | None = None,
        settings: HookSettings | None = None,
    ) -> None:
        self._inner = inner
        self._config = config
        self._pipeline = pipeline or HookPipeline(settings=settings)
        self._settings = settings or self._pipeline.settings
        self._pipeline.check_config(config)
        self._session_cwd: dict[str, str] = {}
        self._in_stop_hook: set[str] = set()
        self._continuing: set[str] = set()
        self.exit_code = 0

    @property
    def inner(self) -> Agent:
        return self._inner

    @property
    def config(self) -> HookConfig:
        return self._config

    def cwd_for(self, session_id: str) -> str:
        return self._session_cwd.get(session_id, ".")

    # -- Sessions ---------------------------------------------------------

    async def new_session(self, cwd: str | Path) -> str:
        session_id = await self._inner.new_session(str(cwd))
        await self._session_start(session_id, SOURCE_STARTUP, str(cwd))
        return session_id

    async def load_session(self, session_id: str, cwd: str | Path) -> None:
        await self._inner.load_session(session_id, str(cwd))
        await self._session_start(session_id, SOURCE_RESUME, str(cwd))

    async def end_session(self, session_id: str, reason: str | None = None) -> Decision:
        decision = await self._fire(EventKind.SESSION_END, session_id, source=reason)
        self._session_cwd.pop(session_id, None)
        self._continuing.discard(session_id)
        return decision

    async def _session_start(self, session_id: str, source: str, cwd: str) -> None:
        self._session_cwd[session_id] = cwd
        await self._fire(EventKind.SESSION_START, session_id, source=source)

    # -- Prompts ----------------------------------------------------------

    async def prompt(self, request: PromptRequest) -> PromptResponse:
        """Run UserPromptSubmit hooks, the inner prompt, then Stop hooks.

        Raises HookBlockedError if a UserPromptSubmit hook blocks.
        """
        session_id = request.session_id

        decision = await self._fire(EventKind.USER_PROMPT_SUBMIT, session_id, prompt=request.text)
        if isinstance(decision.outcome, Block):
            raise HookBlockedError(decision.outcome.reason, EventKind.USER_PROMPT_SUBMIT.value)
        if decision.contexts:
            request = request.with_context("\n".join(decision.contexts))

        response = await self._inner.prompt(request)
        return await self._stop(session_id, response)

    async def _stop(self, session_id: str, response: PromptResponse) -> PromptResponse:
        stop_hook_active = session_id in self._in_stop_hook or session_id in self._continuing
        self._in_stop_hook.add(session_id)
        try:
            decision = await self._fire(
                EventKind.STOP, session_id,
                stop_reason=response.stop_reason,
                stop_hook_active=stop_hook_active,
            )
        finally:
            self._in_stop_hook.discard(session_id)

        if isinstance(decision.outcome, ShouldContinue):
            self._continuing.add(session_id)
            logger.info("Stop hook asked session %s to continue: %s",
                        session_id, decision.outcome.reason)
        else:
            self._continuing.discard(session_id)
        return apply_stop_decision(response, decision)

    async def prompt_with_cancel(
        self,
        request: PromptRequest,
        cancel: ObjectReceiveStream[str],
    ) -> PromptResponse:
        """Like :meth:`prompt`, but abort on the first item from *cancel*.

        Cancellation calls the inner agent's ``cancel`` and raises
        HookCancelledError.
        """
        result: list[PromptResponse] = []
        errors: list[Exception] = []
        cancelled = False

        async def _prompt(scope: anyio.CancelScope) -> None:
            try:
                result.append(await self.prompt(request))
            except Exception as exc:
                # re-raised below, outside the task group
                errors.append(exc)
            scope.cancel()

        async def _watch(scope: anyio.CancelScope) -> None:
            nonlocal cancelled
            try:
                await cancel.receive()
            except anyio.EndOfStream:
                return
            cancelled = True
            scope.cancel()

        async with anyio.create_task_group() as tg:
            tg.start_soon(_prompt, tg.cancel_scope)
            tg.start_soon(_watch, tg.cancel_scope)

        if errors:
            raise errors[0]
        if result:
            return result[0]
        if not cancelled:
            raise HookwiseError(f"prompt for session {request.session_id} ended without a response")
        await self._inner.cancel(request.session_id)
        raise HookCancelledError(request.session_id)

    # -- Other events -----------------------------------------------------

    async def fire(self, kind: EventKind, session_id: str, **fields: Any) -> Decision:
        """Fire a logged-only event such as SubagentStart or PreCompact."""
        if kind in _MANAGED_KINDS:
            raise ValueError(f"{kind.value} is fired by the agent itself")
        return await self._fire(kind, session_id, **fields)

    async def _fire(self, kind: EventKind, session_id: str, **fields: Any) -> Decision:
        event = build_event(
            kind, session_id, cwd=self.cwd_for(session_id), settings=self._settings, **fields,
        )
        decision = await self._pipeline.process(event, self._config)

        if decision.blocked and kind in self._settings.stderr_only_kinds:
            logger.warning("%s hook blocked (already happened): %s", kind.value, decision.reason)
            self.exit_code = 2
        elif decision.blocked and not kind.is_blockable:
            logger.info("%s hook blocked, logged only: %s", kind.value, decision.reason)
        return decision

    # -- Notifications ----------------------------------------------------

    def interceptor(self) -> NotificationInterceptor:
        """A notification interceptor sharing this agent's hooks and session cwds."""
        return NotificationInterceptor(
            self._pipeline, self._config, settings=self._settings, cwd_for=self.cwd_for,
        )
