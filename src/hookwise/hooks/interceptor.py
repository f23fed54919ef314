"""Notification interceptor.

Tool calls reported on a session's notification stream have already been
dispatched, so hooks observing them can add context but cannot cancel them.
One loop consumes the inbound stream and feeds three independent outputs:

* ``forwarded`` - every notification, unchanged, in order
* ``cancel`` - session ids to cancel (reserved; nothing publishes here yet)
* ``context`` - additional context emitted by hooks
"""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import anyio
from anyio.abc import ObjectReceiveStream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from hookwise.hooks.events import build_event
from hookwise.hooks.pipeline import HookPipeline
from hookwise.types.config import HookSettings
from hookwise.types.hooks import (
    AllowWithContext,
    AllowWithUpdatedInput,
    Block,
    Decision,
    EventKind,
    HookConfig,
    HookEvent,
)
from hookwise.types.notifications import Notification, ToolCallStarted, ToolCallUpdated

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InterceptedStreams:
    forwarded: MemoryObjectReceiveStream[Notification]
    cancel: MemoryObjectReceiveStream[str]
    context: MemoryObjectReceiveStream[str]


class NotificationInterceptor:
    """Runs the hook pipeline over a live notification stream."""

    def __init__(
        self,
        pipeline: HookPipeline,
        config: HookConfig,
        settings: HookSettings | None = None,
        cwd_for: Callable[[str], str] | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._config = config
        self._settings = settings or pipeline.settings
        self._cwd_for = cwd_for or (lambda _session_id: ".")
        # tool_call_id -> (tool name, raw input), for matching updates to starts
        self._tool_calls: dict[str, tuple[str, dict[str, Any] | None]] = {}
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Notifications dropped because ``forwarded`` was full."""
        return self._dropped

    @asynccontextmanager
    async def intercept(
        self, inbound: ObjectReceiveStream[Notification],
    ) -> AsyncIterator[InterceptedStreams]:
        """Consume *inbound* in the background while the block runs.

        All three outputs close when *inbound* ends. Leaving the block stops
        the loop.
        """
        fwd_send, fwd_recv = anyio.create_memory_object_stream[Notification](
            max_buffer_size=self._settings.forward_buffer_size,
        )
        cancel_send, cancel_recv = anyio.create_memory_object_stream[str](max_buffer_size=math.inf)
        ctx_send, ctx_recv = anyio.create_memory_object_stream[str](max_buffer_size=math.inf)

        async with anyio.create_task_group() as tg:
            tg.start_soon(self._run, inbound, fwd_send, cancel_send, ctx_send)
            try:
                yield InterceptedStreams(forwarded=fwd_recv, cancel=cancel_recv, context=ctx_recv)
            finally:
                tg.cancel_scope.cancel()

    async def _run(
        self,
        inbound: ObjectReceiveStream[Notification],
        forwarded: MemoryObjectSendStream[Notification],
        cancel: MemoryObjectSendStream[str],
        context: MemoryObjectSendStream[str],
    ) -> None:
        async with inbound, forwarded, cancel, context:
            async for notification in inbound:
                for event in self.events_for(notification):
                    decision = await self._pipeline.process(event, self._config)
                    self._apply(event, decision, context)
                self._forward(forwarded, notification)
        logger.debug("Notification stream closed")

    def events_for(self, notification: Notification) -> list[HookEvent]:
        """Hook events implied by one notification, tool event first."""
        session_id = notification.session_id
        cwd = self._cwd_for(session_id)
        events: list[HookEvent] = []

        match notification:
            case ToolCallStarted(tool_call_id=call_id, title=title, raw_input=raw_input):
                self._tool_calls[call_id] = (title, raw_input)
                events.append(build_event(
                    EventKind.PRE_TOOL_USE, session_id, cwd=cwd,
                    tool_name=title, tool_input=raw_input, tool_use_id=call_id,
                    settings=self._settings,
                ))
            case ToolCallUpdated(tool_call_id=call_id, status="failed", raw_output=output):
                name, tool_input = self._tool_calls.pop(call_id, (call_id, None))
                events.append(build_event(
                    EventKind.POST_TOOL_USE_FAILURE, session_id, cwd=cwd,
                    tool_name=name, tool_input=tool_input, tool_use_id=call_id,
                    error=str(output) if output is not None else None,
                    settings=self._settings,
                ))
            case ToolCallUpdated(tool_call_id=call_id, status="completed", raw_output=output):
                name, tool_input = self._tool_calls.pop(call_id, (call_id, None))
                events.append(build_event(
                    EventKind.POST_TOOL_USE, session_id, cwd=cwd,
                    tool_name=name, tool_input=tool_input, tool_use_id=call_id,
                    tool_response=output,
                    settings=self._settings,
                ))

        events.append(build_event(
            EventKind.NOTIFICATION, session_id, cwd=cwd,
            source=notification.notification_type,
            notification_type=notification.notification_type,
            notification=notification.to_dict(),
            settings=self._settings,
        ))
        return events

    def _apply(self, event: HookEvent, decision: Decision, context: MemoryObjectSendStream[str]) -> None:
        match decision.outcome:
            case Block(reason=reason):
                logger.warning("Hook blocked %s for session %s, but the call is already "
                               "in flight and cannot be cancelled: %s",
                               event.kind.value, event.session_id, reason)
            case AllowWithUpdatedInput():
                logger.warning("Updated input from %s hook ignored (tool already dispatched), "
                               "treated as Allow", event.kind.value)

        for outcome in decision.outcomes:
            if isinstance(outcome, AllowWithContext):
                _publish(context, outcome.text)

    def _forward(self, forwarded: MemoryObjectSendStream[Notification], notification: Notification) -> None:
        try:
            forwarded.send_nowait(notification)
        except anyio.WouldBlock:
            self._dropped += 1
            logger.warning("Forwarded notification stream lagging, dropped %s (%d total)",
                           notification.notification_type, self._dropped)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            logger.debug("Forwarded receiver closed, dropping %s", notification.notification_type)


def _publish(stream: MemoryObjectSendStream[str], item: str) -> None:
    try:
        stream.send_nowait(item)
    except (anyio.BrokenResourceError, anyio.ClosedResourceError):
        logger.debug("Context receiver closed, dropping message")
