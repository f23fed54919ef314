"""Tests for hookwise.hooks.interceptor -- hooks over the notification stream."""

from __future__ import annotations

import json
import math

import anyio
import pytest

from hookwise.hooks.interceptor import NotificationInterceptor
from hookwise.hooks.pipeline import HookPipeline
from hookwise.types.config import HookSettings
from hookwise.types.hooks import EventKind, HookConfig
from hookwise.types.notifications import (
    AgentMessage,
    PlanUpdate,
    ToolCallStarted,
    ToolCallUpdated,
)


def _inbound(notifications):
    send, recv = anyio.create_memory_object_stream(max_buffer_size=math.inf)
    for n in notifications:
        send.send_nowait(n)
    send.close()
    return recv


async def _drain(stream, timeout: float = 10.0) -> list:
    items = []
    with anyio.move_on_after(timeout):
        async for item in stream:
            items.append(item)
    return items


def _context_script(hook_script, text: str, event: str = "PostToolUse") -> str:
    output = json.dumps({"hookSpecificOutput": {"hookEventName": event, "additionalContext": text}})
    return hook_script(f"cat > /dev/null; echo '{output}'")


class TestEventsFor:
    def test_tool_call_lifecycle(self):
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig(), cwd_for=lambda s: f"/work/{s}")
        started = interceptor.events_for(ToolCallStarted("s1", "c1", "Bash", {"command": "ls"}))
        assert [e.kind for e in started] == [EventKind.PRE_TOOL_USE, EventKind.NOTIFICATION]
        assert started[0].tool_use_id == "c1"
        assert started[0].cwd == "/work/s1"

        progress = interceptor.events_for(ToolCallUpdated("s1", "c1", status="in_progress"))
        assert [e.kind for e in progress] == [EventKind.NOTIFICATION]

        done = interceptor.events_for(ToolCallUpdated("s1", "c1", raw_output="ok"))
        assert [e.kind for e in done] == [EventKind.POST_TOOL_USE, EventKind.NOTIFICATION]
        assert done[0].tool_name == "Bash"
        assert done[0].tool_input == {"command": "ls"}
        assert done[0].raw_payload["tool_response"] == "ok"

    def test_failed_update(self):
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig())
        interceptor.events_for(ToolCallStarted("s1", "c1", "Write", {"file_path": "a"}))
        events = interceptor.events_for(ToolCallUpdated("s1", "c1", status="failed", raw_output="denied"))
        assert events[0].kind == EventKind.POST_TOOL_USE_FAILURE
        assert events[0].raw_payload["error"] == "denied"
        assert events[0].file_path == "a"

    def test_unknown_call_id_uses_id_as_name(self):
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig())
        events = interceptor.events_for(ToolCallUpdated("s1", "orphan"))
        assert events[0].tool_name == "orphan"

    def test_other_notifications(self):
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig())
        events = interceptor.events_for(AgentMessage("s1", "hello"))
        assert len(events) == 1
        assert events[0].source == "agent_message"
        assert events[0].raw_payload["notification"]["text"] == "hello"


class TestIntercept:
    @pytest.mark.asyncio
    async def test_forwards_in_order(self):
        notifications = [
            AgentMessage("s1", "a"),
            ToolCallStarted("s1", "c1", "Read", {"file_path": "x"}),
            ToolCallUpdated("s1", "c1"),
            PlanUpdate("s1", ("step",)),
        ]
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig())
        async with interceptor.intercept(_inbound(notifications)) as streams:
            assert await _drain(streams.forwarded) == notifications

    @pytest.mark.asyncio
    async def test_context_from_post_tool_hook(self, project, hook_script, config_for):
        config = config_for("PostToolUse", _context_script(hook_script, "X"))
        interceptor = NotificationInterceptor(HookPipeline(), config, cwd_for=lambda s: str(project))
        inbound = _inbound([ToolCallStarted("s1", "c1", "Bash", {"command": "ls"}), ToolCallUpdated("s1", "c1")])
        async with interceptor.intercept(inbound) as streams:
            assert await _drain(streams.context) == ["X"]
            assert len(await _drain(streams.forwarded)) == 2

    @pytest.mark.asyncio
    async def test_context_from_pre_tool_hook(self, project, hook_script, config_for):
        config = config_for("PreToolUse", _context_script(hook_script, "X", event="PreToolUse"), matcher="Bash")
        interceptor = NotificationInterceptor(HookPipeline(), config, cwd_for=lambda s: str(project))
        inbound = _inbound([ToolCallStarted("s1", "c1", "Bash", {"command": "ls"})])
        async with interceptor.intercept(inbound) as streams:
            with anyio.fail_after(10):
                assert "X" in await streams.context.receive()

    @pytest.mark.asyncio
    async def test_block_does_not_cancel(self, project, hook_script, config_for):
        config = config_for("PreToolUse", hook_script("echo 'no' >&2; exit 2"))
        interceptor = NotificationInterceptor(HookPipeline(), config, cwd_for=lambda s: str(project))
        inbound = _inbound([ToolCallStarted("s1", "c1", "Bash", {"command": "rm -rf /"})])
        async with interceptor.intercept(inbound) as streams:
            assert await _drain(streams.cancel) == []
            assert await _drain(streams.context) == []
            assert len(await _drain(streams.forwarded)) == 1

    @pytest.mark.asyncio
    async def test_failing_hook_emits_nothing(self, project, hook_script, config_for):
        config = config_for("PreToolUse", hook_script("exit 1"))
        interceptor = NotificationInterceptor(HookPipeline(), config, cwd_for=lambda s: str(project))
        inbound = _inbound([ToolCallStarted("s1", "c1", "Bash", {})])
        async with interceptor.intercept(inbound) as streams:
            assert await _drain(streams.context, timeout=5) == []
            assert await _drain(streams.cancel, timeout=5) == []

    @pytest.mark.asyncio
    async def test_notification_hook_matcher(self, project, hook_script):
        script = _context_script(hook_script, "plan seen", event="Notification")
        config = HookConfig.from_dict({"Notification": [
            {"matcher": "^plan$", "hooks": [{"type": "command", "command": script, "timeout": 10}]},
        ]})
        interceptor = NotificationInterceptor(HookPipeline(), config, cwd_for=lambda s: str(project))
        inbound = _inbound([AgentMessage("s1", "hi"), PlanUpdate("s1", ("a",))])
        async with interceptor.intercept(inbound) as streams:
            assert await _drain(streams.context) == ["plan seen"]

    @pytest.mark.asyncio
    async def test_overflow_drops_newest(self):
        notifications = [AgentMessage("s1", str(i)) for i in range(5)]
        interceptor = NotificationInterceptor(
            HookPipeline(), HookConfig(), settings=HookSettings(forward_buffer_size=2),
        )
        async with interceptor.intercept(_inbound(notifications)) as streams:
            # context closes once the loop has consumed everything
            await _drain(streams.context)
            assert await _drain(streams.forwarded) == notifications[:2]
        assert interceptor.dropped == 3

    @pytest.mark.asyncio
    async def test_streams_close_when_inbound_ends(self):
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig())
        async with interceptor.intercept(_inbound([])) as streams:
            with anyio.fail_after(5):
                assert await _drain(streams.forwarded) == []
                assert await _drain(streams.cancel) == []
                assert await _drain(streams.context) == []

    @pytest.mark.asyncio
    async def test_leaving_block_stops_loop(self):
        send, recv = anyio.create_memory_object_stream(max_buffer_size=math.inf)
        interceptor = NotificationInterceptor(HookPipeline(), HookConfig())
        with anyio.fail_after(5):
            async with interceptor.intercept(recv) as streams:
                await send.send(AgentMessage("s1", "only"))
                assert await streams.forwarded.receive() == AgentMessage("s1", "only")
        send.close()
