"""Command hook runner."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import signal
from collections.abc import Mapping

from hookwise.hooks.output import classify_outcome
from hookwise.observability.tracing import inject_context
from hookwise.types.hooks import DEFAULT_COMMAND_TIMEOUT, Allow, CommandHook, HookEvent, Outcome

logger = logging.getLogger(__name__)


class CommandHookRunner:
    """Runs command hooks through ``sh -c`` with the event JSON on stdin.

    Spawn failures and timeouts are logged and treated as Allow. Exit code
    and output are interpreted by :func:`classify_outcome`.
    """

    def __init__(self, cwd: str | None = None, env: Mapping[str, str] | None = None) -> None:
        self._cwd = cwd
        self._env = dict(env) if env else {}

    def _build_env(self, event: HookEvent) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self._env)
        env["HOOKWISE_PROJECT_DIR"] = self._cwd or event.cwd
        env["HOOKWISE_SESSION_ID"] = event.session_id
        env["HOOKWISE_EVENT"] = event.kind.value
        env["HOOKWISE_TOOL_NAME"] = event.tool_name or ""
        traceparent = inject_context().get("traceparent")
        if traceparent:
            env["TRACEPARENT"] = traceparent
        return env

    @staticmethod
    def _stdin_payload(event: HookEvent) -> bytes:
        payload = {**event.raw_payload, "hook_event_name": event.kind.value}
        return json.dumps(payload, default=str).encode("utf-8")

    async def run(self, hook: CommandHook, event: HookEvent, timeout: float | None = None) -> Outcome:
        if timeout is None:
            timeout = hook.timeout if hook.timeout is not None else DEFAULT_COMMAND_TIMEOUT
        cwd = self._cwd or event.cwd
        if not os.path.isdir(cwd):
            cwd = None

        try:
            proc = await asyncio.create_subprocess_shell(
                hook.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=self._build_env(event),
                start_new_session=True,
            )
        except OSError as exc:
            logger.warning("Failed to start hook command %r: %s", hook.command, exc)
            return Allow()

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(self._stdin_payload(event)),
                timeout=timeout,
            )
        except TimeoutError:
            await _kill(proc)
            logger.warning("Hook command %r timed out after %ss", hook.command, timeout)
            return Allow()
        except asyncio.CancelledError:
            await _kill(proc)
            raise
        except OSError as exc:
            # e.g. BrokenPipe when the hook exits without reading stdin
            await _kill(proc)
            logger.warning("I/O error talking to hook command %r: %s", hook.command, exc)
            return Allow()

        stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""
        logger.debug("Hook command %r exited with %s", hook.command, proc.returncode)
        return classify_outcome(event.kind, proc.returncode, stdout, stderr, hook.command)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    # The hook runs in its own session; take its children down with it.
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    try:
        await proc.wait()
    except ProcessLookupError:
        pass
