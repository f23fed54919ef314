"""Test fixtures: hook script factory, mock agent, evaluator and validator."""

from __future__ import annotations

import stat
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import anyio
import pytest

from hookwise.errors import EvaluationFailed, EvaluatorTransportError
from hookwise.hooks.validator import ValidationRequest, ValidatorResult
from hookwise.types.config import HookSettings
from hookwise.types.hooks import HookConfig
from hookwise.types.notifications import PromptRequest, PromptResponse


class MockAgent:
    """A deterministic inner agent that records every call."""

    def __init__(self, response: PromptResponse | None = None, delay: float = 0.0) -> None:
        self._response = response or PromptResponse(stop_reason="end_turn", text="done")
        self._delay = delay
        self._next_id = 0
        self.sessions: dict[str, str] = {}
        self.loaded: list[str] = []
        self.prompts: list[PromptRequest] = []
        self.cancelled: list[str] = []

    async def new_session(self, cwd: str) -> str:
        self._next_id += 1
        session_id = f"sess-{self._next_id}"
        self.sessions[session_id] = cwd
        return session_id

    async def load_session(self, session_id: str, cwd: str) -> None:
        self.loaded.append(session_id)
        self.sessions[session_id] = cwd

    async def prompt(self, request: PromptRequest) -> PromptResponse:
        self.prompts.append(request)
        if self._delay:
            await anyio.sleep(self._delay)
        return self._response

    async def cancel(self, session_id: str) -> None:
        self.cancelled.append(session_id)


class MockEvaluator:
    """Scripted evaluator.

    ``verdicts`` maps a substring of the rendered prompt to a failure reason;
    prompts matching nothing pass.
    """

    def __init__(
        self,
        verdicts: dict[str, str] | None = None,
        *,
        transport_error: bool = False,
        delay: float = 0.0,
    ) -> None:
        self._verdicts = verdicts or {}
        self._transport_error = transport_error
        self._delay = delay
        self.calls: list[dict[str, Any]] = []

    async def evaluate(self, prompt: str, is_agent: bool, input: dict[str, Any]) -> None:
        self.calls.append({"prompt": prompt, "is_agent": is_agent, "input": input})
        if self._delay:
            await anyio.sleep(self._delay)
        if self._transport_error:
            raise EvaluatorTransportError("evaluator unreachable")
        for needle, reason in self._verdicts.items():
            if needle in prompt:
                raise EvaluationFailed(reason)


@dataclass
class MockValidator:
    """Validator engine returning scripted results and recording requests."""

    results: list[ValidatorResult] = field(default_factory=list)
    requests: list[ValidationRequest] = field(default_factory=list)

    async def validate(self, request: ValidationRequest) -> list[ValidatorResult]:
        self.requests.append(request)
        return list(self.results)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def hook_script(tmp_path: Path) -> Callable[..., str]:
    """Factory writing an executable shell hook; returns the command to run it.

    Usage:
        cmd = hook_script("echo blocked >&2; exit 2")
    """
    scripts = tmp_path / "hooks"
    scripts.mkdir()
    counter = {"n": 0}

    def make(body: str, name: str | None = None) -> str:
        counter["n"] += 1
        path = scripts / (name or f"hook_{counter['n']}.sh")
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return make


@pytest.fixture
def config_for() -> Callable[..., HookConfig]:
    """Build a HookConfig with one group of command hooks for a kind."""

    def make(kind: str, *commands: str, matcher: str | None = None) -> HookConfig:
        group: dict[str, Any] = {
            "hooks": [{"type": "command", "command": c, "timeout": 10} for c in commands],
        }
        if matcher is not None:
            group["matcher"] = matcher
        return HookConfig.from_dict({"hooks": {kind: [group]}})

    return make


@pytest.fixture
def settings() -> HookSettings:
    return HookSettings()


@pytest.fixture
def mock_agent() -> MockAgent:
    return MockAgent()


@pytest.fixture
def mock_evaluator() -> MockEvaluator:
    return MockEvaluator()


@pytest.fixture
def mock_validator() -> MockValidator:
    return MockValidator()
