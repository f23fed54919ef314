"""Hook matching, execution, and decision merging."""

from hookwise.hooks.command import CommandHookRunner
from hookwise.hooks.evaluator import Evaluator, EvaluatorHookRunner, render_prompt
from hookwise.hooks.events import build_event, build_from_payload, extract_file_path
from hookwise.hooks.interceptor import InterceptedStreams, NotificationInterceptor
from hookwise.hooks.matcher import matcher_value, matches
from hookwise.hooks.output import classify_outcome
from hookwise.hooks.pipeline import HookPipeline
from hookwise.hooks.validator import (
    ValidationRequest,
    ValidatorEngine,
    ValidatorResult,
    ValidatorRunner,
)

__all__ = [
    "CommandHookRunner",
    "Evaluator",
    "EvaluatorHookRunner",
    "HookPipeline",
    "InterceptedStreams",
    "NotificationInterceptor",
    "ValidationRequest",
    "ValidatorEngine",
    "ValidatorResult",
    "ValidatorRunner",
    "build_event",
    "build_from_payload",
    "classify_outcome",
    "extract_file_path",
    "matcher_value",
    "matches",
    "render_prompt",
]
