"""Hook group matching."""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from hookwise.types.hooks import EventKind, HookEvent, HookGroup

logger = logging.getLogger(__name__)

# Kinds whose matcher is tested against the free-form source string.
_SOURCE_KINDS = frozenset({
    EventKind.SESSION_START,
    EventKind.NOTIFICATION,
    EventKind.SUBAGENT_START,
    EventKind.SUBAGENT_STOP,
    EventKind.PRE_COMPACT,
    EventKind.SETUP,
})


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as exc:
        logger.warning("Invalid hook matcher %r: %s", pattern, exc)
        return None


def matcher_value(event: HookEvent) -> str | None:
    """The string a group's pattern is tested against, if the kind has one."""
    if event.kind in _SOURCE_KINDS:
        return event.source
    if event.kind.is_tool_event:
        return event.tool_name
    return None


def _has_matcher_value(kind: EventKind) -> bool:
    return kind in _SOURCE_KINDS or kind.is_tool_event


def matches(group: HookGroup, event: HookEvent) -> bool:
    """Whether *group* applies to *event*.

    Groups without a pattern match every event. Kinds that carry no matcher
    value (UserPromptSubmit, Stop) match every group; a tool or source kind
    whose value is missing matches only unpatterned groups. A pattern that
    does not compile never matches.
    """
    pattern = group.pattern
    if pattern is None:
        return True
    value = matcher_value(event)
    if value is None:
        return not _has_matcher_value(event.kind)
    compiled = _compile(pattern)
    if compiled is None:
        return False
    return compiled.search(value) is not None


def select_groups(groups: tuple[HookGroup, ...], event: HookEvent) -> list[HookGroup]:
    return [g for g in groups if matches(g, event)]
