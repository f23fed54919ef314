"""Rich-powered decision output for the CLI."""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from hookwise.types.hooks import (
    Allow,
    AllowWithContext,
    AllowWithUpdatedInput,
    Block,
    Decision,
    Outcome,
    ShouldContinue,
)

STYLE_ALLOW = "bold #34d399"      # green
STYLE_CONTEXT = "bold #60a5fa"    # blue
STYLE_UPDATED = "bold #a78bfa"    # violet
STYLE_CONTINUE = "bold #fbbf24"   # amber
STYLE_BLOCK = "bold #f87171"      # red
STYLE_DETAIL = "#7c7c8a"          # muted grey


def configure_logging(verbose: bool) -> None:
    """Route library logging to a rich stderr handler."""
    handler = RichHandler(console=Console(stderr=True), omit_repeated_times=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger("hookwise")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def outcome_to_dict(outcome: Outcome) -> dict[str, Any]:
    match outcome:
        case Allow():
            return {"outcome": "Allow"}
        case AllowWithContext(text=text):
            return {"outcome": "AllowWithContext", "context": text}
        case AllowWithUpdatedInput(input=updated):
            return {"outcome": "AllowWithUpdatedInput", "updated_input": updated}
        case ShouldContinue(reason=reason):
            return {"outcome": "ShouldContinue", "reason": reason}
        case Block(reason=reason):
            return {"outcome": "Block", "reason": reason}


def decision_to_dict(decision: Decision) -> dict[str, Any]:
    return {
        **outcome_to_dict(decision.outcome),
        "outcomes": [outcome_to_dict(o) for o in decision.outcomes],
    }


def _describe(outcome: Outcome) -> Text:
    match outcome:
        case Allow():
            return Text("Allow", style=STYLE_ALLOW)
        case AllowWithContext(text=text):
            return Text.assemble(("AllowWithContext ", STYLE_CONTEXT), (text, STYLE_DETAIL))
        case AllowWithUpdatedInput(input=updated):
            return Text.assemble(("AllowWithUpdatedInput ", STYLE_UPDATED), (str(updated), STYLE_DETAIL))
        case ShouldContinue(reason=reason):
            return Text.assemble(("ShouldContinue ", STYLE_CONTINUE), (reason, STYLE_DETAIL))
        case Block(reason=reason):
            return Text.assemble(("Block ", STYLE_BLOCK), (reason, STYLE_DETAIL))


def print_decision(console: Console, kind: str, decision: Decision) -> None:
    """Print the merged decision, then one row per hook outcome."""
    console.print(Text.assemble((f"{kind}: ", "bold"), _describe(decision.outcome)))
    if not decision.outcomes:
        console.print(Text("no hooks matched", style=STYLE_DETAIL))
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("#", justify="right", style=STYLE_DETAIL)
    table.add_column("Outcome")
    for index, outcome in enumerate(decision.outcomes, start=1):
        table.add_row(str(index), _describe(outcome))
    console.print(table)
