"""CLI entry point for hookwise."""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Any

import click
from rich.console import Console

from hookwise.cli.output import configure_logging, decision_to_dict, print_decision
from hookwise.errors import HookwiseError
from hookwise.types.hooks import EventKind

BLOCK_EXIT_CODE = 2


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--trace", is_flag=True, help="Print OpenTelemetry spans and metrics to the console")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, trace: bool) -> None:
    """hookwise -- run agent lifecycle hooks and inspect turn state.

    \b
    Usage:
      hookwise run PreToolUse --config hooks.json --payload event.json
      echo '{"prompt": "hi"}' | hookwise run UserPromptSubmit -c hooks.yaml --payload -
      hookwise state show
      hookwise config list
    """
    configure_logging(verbose)
    if trace:
        from hookwise.observability.exporters import (
            ObservabilityConfig,
            configure_exporters,
            shutdown,
        )

        configure_exporters(ObservabilityConfig(enabled=True))
        ctx.call_on_close(shutdown)


def _read_payload(source: str | None) -> dict[str, Any]:
    if source is None:
        return {}
    try:
        if source == "-":
            text = sys.stdin.read()
        else:
            with open(source) as f:
                text = f.read()
    except OSError as e:
        raise click.BadParameter(str(e), param_hint="--payload")
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--payload")
    if not isinstance(data, dict):
        raise click.BadParameter("payload must be a JSON object", param_hint="--payload")
    return data


@cli.command("run")
@click.argument("kind")
@click.option(
    "--config", "-c", "config_path", required=True,
    type=click.Path(exists=True, dir_okay=False), help="Hook config file (JSON or YAML)",
)
@click.option("--payload", default=None, help="Event payload JSON file, or - for stdin")
@click.option("--session", "-s", "session_id", default=None, help="Session ID")
@click.option("--cwd", default=None, help="Project directory")
@click.option("--track/--no-track", default=True, help="Track file changes in turn state")
@click.option("--json", "as_json", is_flag=True, help="Print the decision as JSON")
def run_cmd(
    kind: str,
    config_path: str,
    payload: str | None,
    session_id: str | None,
    cwd: str | None,
    track: bool,
    as_json: bool,
) -> None:
    """Run the hooks configured for KIND and print the decision.

    Exits with 2 when the decision is Block.
    """
    from hookwise.core.config import load_hook_config, load_settings
    from hookwise.hooks.command import CommandHookRunner
    from hookwise.hooks.events import build_from_payload
    from hookwise.hooks.pipeline import HookPipeline
    from hookwise.state.tracker import FileTracker
    from hookwise.state.turn import TurnStateStore

    try:
        event_kind = EventKind(kind)
    except ValueError:
        choices = ", ".join(k.value for k in EventKind)
        raise click.BadParameter(f"unknown event kind {kind!r} (expected one of {choices})",
                                 param_hint="KIND")

    data = _read_payload(payload)
    project = cwd or data.get("cwd") or os.getcwd()
    settings = load_settings(project)
    data["cwd"] = str(project)
    if session_id is not None:
        data["session_id"] = session_id
    data.setdefault("session_id", "cli")
    data.setdefault("transcript_path", settings.transcript_path)
    data.setdefault("permission_mode", settings.permission_mode)

    try:
        hook_config = load_hook_config(config_path)
        tracker = FileTracker(TurnStateStore(settings.state_dir)) if track else None
        pipeline = HookPipeline(
            command_runner=CommandHookRunner(cwd=str(project)),
            tracker=tracker,
            settings=settings,
        )
        event = build_from_payload(event_kind, data)
        decision = asyncio.run(pipeline.process(event, hook_config))
    except HookwiseError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(decision_to_dict(decision), indent=2, default=str))
    else:
        print_decision(Console(), event_kind.value, decision)

    if decision.blocked:
        click.echo(decision.reason, err=True)
        raise SystemExit(BLOCK_EXIT_CODE)


def _register_subcommands() -> None:
    """Register CLI subcommands."""
    from hookwise.cli.commands import config_cmd, state_cmd

    cli.add_command(state_cmd, "state")
    cli.add_command(config_cmd, "config")


_register_subcommands()


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
