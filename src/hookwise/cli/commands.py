"""CLI subcommands for hookwise (state, config)."""

from __future__ import annotations

import os

import click
import yaml


def _store(project: str):
    from hookwise.core.config import load_settings
    from hookwise.state.turn import TurnStateStore

    settings = load_settings(project)
    return TurnStateStore(settings.state_dir)


@click.group()
def state_cmd() -> None:
    """Inspect or reset the project's turn state."""


@state_cmd.command("show")
@click.option("--project", default=None, help="Project directory (default: cwd)")
def state_show(project: str | None) -> None:
    """Print the turn state as YAML."""
    from hookwise.errors import TurnStateError

    project = project or os.getcwd()
    store = _store(project)
    try:
        state = store.load(project)
    except TurnStateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if state.is_empty():
        click.echo(f"(no turn state in {store.state_path(project).parent})")
        return
    click.echo(yaml.safe_dump(state.to_dict(), default_flow_style=False, sort_keys=True), nl=False)


@state_cmd.command("clear")
@click.option("--project", default=None, help="Project directory (default: cwd)")
def state_clear(project: str | None) -> None:
    """Discard the turn state."""
    from hookwise.errors import TurnStateError

    project = project or os.getcwd()
    store = _store(project)
    try:
        store.clear(project)
    except TurnStateError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Cleared {store.state_path(project)}")


@click.group()
def config_cmd() -> None:
    """Show hookwise settings."""


@config_cmd.command("list")
@click.option("--cwd", default=None, help="Project directory")
def config_list(cwd: str | None) -> None:
    """Show current configuration."""
    from hookwise.core.config import load_env_config, load_settings, load_toml_config

    click.echo("Environment:")
    env = load_env_config()
    if env:
        for k, v in sorted(env.items()):
            click.echo(f"  {k}: {v}")
    else:
        click.echo("  (no environment variables set)")

    click.echo("\nTOML config:")
    toml = load_toml_config(cwd)
    if toml:
        for k, v in sorted(toml.items()):
            click.echo(f"  {k}: {v}")
    else:
        click.echo("  (no config.toml found)")

    settings = load_settings(cwd)
    click.echo("\nEffective:")
    click.echo(f"  state_dir: {settings.state_dir}")
    click.echo(f"  default_command_timeout: {settings.default_command_timeout}")
    click.echo(f"  permission_mode: {settings.permission_mode}")
    click.echo(f"  transcript_path: {settings.transcript_path or '(none)'}")
    click.echo(f"  forward_buffer_size: {settings.forward_buffer_size}")
    kinds = ", ".join(sorted(k.value for k in settings.stderr_only_kinds))
    click.echo(f"  stderr_only_kinds: {kinds}")
