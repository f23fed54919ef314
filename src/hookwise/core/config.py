"""Configuration loading (TOML, env vars, hook config files)."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from hookwise.errors import HookConfigError
from hookwise.types.config import HookSettings
from hookwise.types.hooks import EventKind, HookConfig

logger = logging.getLogger(__name__)

# Load .env from current directory (and parents), won't override existing env vars
load_dotenv()

CONFIG_DIR = ".hookwise"
CONFIG_FILE = "config.toml"


def load_env_config() -> dict[str, Any]:
    """Load settings from HOOKWISE_* environment variables."""
    config: dict[str, Any] = {}

    if state_dir := os.environ.get("HOOKWISE_STATE_DIR"):
        config["state_dir"] = state_dir
    if timeout := os.environ.get("HOOKWISE_COMMAND_TIMEOUT"):
        try:
            config["default_command_timeout"] = float(timeout)
        except ValueError:
            logger.warning("Ignoring invalid HOOKWISE_COMMAND_TIMEOUT=%r", timeout)
    if mode := os.environ.get("HOOKWISE_PERMISSION_MODE"):
        config["permission_mode"] = mode
    if transcript := os.environ.get("HOOKWISE_TRANSCRIPT_PATH"):
        config["transcript_path"] = transcript
    if stderr_only := os.environ.get("HOOKWISE_STDERR_ONLY"):
        config["stderr_only_kinds"] = [k.strip() for k in stderr_only.split(",") if k.strip()]

    return config


def load_toml_config(cwd: str | Path | None = None) -> dict[str, Any]:
    """Load the ``[hooks]`` section of the first config.toml found.

    Looks in ``<cwd>/.hookwise/config.toml``, then ``~/.hookwise/config.toml``.
    """
    candidates = []
    if cwd:
        candidates.append(Path(cwd) / CONFIG_DIR / CONFIG_FILE)
    candidates.append(Path.cwd() / CONFIG_DIR / CONFIG_FILE)
    candidates.append(Path.home() / CONFIG_DIR / CONFIG_FILE)

    for toml_path in candidates:
        if not toml_path.exists():
            continue
        try:
            with open(toml_path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", toml_path, exc)
            continue
        section = data.get("hooks", {})
        if not isinstance(section, dict):
            logger.warning("Ignoring [hooks] in %s: not a table", toml_path)
            return {}
        return _normalize_toml(section)
    return {}


def _normalize_toml(section: dict[str, Any]) -> dict[str, Any]:
    renames = {"command_timeout": "default_command_timeout", "stderr_only": "stderr_only_kinds"}
    known = {
        "state_dir", "default_command_timeout", "permission_mode",
        "transcript_path", "stderr_only_kinds", "forward_buffer_size",
    }
    config: dict[str, Any] = {}
    for key, value in section.items():
        key = renames.get(key, key)
        if key in known:
            config[key] = value
        else:
            logger.debug("Unknown [hooks] setting %r ignored", key)
    return config


def _parse_kinds(values: Any) -> frozenset[EventKind]:
    if isinstance(values, str):
        values = [v.strip() for v in values.split(",") if v.strip()]
    kinds: set[EventKind] = set()
    for value in values:
        if isinstance(value, EventKind):
            kinds.add(value)
            continue
        try:
            kinds.add(EventKind(value))
        except ValueError:
            logger.warning("Ignoring unknown event kind %r in stderr-only kinds", value)
    return frozenset(kinds)


def load_settings(cwd: str | Path | None = None, **overrides: Any) -> HookSettings:
    """Resolve settings: explicit overrides > environment > TOML > defaults."""
    merged: dict[str, Any] = {}
    merged.update(load_toml_config(cwd))
    merged.update(load_env_config())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if "stderr_only_kinds" in merged:
        merged["stderr_only_kinds"] = _parse_kinds(merged["stderr_only_kinds"])
    if "default_command_timeout" in merged:
        merged["default_command_timeout"] = float(merged["default_command_timeout"])
    if "forward_buffer_size" in merged:
        merged["forward_buffer_size"] = int(merged["forward_buffer_size"])

    return HookSettings(**merged)


def load_hook_config(path: str | Path) -> HookConfig:
    """Read a hook config from an explicit JSON or YAML file."""
    config_path = Path(path)
    try:
        text = config_path.read_text()
    except OSError as exc:
        raise HookConfigError(f"Cannot read hook config {config_path}: {exc}") from exc
    try:
        # YAML is a superset of JSON, one parser covers both
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise HookConfigError(f"Invalid hook config {config_path}: {exc}") from exc
    if data is None:
        return HookConfig()
    return HookConfig.from_dict(data)
