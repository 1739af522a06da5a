"""
Configuration loader for commit_wizard.

Settings are read from a JSON file, ``~/.commit_wizard/config.json`` by
default or the file named by the ``COMMIT_WIZARD_CONFIG`` environment
variable. The file is optional: without it every setting keeps its
default. A file that exists but is malformed, or holds values of the
wrong type, raises :class:`ConfigError`.
"""

from __future__ import annotations

import json
import logging
import os
import shlex
from pathlib import Path
from typing import Any, Dict, Optional

from commit_wizard.llm.assistant_client import DEFAULT_COMMAND


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_ENV_VAR = "COMMIT_WIZARD_CONFIG"
UNTRACKED_CHOICES = ("ask", "all", "none")

DEFAULTS: Dict[str, Any] = {
    "ai_command": list(DEFAULT_COMMAND),
    "ai_timeout": 60.0,
    "commit_timeout": 30.0,
    "editor": None,
    "untracked": "ask",
}


class ConfigError(Exception):
    """Raised when the configuration file is malformed or invalid."""

    pass


def get_config_path() -> Path:
    """Return the configuration file path, honouring ``COMMIT_WIZARD_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".commit_wizard" / "config.json"


def _validate(data: Dict[str, Any]) -> Dict[str, Any]:
    config = dict(DEFAULTS)

    for key in data:
        if key not in DEFAULTS:
            logger.debug("Ignoring unknown configuration key '%s'", key)

    if "ai_command" in data:
        command = data["ai_command"]
        if isinstance(command, str):
            command = shlex.split(command)
        if not isinstance(command, list) or not command or not all(isinstance(c, str) for c in command):
            raise ConfigError("'ai_command' must be a non-empty string or list of strings")
        config["ai_command"] = command

    for key in ("ai_timeout", "commit_timeout"):
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"'{key}' must be a positive number")
            config[key] = float(value)

    if "editor" in data:
        if data["editor"] is not None and not isinstance(data["editor"], str):
            raise ConfigError("'editor' must be a string")
        config["editor"] = data["editor"]

    if "untracked" in data:
        if data["untracked"] not in UNTRACKED_CHOICES:
            raise ConfigError(f"'untracked' must be one of: {', '.join(UNTRACKED_CHOICES)}")
        config["untracked"] = data["untracked"]

    return config


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and validate the configuration.

    Args:
        config_path: Explicit file to read. Defaults to :func:`get_config_path`.

    Returns:
        A dictionary with the keys of :data:`DEFAULTS`:
        - ai_command (list[str]): assistant command, prompt appended last
        - ai_timeout (float): seconds to wait for the assistant
        - commit_timeout (float): seconds to wait for ``git commit``
        - editor (str|None): editor command overriding ``$EDITOR``
        - untracked (str): how to treat untracked files, ask/all/none

    Raises:
        ConfigError: If the file exists but is malformed or invalid.
    """
    path = config_path or get_config_path()
    if not path.exists():
        logger.debug("No configuration file at %s; using defaults", path)
        return dict(DEFAULTS)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")

    config = _validate(data)
    logger.debug("Loaded configuration from %s: %s", path, config)
    return config
