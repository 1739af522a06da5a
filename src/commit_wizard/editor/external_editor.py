"""
External editor integration for commit message editing.

The message is written to a temporary file, the user's editor is run on
it, and the file is read back once the editor exits. Closing the editor
without changing anything, or emptying the buffer, counts as a
cancellation rather than an error.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from typing import List, Optional


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_EDITOR = "vi"

KNOWN_EDITORS = frozenset(
    {"nano", "vim", "vi", "emacs", "nvim", "code", "subl", "atom", "gedit", "kate", "micro", "hx"}
)

_UNSAFE_CHARS = set(";|&`$()<>")


class EditorError(Exception):
    """Raised when the editor cannot be run or exits with an error."""

    pass


def get_editor(preferred: Optional[str] = None) -> str:
    """Return the editor command: ``preferred``, ``$VISUAL``, ``$EDITOR`` or ``vi``."""
    for candidate in (preferred, os.environ.get("VISUAL"), os.environ.get("EDITOR")):
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_EDITOR


def validate_editor_command(command: str) -> List[str]:
    """Split an editor command into arguments, rejecting shell constructs.

    Editors outside :data:`KNOWN_EDITORS` are allowed but logged.

    Raises
    ------
    EditorError
        If the command contains shell metacharacters or is empty.
    """
    if any(ch in _UNSAFE_CHARS for ch in command):
        raise EditorError(
            f"Editor command contains unsafe characters: {command}. "
            "Set EDITOR to a plain editor name such as 'vim' or 'nano'."
        )
    try:
        argv = shlex.split(command)
    except ValueError as exc:
        raise EditorError(f"Cannot parse editor command {command!r}: {exc}") from exc
    if not argv:
        raise EditorError("Editor command is empty")
    name = os.path.basename(argv[0])
    if name not in KNOWN_EDITORS:
        logger.warning("Editor '%s' is not a known editor; running it anyway", name)
    return argv


def edit_text(initial: str, editor: Optional[str] = None) -> Optional[str]:
    """Open ``initial`` in an external editor and return the edited text.

    Parameters
    ----------
    initial : str
        Text to place in the editor buffer.
    editor : Optional[str]
        Editor command overriding ``$VISUAL``/``$EDITOR``.

    Returns
    -------
    Optional[str]
        The edited text, or ``None`` if the user left it unchanged or
        emptied it.

    Raises
    ------
    EditorError
        If the editor cannot be started or exits with a non-zero status.
    """
    argv = validate_editor_command(get_editor(editor))

    fd, path = tempfile.mkstemp(prefix="commit-wizard-", suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(initial)
        logger.debug("Opening editor: %s %s", " ".join(argv), path)
        try:
            result = subprocess.run(argv + [path])
        except OSError as exc:
            raise EditorError(f"Failed to start editor '{argv[0]}': {exc}") from exc
        if result.returncode != 0:
            raise EditorError(f"Editor '{argv[0]}' exited with status {result.returncode}")
        with open(path, "r", encoding="utf-8") as handle:
            edited = handle.read()
    finally:
        try:
            os.unlink(path)
        except OSError:
            logger.debug("Could not remove temporary file %s", path)

    if not edited.strip() or edited.strip() == initial.strip():
        return None
    return edited
