"""
Safety checks for repository-relative file paths.

Every path reported by git passes through :func:`validate_path` before it
is attached to a commit group, and again right before it is handed back
to git for staging and committing. Paths that could escape the
repository root are rejected with a :class:`PathError`.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Tuple

from commit_wizard.grouping.group_model import ChangedFile


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")


class PathError(Exception):
    """Raised when a file path is unsafe to pass to git."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unsafe path {path!r}: {reason}")
        self.path = path
        self.reason = reason


def validate_path(path: str) -> None:
    """Validate a repository-relative path.

    Parameters
    ----------
    path : str
        Path relative to the repository root, as reported by git.

    Raises
    ------
    PathError
        If the path is empty, absolute, contains a ``..`` segment, an
        embedded NUL byte, or starts with a drive letter.
    """
    if not path:
        raise PathError(path, "empty path")
    if "\0" in path:
        raise PathError(path, "embedded null byte")
    if path.startswith(("/", "\\")):
        raise PathError(path, "absolute path")
    if _DRIVE_LETTER.match(path):
        raise PathError(path, "drive letter prefix")
    segments = re.split(r"[\\/]", path)
    if ".." in segments:
        raise PathError(path, "parent directory reference")


def is_valid_path(path: str) -> bool:
    """Return True if ``path`` passes :func:`validate_path`."""
    try:
        validate_path(path)
    except PathError:
        return False
    return True


def validate_change(change: ChangedFile) -> None:
    """Validate a changed file, including the source path of a rename."""
    validate_path(change.path)
    if change.old_path is not None:
        validate_path(change.old_path)


def filter_valid_changes(
    changes: Iterable[ChangedFile],
) -> Tuple[List[ChangedFile], List[PathError]]:
    """Split ``changes`` into safe files and the errors for unsafe ones.

    An unsafe file never aborts the batch; it is dropped and its
    :class:`PathError` is returned so the caller can report it.
    """
    valid: List[ChangedFile] = []
    errors: List[PathError] = []
    for change in changes:
        try:
            validate_change(change)
        except PathError as exc:
            logger.warning("Skipping file: %s", exc)
            errors.append(exc)
            continue
        valid.append(change)
    return valid, errors
