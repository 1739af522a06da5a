"""
Diff extraction utilities.

The caller provides a client that implements ``get_diff(path)`` and the
changed files to look at. Diffs that cannot be read are recorded as
empty strings so that one unreadable file never blocks a whole prompt.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Protocol, runtime_checkable

from commit_wizard.grouping.group_model import ChangedFile
from commit_wizard.vcs.git_client import GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@runtime_checkable
class DiffSource(Protocol):
    """Anything that can return the unified diff of one file."""

    def get_diff(self, path: str) -> str: ...


def extract_diffs(diff_source: DiffSource, changes: Iterable[ChangedFile]) -> Dict[str, str]:
    """Extract unified diffs for a list of changed files.

    Parameters
    ----------
    diff_source : DiffSource
        Usually a :class:`~commit_wizard.vcs.git_client.GitClient`.
    changes : Iterable[ChangedFile]
        Files to read diffs for.

    Returns
    -------
    Dict[str, str]
        Mapping from file path to diff text, in input order.
    """
    diffs: Dict[str, str] = {}
    for change in changes:
        try:
            diff = diff_source.get_diff(change.path)
        except GitError as exc:
            # Deleted or untracked files may have no diff to show.
            logger.debug("No diff for %s: %s", change.path, exc)
            diff = ""
        diffs[change.path] = diff
    return diffs
