"""
Bucket changed files into commit groups.

Files are keyed by ``(commit type, scope)``. Each key becomes one
:class:`ChangeGroup`, and the groups are sorted by type rank and then
scope (top-level groups first) so that the same set of changes always
produces the same sequence of commits.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from commit_wizard.grouping.change_classifier import CommitType, classify_change
from commit_wizard.grouping.group_model import ChangedFile, ChangeGroup
from commit_wizard.grouping.scope import scope_of
from commit_wizard.vcs.path_validator import filter_valid_changes


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


MAX_BODY_LINES = 20


class NoChangesError(Exception):
    """Raised when there is nothing left to group."""

    pass


class DuplicateFileError(Exception):
    """Raised when a file path appears in more than one group."""

    pass


GroupKey = Tuple[CommitType, Optional[str]]


def _sort_key(commit_type: CommitType, scope: Optional[str]) -> Tuple[int, int, str]:
    # None sorts before any named scope
    return (commit_type.rank, 0 if scope is None else 1, scope or "")


def describe(commit_type: CommitType, scope: Optional[str], files: Sequence[ChangedFile]) -> str:
    """Generate the default one-line description for a group.

    The verb is ``add`` for features, ``fix`` for fixes and ``update``
    for every other type. The object is the scope if there is one, the
    file name for a single top-level file, and a file count otherwise.
    """
    if commit_type is CommitType.FEAT:
        verb = "add"
    elif commit_type is CommitType.FIX:
        verb = "fix"
    else:
        verb = "update"

    if scope:
        return f"{verb} {scope}"
    if len(files) == 1:
        return f"{verb} {files[0].path.rsplit('/', 1)[-1]}"
    return f"{verb} {len(files)} files"


def body_lines_for(files: Sequence[ChangedFile]) -> List[str]:
    """One bullet per file describing what happened to it."""
    lines = [f"- {f.status.verb} {f.path}" for f in files[:MAX_BODY_LINES]]
    if len(files) > MAX_BODY_LINES:
        lines.append(f"- ... and {len(files) - MAX_BODY_LINES} more files")
    return lines


def sort_groups(groups: Iterable[ChangeGroup]) -> List[ChangeGroup]:
    """Return ``groups`` ordered by type rank, then scope with None first."""
    return sorted(groups, key=lambda g: _sort_key(g.commit_type, g.scope))


def validate_unique_files(groups: Sequence[ChangeGroup]) -> None:
    """Raise :class:`DuplicateFileError` if a path is in more than one group."""
    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for index, group in enumerate(groups):
        for path in group.paths:
            if path in seen:
                duplicates.append(f"'{path}' in groups {seen[path]} and {index}")
            else:
                seen[path] = index
    if duplicates:
        raise DuplicateFileError("Duplicate files in commit groups: " + "; ".join(duplicates))


def group_changes(changes: Iterable[ChangedFile], ticket: Optional[str] = None) -> List[ChangeGroup]:
    """Group changed files into deterministic commit groups.

    Parameters
    ----------
    changes : Iterable[ChangedFile]
        Changed files in any order. Unsafe paths are dropped with a
        warning; repeated paths keep their first occurrence.
    ticket : Optional[str]
        Ticket attached to every group.

    Returns
    -------
    List[ChangeGroup]
        Groups ordered by ``(type rank, scope)``.

    Raises
    ------
    NoChangesError
        If no valid file remains.
    """
    valid, _ = filter_valid_changes(changes)

    buckets: Dict[GroupKey, List[ChangedFile]] = {}
    seen = set()
    for change in valid:
        if change.path in seen:
            logger.debug("Ignoring repeated entry for %s", change.path)
            continue
        seen.add(change.path)
        key = (classify_change(change.path), scope_of(change.path))
        buckets.setdefault(key, []).append(change)

    if not buckets:
        raise NoChangesError("No changes to commit")

    groups = [
        ChangeGroup(
            commit_type=commit_type,
            scope=scope,
            ticket=ticket,
            files=files,
            description=describe(commit_type, scope, files),
            body_lines=body_lines_for(files),
        )
        for (commit_type, scope), files in buckets.items()
    ]
    groups = sort_groups(groups)
    logger.debug(
        "Grouped %d file(s) into %d group(s)", sum(len(g.files) for g in groups), len(groups)
    )
    return groups
