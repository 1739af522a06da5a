"""
Data models for commit grouping.

A :class:`ChangedFile` is one entry of the repository status. A
:class:`ChangeGroup` is a set of changed files that will be committed
together, along with the structured parts of its Conventional Commit
message. Rendering the message text is the job of
:mod:`commit_wizard.grouping.message_composer`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from commit_wizard.grouping.change_classifier import CommitType


class FileStatus(Enum):
    """Status of a changed file relative to HEAD."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    TYPE_CHANGED = "typechanged"
    UNTRACKED = "untracked"

    @property
    def verb(self) -> str:
        """Verb used when describing the file in a commit body."""
        return _STATUS_VERBS[self]

    @property
    def symbol(self) -> str:
        """Single character marker used in file listings."""
        return _STATUS_SYMBOLS[self]


_STATUS_VERBS = {
    FileStatus.ADDED: "add",
    FileStatus.UNTRACKED: "add",
    FileStatus.MODIFIED: "modify",
    FileStatus.DELETED: "remove",
    FileStatus.RENAMED: "rename",
    FileStatus.TYPE_CHANGED: "update",
}

_STATUS_SYMBOLS = {
    FileStatus.ADDED: "+",
    FileStatus.UNTRACKED: "+",
    FileStatus.MODIFIED: "~",
    FileStatus.DELETED: "-",
    FileStatus.RENAMED: "→",
    FileStatus.TYPE_CHANGED: "•",
}


@dataclass(frozen=True)
class ChangedFile:
    """A single changed file in the repository.

    Attributes
    ----------
    path : str
        Path relative to the repository root.
    status : FileStatus
        Kind of change.
    old_path : Optional[str]
        Previous path of a renamed file, ``None`` otherwise.
    """

    path: str
    status: FileStatus
    old_path: Optional[str] = None


@dataclass
class ChangeGroup:
    """A commit unit: files sharing a commit type and scope.

    Attributes
    ----------
    commit_type : CommitType
        Conventional Commit type of the group.
    files : List[ChangedFile]
        Files in the group, unique by path and never empty.
    scope : Optional[str]
        Optional scope rendered in parentheses after the type.
    ticket : Optional[str]
        Ticket identifier derived from the branch name.
    description : str
        Single-line summary.
    body_lines : List[str]
        Lines of the commit body, in order.
    """

    commit_type: CommitType
    files: List[ChangedFile]
    scope: Optional[str] = None
    ticket: Optional[str] = None
    description: str = ""
    body_lines: List[str] = field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]
