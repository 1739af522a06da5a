"""
Heuristics for classifying file changes into Conventional Commit types.

Classification is driven purely by the file path so that it is
deterministic and can be unit tested without a repository. The rules
live in :data:`DEFAULT_RULES`, an ordered tuple evaluated top to bottom:
the first matching rule wins and :attr:`CommitType.FEAT` is the
fallback. Changing the order changes the result for paths matched by
more than one rule (``tests/README.md`` is a test change, not docs).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, List, Sequence


class CommitType(Enum):
    """Conventional Commit types in their fixed sort order.

    The declaration order is the rank used to order commit groups.
    ``FIX``, ``REFACTOR``, ``PERF`` and ``CHORE`` are never produced by
    :func:`classify_change`; they are only reachable by editing a group.
    """

    TEST = "test"
    DOCS = "docs"
    CI = "ci"
    BUILD = "build"
    STYLE = "style"
    FEAT = "feat"
    FIX = "fix"
    REFACTOR = "refactor"
    PERF = "perf"
    CHORE = "chore"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str) -> "CommitType":
        """Map a type string such as ``"fix"`` to a member, ``FEAT`` if unknown."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.FEAT


_RANKS = {member: index for index, member in enumerate(CommitType)}


MANIFEST_FILES = frozenset(
    {
        "dockerfile",
        "package.json",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "cargo.toml",
        "go.mod",
        "pom.xml",
        "build.gradle",
        "composer.json",
        "gemfile",
    }
)


@dataclass(frozen=True)
class ClassificationRule:
    """A named path predicate that maps matching paths to a commit type."""

    commit_type: CommitType
    name: str
    predicate: Callable[[PurePosixPath, str], bool]

    def matches(self, path: str) -> bool:
        lower = path.lower()
        return self.predicate(PurePosixPath(lower), lower)


def _directories(path: PurePosixPath) -> List[str]:
    return list(path.parts[:-1])


def _is_test(path: PurePosixPath, lower: str) -> bool:
    dirs = _directories(path)
    return "tests" in dirs or "test" in dirs or "test" in lower or "spec" in lower


def _is_docs(path: PurePosixPath, lower: str) -> bool:
    return path.suffix in {".md", ".rst"} or "docs" in _directories(path)


def _is_ci(path: PurePosixPath, lower: str) -> bool:
    dirs = _directories(path)
    return ".github" in dirs or ".gitlab" in dirs or "pipeline" in lower


def _is_build(path: PurePosixPath, lower: str) -> bool:
    return path.name in MANIFEST_FILES


def _is_style(path: PurePosixPath, lower: str) -> bool:
    return path.suffix in {".css", ".scss"} or "styles" in _directories(path)


DEFAULT_RULES: Sequence[ClassificationRule] = (
    ClassificationRule(CommitType.TEST, "test files", _is_test),
    ClassificationRule(CommitType.DOCS, "documentation", _is_docs),
    ClassificationRule(CommitType.CI, "ci configuration", _is_ci),
    ClassificationRule(CommitType.BUILD, "build manifests", _is_build),
    ClassificationRule(CommitType.STYLE, "stylesheets", _is_style),
)


def classify_change(
    file_path: str,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> CommitType:
    """Classify a changed file into a Conventional Commit type.

    Parameters
    ----------
    file_path : str
        Path to the changed file relative to the repository root.
    rules : Sequence[ClassificationRule], optional
        Ordered rules to evaluate. Defaults to :data:`DEFAULT_RULES`.

    Returns
    -------
    CommitType
        The type of the first matching rule, or ``CommitType.FEAT``.
    """
    for rule in rules:
        if rule.matches(file_path):
            return rule.commit_type
    return CommitType.FEAT
