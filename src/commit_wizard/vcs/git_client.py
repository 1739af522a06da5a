"""
Git client implementation for commit_wizard.

This module wraps the Git operations required by the commit wizard:
reading the working tree status, the current branch and per-file diffs,
and committing one change group at a time. All subprocess calls go
through :meth:`GitClient._run` so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from commit_wizard.grouping.group_model import ChangedFile, ChangeGroup, FileStatus
from commit_wizard.grouping.message_composer import full_message
from commit_wizard.vcs.path_validator import PathError, validate_change


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_COMMIT_TIMEOUT = 30.0
STAGE_TIMEOUT = 10.0

_STATUS_CODES = {
    "A": FileStatus.ADDED,
    "M": FileStatus.MODIFIED,
    "D": FileStatus.DELETED,
    "R": FileStatus.RENAMED,
    "C": FileStatus.ADDED,
    "T": FileStatus.TYPE_CHANGED,
}


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class CommitError(GitError):
    """Raised when committing a change group fails.

    ``diagnostics`` holds the text reported by git, if any.
    """

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(
        self,
        args: List[str],
        check: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command cannot be started, exits with a non-zero
            status when ``check`` is True, or exceeds ``timeout``.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("Git command timed out after %ss: %s", timeout, " ".join(full_cmd))
            raise GitError(f"git {args[0]} timed out after {timeout:g}s") from exc
        except OSError as exc:
            logger.error("Failed to execute git: %s", exc)
            raise GitError(f"Failed to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Status and change detection
    # ------------------------------------------------------------------
    def _status_entries(self) -> List[tuple]:
        """Return ``(xy, path, old_path)`` tuples from ``git status -z``."""
        result = self._run(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        fields = result.stdout.split("\0")
        entries = []
        index = 0
        while index < len(fields):
            entry = fields[index]
            index += 1
            if len(entry) < 4:
                continue
            xy, path = entry[:2], entry[3:]
            old_path = None
            if "R" in xy or "C" in xy:
                # the source path follows as its own NUL-terminated field
                old_path = fields[index] if index < len(fields) else None
                index += 1
            entries.append((xy, path, old_path))
        return entries

    def get_changes(self, include_untracked: bool = False) -> List[ChangedFile]:
        """Get the list of changed files in the repository.

        Both staged and unstaged changes are reported. The index status
        takes precedence over the working tree status.

        Parameters
        ----------
        include_untracked : bool, optional
            Also report untracked files, with status ``UNTRACKED``.

        Raises
        ------
        GitError
            If the git status command fails.
        """
        changes: List[ChangedFile] = []
        for xy, path, old_path in self._status_entries():
            if xy == "??":
                if include_untracked:
                    changes.append(ChangedFile(path=path, status=FileStatus.UNTRACKED))
                continue
            if xy == "!!":
                continue
            code = xy[0] if xy[0] != " " else xy[1]
            status = _STATUS_CODES.get(code, FileStatus.MODIFIED)
            if status is FileStatus.RENAMED and old_path is not None:
                changes.append(ChangedFile(path=path, status=status, old_path=old_path))
            else:
                changes.append(ChangedFile(path=path, status=status))
        return changes

    def get_untracked_files(self) -> List[ChangedFile]:
        """Return untracked files that are not ignored."""
        return [
            ChangedFile(path=path, status=FileStatus.UNTRACKED)
            for xy, path, _ in self._status_entries()
            if xy == "??"
        ]

    def get_current_branch(self) -> str:
        """Get the name of the current branch.

        Raises
        ------
        GitError
            If the branch cannot be determined.
        """
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"], check=True)
        return result.stdout.strip()

    def get_diff(self, path: str) -> str:
        """Return the diff of ``path``: staged changes, else working tree changes."""
        staged = self._run(["diff", "--cached", "--", path], check=True).stdout
        if staged.strip():
            return staged
        return self._run(["diff", "--", path], check=True).stdout

    # ------------------------------------------------------------------
    # Committing
    # ------------------------------------------------------------------
    def commit_group(self, group: ChangeGroup, timeout: float = DEFAULT_COMMIT_TIMEOUT) -> str:
        """Stage and commit exactly the files of ``group``.

        Paths are validated again before they reach git. The message is
        written to a temporary file and passed with ``git commit -F``.

        Returns
        -------
        str
            Combined stdout and stderr of ``git commit``.

        Raises
        ------
        CommitError
            If a path is unsafe, staging or committing fails, or the
            commit does not finish within ``timeout`` seconds.
        """
        for change in group.files:
            try:
                validate_change(change)
            except PathError as exc:
                raise CommitError(str(exc)) from exc

        paths: List[str] = []
        for change in group.files:
            if change.old_path:
                paths.append(change.old_path)
            paths.append(change.path)

        try:
            self._run(["add", "-A", "--"] + paths, timeout=STAGE_TIMEOUT)
        except GitError as exc:
            raise CommitError(f"Failed to stage files: {exc}", diagnostics=str(exc)) from exc

        fd, message_path = tempfile.mkstemp(prefix="commit-wizard-", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(full_message(group))
                handle.write("\n")
            result = self._run(["commit", "-F", message_path, "--"] + paths, timeout=timeout)
        except GitError as exc:
            raise CommitError(f"git commit failed: {exc}", diagnostics=str(exc)) from exc
        finally:
            try:
                os.unlink(message_path)
            except OSError:
                logger.debug("Could not remove temporary message file %s", message_path)

        logger.info("Committed %d file(s): %s", len(group.files), group.description)
        return result.stdout + result.stderr
