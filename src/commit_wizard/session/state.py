"""
Interactive session state for reviewing and committing change groups.

A :class:`Session` owns the ordered list of groups built by the grouper,
the current selection, the interaction mode and the status line shown to
the user. The presentation layer reads those fields on every redraw and
calls the transition methods below; collaborators (git, the editor, the
AI assistant) are passed into the methods that need them, so the
session itself performs no I/O.

Modes::

    BROWSING --begin_edit--> EDITING --save_edit/cancel_edit--> BROWSING
    BROWSING --open_diff--> VIEWING_DIFF --close_diff--> BROWSING
    BROWSING --request_ai--> AWAITING_AI --(done)--> BROWSING
    any --quit--> TERMINATED
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from commit_wizard.diff.diff_extractor import DiffSource
from commit_wizard.editor.external_editor import EditorError
from commit_wizard.grouping.change_classifier import CommitType
from commit_wizard.grouping.group_model import ChangeGroup
from commit_wizard.grouping.message_composer import full_message, header_prefix, parse_edited_text
from commit_wizard.llm.assistant_client import AIError
from commit_wizard.llm.commit_message_generator import build_commit_message_prompt
from commit_wizard.vcs.git_client import DEFAULT_COMMIT_TIMEOUT, CommitError, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_AI_TIMEOUT = 60.0


@runtime_checkable
class Committer(Protocol):
    """Commits the files of one group, raising :class:`CommitError` on failure."""

    def commit_group(self, group: ChangeGroup, timeout: float = DEFAULT_COMMIT_TIMEOUT) -> str: ...


@runtime_checkable
class Assistant(Protocol):
    """AI assistant that turns a prompt into ``(description, body)``."""

    def is_available(self) -> bool: ...

    def generate(
        self, prompt: str, timeout: Optional[float] = None
    ) -> Tuple[str, Optional[str]]: ...


class Mode(Enum):
    """Mutually exclusive interaction modes of a session."""

    BROWSING = "browsing"
    EDITING = "editing"
    VIEWING_DIFF = "viewing_diff"
    AWAITING_AI = "awaiting_ai"
    TERMINATED = "terminated"


class SessionStateError(Exception):
    """Raised when an operation is not allowed in the current mode."""

    pass


@dataclass
class CommitReport:
    """Outcome of :meth:`Session.commit_all`.

    ``failed_index`` is the zero-based position of the failing group in
    the sequence that was being committed, ``None`` if all succeeded.
    """

    committed: int = 0
    failed_index: Optional[int] = None
    error: Optional[CommitError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DiffCache:
    """Per-file diffs fetched on first use and kept for the session."""

    def __init__(self) -> None:
        self._diffs: Dict[str, str] = {}

    def get(self, diff_source: DiffSource, path: str) -> str:
        if path not in self._diffs:
            try:
                self._diffs[path] = diff_source.get_diff(path)
            except GitError as exc:
                logger.warning("Could not read diff for %s: %s", path, exc)
                return ""
        return self._diffs[path]

    def __contains__(self, path: str) -> bool:
        return path in self._diffs


@dataclass
class DiffView:
    """Diffs of the selected group's files, loaded lazily file by file."""

    group: ChangeGroup
    diff_source: DiffSource
    cache: DiffCache

    def diff_for(self, path: str) -> str:
        return self.cache.get(self.diff_source, path)

    def render(self) -> str:
        parts = []
        for path in self.group.paths:
            diff = self.diff_for(path)
            parts.append(diff if diff.strip() else f"(no diff available for {path})\n")
        return "\n".join(parts)


@dataclass
class Session:
    """In-memory state of one interactive run.

    Attributes
    ----------
    groups : List[ChangeGroup]
        Groups not yet committed, in commit order.
    selected_index : int
        Index of the selected group; always valid while ``groups`` is
        non-empty.
    mode : Mode
        Current interaction mode.
    status_message : str
        Transient feedback line. Cleared on every transition.
    """

    groups: List[ChangeGroup]
    commit_timeout: float = DEFAULT_COMMIT_TIMEOUT
    ai_timeout: float = DEFAULT_AI_TIMEOUT
    selected_index: int = 0
    mode: Mode = Mode.BROWSING
    status_message: str = ""
    edit_buffer: Optional[str] = None
    diff_view: Optional[DiffView] = None
    diffs: DiffCache = field(default_factory=DiffCache)

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.groups

    @property
    def selected_group(self) -> Optional[ChangeGroup]:
        if self.is_empty:
            return None
        return self.groups[self.selected_index]

    def set_status(self, message: str) -> None:
        self.status_message = message

    def clear_status(self) -> None:
        self.status_message = ""

    def _require(self, *modes: Mode) -> None:
        if self.mode not in modes:
            allowed = ", ".join(m.value for m in modes)
            raise SessionStateError(f"Operation not allowed while {self.mode.value} (needs {allowed})")

    def _require_group(self) -> ChangeGroup:
        group = self.selected_group
        if group is None:
            raise SessionStateError("No commit groups left")
        return group

    def _enter(self, mode: Mode) -> None:
        logger.debug("Session mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode
        self.clear_status()

    def _clamp_selection(self) -> None:
        if self.is_empty:
            self.selected_index = 0
        else:
            self.selected_index = min(self.selected_index, len(self.groups) - 1)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def select_next(self) -> None:
        """Select the next group, wrapping from the last to the first."""
        self._require(Mode.BROWSING)
        if self.groups:
            self.selected_index = (self.selected_index + 1) % len(self.groups)
        self.clear_status()

    def select_previous(self) -> None:
        """Select the previous group, wrapping from the first to the last."""
        self._require(Mode.BROWSING)
        if self.groups:
            self.selected_index = (self.selected_index - 1) % len(self.groups)
        self.clear_status()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def begin_edit(self) -> str:
        """Enter EDITING with the selected group's message as the buffer."""
        self._require(Mode.BROWSING)
        group = self._require_group()
        self._enter(Mode.EDITING)
        self.edit_buffer = full_message(group)
        return self.edit_buffer

    def save_edit(self, text: str) -> bool:
        """Apply edited text to the selected group and return to BROWSING.

        Only the description and body change. Text without a description
        is treated like :meth:`cancel_edit`; False is returned then.
        """
        self._require(Mode.EDITING)
        group = self._require_group()
        description, body_lines = parse_edited_text(text, header_prefix(group))
        self.edit_buffer = None
        self._enter(Mode.BROWSING)
        if not description:
            self.set_status("Empty commit message, kept the old one")
            return False
        group.description = description
        group.body_lines = body_lines
        self.set_status("✓ Updated commit message")
        return True

    def cancel_edit(self) -> None:
        """Discard the edit buffer and return to BROWSING."""
        self._require(Mode.EDITING)
        self.edit_buffer = None
        self._enter(Mode.BROWSING)

    def edit_with(self, editor: Callable[[str], Optional[str]]) -> bool:
        """Run a full edit through ``editor``.

        ``editor`` receives the buffer and returns the edited text, or
        ``None`` when the user cancelled.

        Returns
        -------
        bool
            True if the group's message was updated.
        """
        buffer = self.begin_edit()
        try:
            edited = editor(buffer)
        except EditorError as exc:
            logger.error("Editor failed: %s", exc)
            self.cancel_edit()
            self.set_status(f"✗ Editor error: {exc}. Kept old message.")
            return False
        if edited is None:
            self.cancel_edit()
            self.set_status("Edit cancelled")
            return False
        return self.save_edit(edited)

    # ------------------------------------------------------------------
    # Diff viewing
    # ------------------------------------------------------------------
    def open_diff(self, diff_source: DiffSource) -> DiffView:
        """Enter VIEWING_DIFF for the selected group."""
        self._require(Mode.BROWSING)
        group = self._require_group()
        self._enter(Mode.VIEWING_DIFF)
        self.diff_view = DiffView(group=group, diff_source=diff_source, cache=self.diffs)
        return self.diff_view

    def close_diff(self) -> None:
        self._require(Mode.VIEWING_DIFF)
        self.diff_view = None
        self._enter(Mode.BROWSING)

    # ------------------------------------------------------------------
    # AI generation
    # ------------------------------------------------------------------
    def request_ai(self, assistant: Assistant, diff_source: Optional[DiffSource] = None) -> bool:
        """Replace the selected group's message with an AI suggestion.

        The session is in AWAITING_AI while the assistant runs and is
        back in BROWSING afterwards. On any :class:`AIError` the previous
        message is kept.

        Returns
        -------
        bool
            True if the message was replaced.
        """
        self._require(Mode.BROWSING)
        group = self._require_group()
        if not assistant.is_available():
            self.set_status("✗ AI assistant is not available")
            return False

        self._enter(Mode.AWAITING_AI)
        diff = None
        if diff_source is not None:
            diff = "".join(self.diffs.get(diff_source, path) for path in group.paths) or None
        prompt = build_commit_message_prompt(group, diff)
        try:
            description, body = assistant.generate(prompt, timeout=self.ai_timeout)
        except AIError as exc:
            logger.warning("AI generation failed: %s", exc)
            self._enter(Mode.BROWSING)
            self.set_status(f"✗ AI generation failed: {exc}")
            return False

        group.description = description
        group.body_lines = [line.rstrip() for line in (body or "").splitlines() if line.strip()]
        self._enter(Mode.BROWSING)
        self.set_status("✓ AI generated commit message")
        return True

    # ------------------------------------------------------------------
    # Structured edits
    # ------------------------------------------------------------------
    def set_commit_type(self, commit_type: CommitType) -> None:
        self._require(Mode.BROWSING)
        group = self._require_group()
        group.commit_type = commit_type
        self.set_status(f"✓ Type set to {commit_type.value}")

    def set_scope(self, scope: Optional[str]) -> None:
        self._require(Mode.BROWSING)
        group = self._require_group()
        group.scope = scope.strip() if scope and scope.strip() else None
        self.set_status(f"✓ Scope set to {group.scope}" if group.scope else "✓ Scope removed")

    def move_file(self, path: str, target_index: int) -> None:
        """Move ``path`` from the selected group to the group at ``target_index``.

        Raises
        ------
        SessionStateError
            If the file is not in the selected group, the target is the
            same or out of range, or the move would empty the group.
        """
        self._require(Mode.BROWSING)
        source = self._require_group()
        if not 0 <= target_index < len(self.groups) or target_index == self.selected_index:
            raise SessionStateError(f"Invalid target group {target_index}")
        matches = [f for f in source.files if f.path == path]
        if not matches:
            raise SessionStateError(f"{path} is not in the selected group")
        if len(source.files) == 1:
            raise SessionStateError("Cannot move the only file out of a group")
        source.files.remove(matches[0])
        self.groups[target_index].files.append(matches[0])
        self.set_status(f"✓ Moved {path} to group {target_index + 1}")

    # ------------------------------------------------------------------
    # Committing
    # ------------------------------------------------------------------
    def commit_selected(self, committer: Committer) -> bool:
        """Commit the selected group and remove it on success."""
        self._require(Mode.BROWSING)
        group = self._require_group()
        self.clear_status()
        try:
            committer.commit_group(group, timeout=self.commit_timeout)
        except CommitError as exc:
            logger.error("Commit failed for '%s': %s", group.description, exc)
            self.set_status(f"✗ Commit failed for group {self.selected_index + 1}: {exc}")
            return False
        del self.groups[self.selected_index]
        self._clamp_selection()
        self.set_status("✓ Committed selected group")
        return True

    def commit_all(self, committer: Committer) -> CommitReport:
        """Commit every group in order, stopping at the first failure.

        Successful commits are removed and never rolled back. On failure
        the failing group and everything after it stay, and the failing
        group becomes selected.
        """
        self._require(Mode.BROWSING)
        self.clear_status()
        report = CommitReport()
        total = len(self.groups)
        for position in range(total):
            group = self.groups[0]
            try:
                committer.commit_group(group, timeout=self.commit_timeout)
            except CommitError as exc:
                logger.error("Commit all stopped at group %d: %s", position, exc)
                report.failed_index = position
                report.error = exc
                self.selected_index = 0
                self.set_status(
                    f"✗ Committed {report.committed} of {total}; group {position + 1} failed: {exc}"
                )
                return report
            del self.groups[0]
            report.committed += 1
        self._clamp_selection()
        self.set_status(f"✓ Committed all {total} group(s)")
        return report

    def quit(self) -> None:
        self._enter(Mode.TERMINATED)
