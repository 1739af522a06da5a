"""
Commit message and grouping generation with an AI assistant.

This module provides the prompts sent to the assistant and the
:class:`CommitMessageGenerator`, which asks the assistant either for a
single group's message or for a complete grouping of the changed files.
AI grouping is optional; whenever the assistant fails or answers with
something unusable, the deterministic heuristic grouping is used.
"""

from __future__ import annotations

import json
import logging
from textwrap import dedent
from typing import Dict, List, Optional, Sequence

from commit_wizard.grouping.change_classifier import CommitType
from commit_wizard.grouping.group_model import ChangedFile, ChangeGroup
from commit_wizard.grouping.grouper import (
    DuplicateFileError,
    body_lines_for,
    group_changes,
    sort_groups,
    validate_unique_files,
)
from commit_wizard.grouping.message_composer import MAX_HEADER_LENGTH
from commit_wizard.llm.assistant_client import (
    END_MARKER,
    START_MARKER,
    AIError,
    AssistantClient,
)
from commit_wizard.vcs.path_validator import filter_valid_changes


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


MAX_DIFF_SIZE = 1000
MAX_DIFF_PREVIEWS = 5


def _truncate(diff: str, limit: int = MAX_DIFF_SIZE) -> str:
    if len(diff) <= limit:
        return diff
    return diff[:limit] + "\n... (truncated)"


def build_commit_message_prompt(group: ChangeGroup, diff: Optional[str] = None) -> str:
    """Construct the prompt asking for one group's description and body."""
    lines = [
        "Generate a conventional commit message for these changes.",
        "",
        f"Type: {group.commit_type.value}",
    ]
    if group.scope:
        lines.append(f"Scope: {group.scope}")
    if group.ticket:
        lines.append(f"Ticket: {group.ticket}")
    lines.append("")
    lines.append("Changed files:")
    lines.extend(f"  - {f.status.value} {f.path}" for f in group.files)
    if diff:
        lines.append("")
        lines.append(f"Diff (first {MAX_DIFF_SIZE} chars):")
        lines.append(_truncate(diff))

    rules = dedent(
        f"""
        Rules:
        - Use imperative mood: 'add feature' not 'added feature'
        - Do NOT include the type/scope/ticket prefix (feat:, fix(api):, ABC-1:)
        - Start with a lowercase verb and do not end with a period
        - Keep the description under {MAX_HEADER_LENGTH} characters
        - If a body helps, separate it with a blank line and use '- ' bullets

        Output ONLY the commit message, no preamble, between these markers:
        {START_MARKER}
        <description>

        <optional body>
        {END_MARKER}
        """
    ).strip()
    return "\n".join(lines) + "\n\n" + rules


def build_grouping_prompt(
    changes: Sequence[ChangedFile],
    ticket: Optional[str],
    diffs: Dict[str, str],
) -> str:
    """Construct the prompt asking the assistant to group all changed files."""
    lines = [
        "Analyze these changed files and group them into logical commits.",
        "",
        "REQUIREMENTS:",
        "- Group files that belong to the same logical change",
        "- Every file must be in exactly one group",
        "- Use one of these types: " + ", ".join(t.value for t in CommitType),
        "- Determine a short scope from the file paths, or null",
        f"- Keep descriptions imperative and under {MAX_HEADER_LENGTH} characters",
        "",
    ]
    if ticket:
        lines.append(f"Ticket/Issue: {ticket}")
        lines.append("")
    lines.append("CHANGED FILES:")
    lines.extend(f"  {c.status.value} - {c.path}" for c in changes)

    previews = [(path, diff) for path, diff in diffs.items() if diff][:MAX_DIFF_PREVIEWS]
    if previews:
        lines.append("")
        lines.append("DIFF PREVIEW:")
        for path, diff in previews:
            lines.append(f"{path}:")
            lines.append(_truncate(diff))

    example = json.dumps(
        [
            {
                "type": "feat",
                "scope": "api",
                "description": "add user endpoint",
                "files": ["src/api/users.py"],
                "body_lines": ["- implement GET /users"],
            }
        ],
        indent=2,
    )
    lines.append("")
    lines.append("Provide the grouping as a JSON array between these markers:")
    lines.append(START_MARKER)
    lines.append(example)
    lines.append(END_MARKER)
    return "\n".join(lines)


def parse_groups_response(
    response: str,
    changes: Sequence[ChangedFile],
    ticket: Optional[str],
) -> List[ChangeGroup]:
    """Turn a JSON grouping answer into ordered :class:`ChangeGroup` objects.

    Raises
    ------
    AIError
        If the JSON is malformed, names unknown files, or leaves files out.
    DuplicateFileError
        If a file is assigned to more than one group.
    """
    try:
        data = json.loads(response)
    except json.JSONDecodeError as exc:
        raise AIError(f"Assistant returned invalid JSON: {exc}") from exc
    if not isinstance(data, list) or not data:
        raise AIError("Assistant grouping must be a non-empty JSON array")

    by_path = {c.path: c for c in changes}
    groups: List[ChangeGroup] = []
    for item in data:
        if not isinstance(item, dict):
            raise AIError("Each group must be a JSON object")
        paths = item.get("files") or []
        unknown = [p for p in paths if p not in by_path]
        if unknown:
            raise AIError(f"Assistant referenced unknown files: {', '.join(unknown)}")
        if not paths:
            continue
        files = [by_path[p] for p in paths]
        body = item.get("body_lines")
        groups.append(
            ChangeGroup(
                commit_type=CommitType.parse(str(item.get("type", "feat"))),
                scope=item.get("scope") or None,
                ticket=ticket,
                files=files,
                description=str(item.get("description") or "").strip() or f"update {len(files)} files",
                body_lines=[str(line) for line in body] if isinstance(body, list) else body_lines_for(files),
            )
        )

    validate_unique_files(groups)
    missing = set(by_path) - {p for g in groups for p in g.paths}
    if missing:
        raise AIError(f"Assistant grouping left out files: {', '.join(sorted(missing))}")
    return sort_groups(groups)


class CommitMessageGenerator:
    """Generate commit groups and messages with an AI assistant."""

    def __init__(self, assistant: AssistantClient) -> None:
        self.assistant = assistant

    def generate_message(self, group: ChangeGroup, diff: Optional[str] = None):
        """Ask the assistant for ``(description, body)`` for one group."""
        return self.assistant.generate(build_commit_message_prompt(group, diff))

    def generate_groups(
        self,
        changes: Sequence[ChangedFile],
        ticket: Optional[str],
        diffs: Dict[str, str],
    ) -> List[ChangeGroup]:
        """Group ``changes`` with the assistant, falling back to heuristics.

        Returns
        -------
        List[ChangeGroup]
            AI groups ordered like heuristic groups, or the result of
            :func:`~commit_wizard.grouping.grouper.group_changes` when the
            assistant fails.
        """
        valid, _ = filter_valid_changes(changes)
        try:
            response = self.assistant.run(build_grouping_prompt(valid, ticket, diffs))
            groups = parse_groups_response(response, valid, ticket)
        except (AIError, DuplicateFileError) as exc:
            logger.warning("AI grouping failed: %s; using heuristic grouping.", exc)
            return group_changes(valid, ticket)
        logger.info("AI grouping produced %d group(s)", len(groups))
        return groups
