"""
Render and parse Conventional Commit messages for a change group.

The header has the form ``type(scope): TICKET: description`` with the
scope and ticket parts omitted when absent. Headers never exceed
:data:`MAX_HEADER_LENGTH` characters: an over-long description is cut
and ends with ``...``.
"""

from __future__ import annotations

from typing import List, Tuple

from commit_wizard.grouping.group_model import ChangeGroup


MAX_HEADER_LENGTH = 72
ELLIPSIS = "..."


def header_prefix(group: ChangeGroup) -> str:
    """Everything in the header before the description."""
    prefix = group.commit_type.value
    if group.scope:
        prefix += f"({group.scope})"
    prefix += ": "
    if group.ticket:
        prefix += f"{group.ticket}: "
    return prefix


def header(group: ChangeGroup) -> str:
    """Render the commit header, truncated to :data:`MAX_HEADER_LENGTH`."""
    prefix = header_prefix(group)
    text = prefix + group.description
    if len(text) <= MAX_HEADER_LENGTH:
        return text

    available = MAX_HEADER_LENGTH - len(prefix)
    if available > len(ELLIPSIS):
        return prefix + group.description[: available - len(ELLIPSIS)] + ELLIPSIS
    # prefix alone is too long, cut through it
    return text[: MAX_HEADER_LENGTH - len(ELLIPSIS)] + ELLIPSIS


def full_message(group: ChangeGroup) -> str:
    """Header, then a blank line and the body lines if there are any."""
    message = header(group)
    if group.body_lines:
        message += "\n\n" + "\n".join(group.body_lines)
    return message


def parse_edited_text(raw: str, prefix: str = "") -> Tuple[str, List[str]]:
    """Split edited message text into a description and body lines.

    The first line is the new description. If it starts with ``prefix``
    (normally :func:`header_prefix` of the group being edited) that text
    is removed; anything else on the line is kept as typed, so a
    description may itself look like ``fix: ...`` or ``ABC-1: ...``. The
    group's type, scope and ticket are never changed by an edit. Every
    non-empty line after the first blank line becomes a body line.

    Returns
    -------
    Tuple[str, List[str]]
        ``(description, body_lines)``.
    """
    lines = raw.splitlines()
    if not lines:
        return "", []

    description = lines[0].strip()
    if prefix and (description == prefix.rstrip() or description.startswith(prefix)):
        description = description[len(prefix):].strip()

    body: List[str] = []
    in_body = False
    for line in lines[1:]:
        if not line.strip():
            in_body = True
            continue
        if in_body:
            body.append(line.rstrip())
    return description, body
