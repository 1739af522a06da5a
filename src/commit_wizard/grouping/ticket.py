"""Extract an issue tracker ticket from a branch name."""

from __future__ import annotations

import re
from typing import Optional


TICKET_PATTERN = re.compile(r"[A-Z]+-\d+")


def ticket_of(branch_name: str) -> Optional[str]:
    """Return the first ``KEY-123`` style ticket in ``branch_name``.

    Only an uppercase project key followed by a hyphen and digits
    matches, so ``feature/JIRA-42-add-x`` yields ``"JIRA-42"`` while
    ``main`` or ``fix/jira-42`` yield ``None``.
    """
    match = TICKET_PATTERN.search(branch_name)
    return match.group(0) if match else None
