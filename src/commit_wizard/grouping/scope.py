"""Derive a Conventional Commit scope from a file path."""

from __future__ import annotations

from typing import Optional


def scope_of(file_path: str) -> Optional[str]:
    """Return the first directory of ``file_path``, or None for top-level files.

    >>> scope_of("src/api/users.rs")
    'src'
    >>> scope_of("README.md") is None
    True
    """
    head, sep, _ = file_path.partition("/")
    if not sep or not head:
        return None
    return head
