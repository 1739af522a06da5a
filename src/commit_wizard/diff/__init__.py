"""
Utilities for collecting diffs of changed files.

The :mod:`commit_wizard.diff.diff_extractor` module gathers unified
diffs in bulk, for prompts that describe several files at once. The
interactive diff viewer fetches diffs lazily through the session.
"""

from .diff_extractor import extract_diffs  # noqa: F401
