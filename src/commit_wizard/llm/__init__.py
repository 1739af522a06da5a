"""
AI assistant integration for commit_wizard.

This package contains the :class:`AssistantClient`, which runs an
external assistant CLI, and the :class:`CommitMessageGenerator`, which
builds prompts for commit messages and AI-driven grouping.
"""

from .assistant_client import AIError, AssistantClient  # noqa: F401
from .commit_message_generator import CommitMessageGenerator  # noqa: F401
