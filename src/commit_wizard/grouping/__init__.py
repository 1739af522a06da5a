"""
Classification and grouping of changed files into commits.

See :mod:`commit_wizard.grouping.change_classifier` for commit type
inference, :mod:`commit_wizard.grouping.grouper` for bucketing and
ordering, and :mod:`commit_wizard.grouping.message_composer` for the
message text.
"""

from .change_classifier import CommitType, classify_change  # noqa: F401
from .group_model import ChangedFile, ChangeGroup, FileStatus  # noqa: F401
from .scope import scope_of  # noqa: F401
from .ticket import ticket_of  # noqa: F401
