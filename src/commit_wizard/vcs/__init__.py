"""
Version control system (VCS) integration.

This package contains the Git client used to read repository status and
diffs and to commit change groups, plus the path safety checks applied
to every path handed to git.
"""

from .git_client import CommitError, GitClient, GitError  # noqa: F401
from .path_validator import PathError, is_valid_path, validate_path  # noqa: F401
