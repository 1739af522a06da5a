"""
Configuration loading for commit_wizard.

Provides a loader for the optional JSON settings file in the user's
home directory. See :mod:`commit_wizard.config.loader` for details.
"""

from .loader import ConfigError, load_config  # noqa: F401
