"""
Interactive terminal front-end.

See :mod:`commit_wizard.ui.interactive`.
"""

from .interactive import SessionContext, handle_key, run_session  # noqa: F401
