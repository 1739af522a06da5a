"""
Session state machine for the interactive review of commit groups.

See :mod:`commit_wizard.session.state`.
"""

from .state import CommitReport, Mode, Session, SessionStateError  # noqa: F401
