"""
Editor sub-session used to edit commit messages.

See :mod:`commit_wizard.editor.external_editor`.
"""

from .external_editor import EditorError, edit_text  # noqa: F401
