"""
Terminal front-end for a review session.

The loop is single threaded: draw the session, read one key with
``click.getchar()``, dispatch it with :func:`handle_key`, repeat. It only
reads the session's public fields and calls its transition methods;
everything blocking (git, the editor, the AI assistant) happens inside
those calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import click

from commit_wizard.grouping.change_classifier import CommitType
from commit_wizard.grouping.message_composer import full_message, header
from commit_wizard.session.state import Assistant, Mode, Session, SessionStateError
from commit_wizard.vcs.git_client import GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


KEYS_DOWN = ("j", "\x1b[B", "\x1bOB", "\xe0P", "\x00P")
KEYS_UP = ("k", "\x1b[A", "\x1bOA", "\xe0H", "\x00H")
KEYS_QUIT = ("q", "\x1b")
KEY_CLEAR = "\x0c"  # Ctrl+L

WIDTH = 72


@dataclass
class SessionContext:
    """Collaborators the key handlers need.

    ``assistant`` is ``None`` when AI features are disabled.
    """

    git_client: GitClient
    editor: Callable[[str], Optional[str]]
    assistant: Optional[Assistant] = None


def shortcuts(ai_enabled: bool) -> str:
    items = ["↑/↓ select", "e edit", "d diff"]
    if ai_enabled:
        items.append("a AI message")
    items += ["t type", "s scope", "m move file", "c commit", "C commit all", "q quit"]
    return " | ".join(items)


def render(session: Session, ai_enabled: bool = False) -> List[str]:
    """Return the lines of one screen for ``session``."""
    lines = [f"{'─' * WIDTH}", f"📦 Commit Groups ({len(session.groups)})", f"{'─' * WIDTH}"]
    for index, group in enumerate(session.groups):
        marker = "▶ " if index == session.selected_index else "  "
        text = f"{marker}{header(group)}"
        if index == session.selected_index:
            text = click.style(text, fg="yellow", bold=True)
        lines.append(text)

    group = session.selected_group
    if group is not None:
        lines.append("")
        lines.append(click.style("💬 Commit message", fg="green"))
        lines.extend(f"   {line}" for line in full_message(group).splitlines())
        lines.append("")
        lines.append(click.style(f"📄 Files ({len(group.files)})", fg="magenta"))
        for number, change in enumerate(group.files, start=1):
            lines.append(f"  {number:>2}. {change.status.symbol} {change.path}")

    lines.append("")
    if session.status_message:
        lines.append(session.status_message)
    lines.append(click.style(shortcuts(ai_enabled), dim=True))
    return lines


def draw(session: Session, ai_enabled: bool = False) -> None:
    click.clear()
    for line in render(session, ai_enabled):
        click.echo(line)


def _show_diff(session: Session, context: SessionContext) -> None:
    view = session.open_diff(context.git_client)
    try:
        click.echo_via_pager(view.render())
    finally:
        session.close_diff()


def _request_ai(session: Session, context: SessionContext) -> None:
    if context.assistant is None:
        session.set_status("✗ AI mode not enabled")
        return
    click.echo("🤖 Generating commit message with AI...")
    session.request_ai(context.assistant, context.git_client)


def _change_type(session: Session) -> None:
    group = session.selected_group
    choice = click.prompt(
        "   Commit type",
        type=click.Choice([t.value for t in CommitType]),
        default=group.commit_type.value if group else CommitType.FEAT.value,
    )
    session.set_commit_type(CommitType(choice))


def _change_scope(session: Session) -> None:
    group = session.selected_group
    scope = click.prompt(
        "   Scope (blank for none)",
        default=(group.scope or "") if group else "",
        show_default=False,
    )
    session.set_scope(scope)


def _move_file(session: Session) -> None:
    group = session.selected_group
    if group is None or len(session.groups) < 2:
        session.set_status("✗ Need at least two groups to move a file")
        return
    number = click.prompt("   File number to move", type=click.IntRange(1, len(group.files)))
    target = click.prompt("   Target group number", type=click.IntRange(1, len(session.groups)))
    try:
        session.move_file(group.files[number - 1].path, target - 1)
    except SessionStateError as exc:
        session.set_status(f"✗ {exc}")


def handle_key(session: Session, key: str, context: SessionContext) -> None:
    """Dispatch one key press to the session.

    Only BROWSING accepts keys; the other modes are entered and left
    within a single call.
    """
    if session.mode is not Mode.BROWSING:
        return

    if key in KEYS_QUIT:
        session.quit()
    elif key in KEYS_DOWN:
        session.select_next()
    elif key in KEYS_UP:
        session.select_previous()
    elif key == KEY_CLEAR:
        session.clear_status()
    elif session.is_empty:
        return
    elif key == "e":
        session.edit_with(context.editor)
    elif key == "d":
        _show_diff(session, context)
    elif key == "a":
        _request_ai(session, context)
    elif key == "t":
        _change_type(session)
    elif key == "s":
        _change_scope(session)
    elif key == "m":
        _move_file(session)
    elif key == "c":
        session.commit_selected(context.git_client)
    elif key == "C":
        session.commit_all(context.git_client)


def run_session(session: Session, context: SessionContext) -> None:
    """Run the interactive loop until the user quits or nothing is left."""
    ai_enabled = context.assistant is not None
    while session.mode is not Mode.TERMINATED:
        if session.is_empty:
            draw(session, ai_enabled)
            click.echo("\n🎉 All groups committed.")
            session.quit()
            break
        draw(session, ai_enabled)
        key = click.getchar()
        logger.debug("Key pressed: %r", key)
        handle_key(session, key, context)
