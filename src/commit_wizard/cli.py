"""
Command line interface for the commit_wizard tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``commit-wizard`` command. It orchestrates
repository detection, configuration loading, change detection, commit
grouping and then hands over to either a preview (``--dry-run``), a
non-interactive commit of every group (``--yes``) or the interactive
review session.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import List, Optional

import click

from commit_wizard import __version__
from commit_wizard.config.loader import UNTRACKED_CHOICES, ConfigError, load_config
from commit_wizard.diff.diff_extractor import extract_diffs
from commit_wizard.editor.external_editor import edit_text
from commit_wizard.grouping.group_model import ChangedFile, ChangeGroup
from commit_wizard.grouping.grouper import NoChangesError, group_changes
from commit_wizard.grouping.message_composer import full_message
from commit_wizard.grouping.ticket import ticket_of
from commit_wizard.llm.assistant_client import AssistantClient
from commit_wizard.llm.commit_message_generator import CommitMessageGenerator
from commit_wizard.session.state import Session
from commit_wizard.ui.interactive import SessionContext, run_session
from commit_wizard.vcs.git_client import GitClient, GitError
from commit_wizard.vcs.path_validator import filter_valid_changes


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6

LOG_FILE_NAME = "commit-wizard.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"⠋ {self.message}...", nl=False)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time
        if exc_type is None:
            click.echo(f"\r✓ {self.message} (took {elapsed:.1f}s)")
        else:
            click.echo(f"\r✗ {self.message}")
        return False


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    click.echo(f"{'  ' * indent}ℹ {message}")


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    click.echo(f"{'  ' * indent}✓ {message}")


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    click.echo(f"{'  ' * indent}⚠ {message}")


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    click.echo(f"{'  ' * indent}✗ {message}", err=True)


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


# ---------------------------------------------------------------------------
# Setup helpers
# ---------------------------------------------------------------------------

def default_log_path() -> Path:
    """Return the user log file, or ``./commit-wizard.log`` if its directory is unusable."""
    log_dir = Path.home() / ".local" / "share" / "commit-wizard"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return Path.cwd() / LOG_FILE_NAME
    if not os.access(log_dir, os.W_OK):
        return Path.cwd() / LOG_FILE_NAME
    return log_dir / LOG_FILE_NAME


def configure_logging(verbose: bool, log: bool = False, log_local: bool = False) -> Optional[Path]:
    """Configure the root logger.

    Console output only shows warnings unless ``verbose`` is set, so it
    does not disturb the interactive screen. With ``log`` or
    ``log_local`` every record is also written to a file.

    Returns
    -------
    Optional[Path]
        The log file in use, if any.
    """
    level = logging.DEBUG if verbose else logging.INFO
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handlers: List[logging.Handler] = [console]

    log_path: Optional[Path] = None
    if log_local:
        log_path = Path.cwd() / LOG_FILE_NAME
    elif log:
        log_path = default_log_path()
    if log_path is not None:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    # force=True replaces handlers left by an earlier invocation
    logging.basicConfig(level=level, handlers=handlers, force=True)
    return log_path


def detect_repo(repo: Optional[Path]) -> Path:
    """Find the repository root from ``repo`` or the current directory.

    Raises
    ------
    click.exceptions.Exit
        With :data:`EXIT_NO_REPO` when no Git repository is found.
    """
    start = repo if repo is not None else Path.cwd()
    repo_root = GitClient.find_repo_root(start)
    if repo_root is None:
        print_error(f"No Git repository found at {start} or its parent directories.")
        raise click.exceptions.Exit(EXIT_NO_REPO)
    print_success(f"Found Git repository at: {repo_root}")
    return repo_root


def read_ticket(client: GitClient) -> Optional[str]:
    """Return the ticket named by the current branch, if any."""
    try:
        branch = client.get_current_branch()
    except GitError as exc:
        print_warning(f"Could not determine current branch: {exc}")
        return None
    ticket = ticket_of(branch)
    print_info(f"Current branch: {click.style(branch, fg='cyan', bold=True)}")
    if ticket:
        print_info(f"Ticket: {ticket}", indent=1)
    return ticket


def select_untracked(untracked: List[ChangedFile], mode: str, yes: bool) -> List[ChangedFile]:
    """Decide which untracked files join the commit.

    ``mode`` is one of ``ask``, ``all`` or ``none``. Asking is not
    possible with ``--yes``, so untracked files are skipped then.
    """
    if not untracked or mode == "none":
        return []
    if mode == "all":
        return list(untracked)
    if yes:
        print_info(f"Skipping {plural(len(untracked), 'untracked file')} (use --untracked all)")
        return []

    click.echo(f"\n📄 Untracked files ({len(untracked)}):")
    for change in untracked:
        click.echo(f"   • {change.path}")
    choice = click.prompt(
        "   Include untracked files? [a]ll / [n]one / [s]elect",
        type=click.Choice(["a", "n", "s"], case_sensitive=False),
        default="n",
        show_choices=False,
    ).lower()
    if choice == "a":
        return list(untracked)
    if choice == "n":
        return []
    return [c for c in untracked if click.confirm(f"   Include {c.path}?", default=False)]


def build_groups(
    client: GitClient,
    changes: List[ChangedFile],
    ticket: Optional[str],
    assistant: Optional[AssistantClient],
    ai_group: bool,
) -> List[ChangeGroup]:
    """Group ``changes`` with the assistant if asked to, else heuristically.

    Raises
    ------
    NoChangesError
        If no valid file is left to group.
    """
    if ai_group and assistant is not None:
        if assistant.is_available():
            with ProgressIndicator("Grouping changes with AI (this may take a moment)"):
                diffs = extract_diffs(client, changes)
                return CommitMessageGenerator(assistant).generate_groups(changes, ticket, diffs)
        print_warning("AI assistant is not available; using heuristic grouping")
    return group_changes(changes, ticket)


def print_groups(groups: List[ChangeGroup]) -> None:
    """Print every group's message and files."""
    for index, group in enumerate(groups, start=1):
        click.echo(f"\n{'─' * 60}")
        click.echo(f"📦 Commit Group {index}/{len(groups)}")
        click.echo(f"{'─' * 60}")
        for line in full_message(group).splitlines():
            click.echo(f"   {line}")
        click.echo(f"\n   📄 {plural(len(group.files), 'file')}:")
        for change in group.files:
            click.echo(f"      {change.status.symbol} {change.path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

@click.command()
@click.option(
    "--repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository to work on (default: current directory).",
)
@click.option("--no-ai", is_flag=True, help="Disable the AI assistant entirely.")
@click.option("--ai-group", is_flag=True, help="Let the AI assistant group the changes.")
@click.option(
    "--untracked",
    type=click.Choice(UNTRACKED_CHOICES),
    default=None,
    help="How to treat untracked files (default from config, 'ask').",
)
@click.option("--yes", "yes", is_flag=True, help="Commit all groups without the interactive review.")
@click.option("--dry-run", is_flag=True, help="Print the proposed commits and exit.")
@click.option("--log", "log", is_flag=True, help="Write a log file under ~/.local/share/commit-wizard.")
@click.option("--log-local", is_flag=True, help="Write a log file in the current directory.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="commit-wizard")
def main(
    repo: Optional[Path],
    no_ai: bool,
    ai_group: bool,
    untracked: Optional[str],
    yes: bool,
    dry_run: bool,
    log: bool,
    log_local: bool,
    verbose: bool,
) -> None:
    """🧙 Group working tree changes into Conventional Commits.

    Changes are grouped by type and scope, reviewed interactively and
    committed one group at a time.
    """
    log_path = configure_logging(verbose, log, log_local)
    if log_path is not None:
        print_info(f"Logging to {log_path}")

    try:
        repo_root = detect_repo(repo)

        try:
            config = load_config()
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        client = GitClient(repo_root)
        ticket = read_ticket(client)

        try:
            with ProgressIndicator("Scanning for changed files"):
                changes = client.get_changes()
                untracked_files = client.get_untracked_files()
        except GitError as exc:
            print_error(f"Git error: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        changes += select_untracked(untracked_files, untracked or config["untracked"], yes)
        changes, path_errors = filter_valid_changes(changes)
        for error in path_errors:
            print_warning(f"Skipping {error}")

        assistant = None
        if not no_ai:
            assistant = AssistantClient(command=config["ai_command"], timeout=config["ai_timeout"])

        try:
            groups = build_groups(client, changes, ticket, assistant, ai_group)
        except NoChangesError:
            print_info("No changes to commit.")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        print_success(
            f"Grouped {plural(len(changes), 'file')} into {plural(len(groups), 'commit group')}"
        )

        if dry_run:
            print_groups(groups)
            click.echo("\nDry run: nothing was committed.")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        session = Session(
            groups=groups,
            commit_timeout=config["commit_timeout"],
            ai_timeout=config["ai_timeout"],
        )
        total = len(groups)

        if yes:
            report = session.commit_all(client)
            if not report.ok:
                click.echo(session.status_message, err=True)
                raise click.exceptions.Exit(EXIT_VCS_FAILURE)
            print_success(f"Committed {plural(report.committed, 'group')}")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        context = SessionContext(
            git_client=client,
            editor=lambda text: edit_text(text, config["editor"]),
            assistant=assistant,
        )
        run_session(session, context)

        committed = total - len(session.groups)
        click.echo(f"\n✨ Committed {committed} of {plural(total, 'group')}.")
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except click.exceptions.Abort:
        raise
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)


if __name__ == "__main__":  # pragma: no cover
    main()
