"""
Client for an external AI assistant command-line tool.

The wizard never talks to a model over the network itself. Instead it
runs an assistant CLI (GitHub Copilot CLI by default) with the prompt as
its last argument and reads the answer from stdout. On error conditions
(missing executable, non-zero exit, timeout, unusable output) an
:class:`AIError` is raised.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


logger = logging.getLogger(__name__)
# Attach a null handler to avoid errors when the root logger is missing a
# stream. Messages still propagate to the root logger if configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_COMMAND = ("copilot", "-s", "-p")
DEFAULT_TIMEOUT = 60.0
PROBE_TIMEOUT = 10.0

START_MARKER = "**START COMMIT MESSAGE**"
END_MARKER = "**END COMMIT MESSAGE**"


class AIError(Exception):
    """Raised when the AI assistant is unavailable or returns unusable output."""

    pass


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks from assistant output.

    Reasoning models often wrap their thinking process in XML-like tags
    such as ``<think>`` or ``<reasoning>``. Those blocks and their
    contents are removed.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    """
    thinking_patterns = [
        r"<think>.*?</think>",
        r"<thinking>.*?</thinking>",
        r"<thought>.*?</thought>",
        r"<reasoning>.*?</reasoning>",
    ]
    result = text
    for pattern in thinking_patterns:
        result = re.sub(pattern, "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


def extract_response_between_markers(output: str) -> str:
    """Return the text between :data:`START_MARKER` and :data:`END_MARKER`.

    Blank lines inside the block are kept so a body stays separated from
    the description.

    Raises
    ------
    AIError
        If the markers are missing or enclose nothing.
    """
    lines: List[str] = []
    in_block = False
    for line in output.splitlines():
        stripped = line.strip()
        if stripped == START_MARKER:
            in_block = True
            continue
        if stripped == END_MARKER:
            break
        if in_block:
            lines.append(line.rstrip())
    text = "\n".join(lines).strip()
    if not text:
        raise AIError(
            f"Could not find text between markers '{START_MARKER}' and '{END_MARKER}'"
        )
    return text


def parse_commit_message(response: str) -> Tuple[str, Optional[str]]:
    """Split an assistant answer into a description and an optional body.

    Markdown fences and quotes around the description are removed. The
    body is everything after the first blank line.

    Raises
    ------
    AIError
        If the answer has no description.
    """
    cleaned = response.strip()
    cleaned = re.sub(r"^```[a-zA-Z]*\s*", "", cleaned)
    cleaned = re.sub(r"\s*```$", "", cleaned).strip()

    parts = re.split(r"\n\s*\n", cleaned, maxsplit=1)
    description = parts[0].strip().splitlines()[0] if parts[0].strip() else ""
    description = description.strip().strip('"').strip("`").strip()
    if not description:
        raise AIError("Assistant returned an empty commit message")

    body = parts[1].strip() if len(parts) > 1 else ""
    return description, body or None


@dataclass
class AssistantClient:
    """Runs an AI assistant CLI to answer prompts.

    Parameters
    ----------
    command : List[str]
        Command prefix; the prompt is appended as the final argument.
        Defaults to ``["copilot", "-s", "-p"]``.
    timeout : float, optional
        Default timeout in seconds for :meth:`generate`.
    """

    command: List[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    timeout: float = DEFAULT_TIMEOUT
    _available: Optional[bool] = field(default=None, init=False, repr=False)

    @property
    def executable(self) -> str:
        return self.command[0] if self.command else ""

    def is_available(self) -> bool:
        """Probe the assistant once with ``--version`` and cache the answer."""
        if self._available is None:
            self._available = self._probe()
        return self._available

    def _probe(self) -> bool:
        if not self.executable or shutil.which(self.executable) is None:
            logger.info("AI assistant '%s' not found on PATH", self.executable)
            return False
        try:
            result = subprocess.run(
                [self.executable, "--version"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=PROBE_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("AI assistant probe failed: %s", exc)
            return False
        return result.returncode == 0

    def run(self, prompt: str, timeout: Optional[float] = None) -> str:
        """Send ``prompt`` to the assistant and return its cleaned stdout.

        Raises
        ------
        AIError
            If the process cannot be run, fails or times out.
        """
        limit = self.timeout if timeout is None else timeout
        logger.debug("Calling AI assistant %s with prompt of %d chars", self.executable, len(prompt))
        try:
            result = subprocess.run(
                list(self.command) + [prompt],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=limit,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("AI assistant timed out after %ss", limit)
            raise AIError(f"AI assistant timed out after {limit:g}s") from exc
        except OSError as exc:
            logger.error("Failed to run AI assistant: %s", exc)
            raise AIError(f"Failed to run AI assistant: {exc}") from exc

        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip()
            logger.error("AI assistant exited with %s: %s", result.returncode, detail)
            raise AIError(f"AI assistant failed: {detail}")

        output = strip_thinking_tags(result.stdout)
        if START_MARKER in output:
            output = extract_response_between_markers(output)
        if not output.strip():
            raise AIError("Empty response from AI assistant")
        logger.debug("Received response of %d characters", len(output))
        return output

    def generate(self, prompt: str, timeout: Optional[float] = None) -> Tuple[str, Optional[str]]:
        """Generate a commit message for ``prompt``.

        Returns
        -------
        Tuple[str, Optional[str]]
            ``(description, body)``; body is ``None`` if the assistant
            gave only a subject line.
        """
        return parse_commit_message(self.run(prompt, timeout=timeout))
