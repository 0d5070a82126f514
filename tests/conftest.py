"""Pytest configuration and fixtures for mergepilot tests."""

import io
import sys
import tempfile
from pathlib import Path

import pytest
from rich.console import Console

from mergepilot.core.log import ConsoleSink, setup_logger
from mergepilot.core.result import CommandResult, CommandStatus
from mergepilot.ui.console import Presenter
from mergepilot.vcs.integration import MarkResult, VcsStatus


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    This enables debug output during test runs without requiring
    authentication or sending logs to logfire.dev.
    """
    test_log_root = Path(tempfile.gettempdir()) / "mergepilot-tests"
    setup_logger(
        log_root=test_log_root,
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(scope="session")
def test_config():
    """Load configuration for tests without CLI parsing conflicts.

    Creates a State object with full configuration loading, but
    temporarily replaces sys.argv to avoid conflicts with pytest's
    command line arguments.

    Returns:
        Config object with all settings loaded from defaults
    """
    from mergepilot.core.config import State

    old_argv = sys.argv
    sys.argv = ['mergepilot']

    try:
        state = State()
        return state.config
    finally:
        sys.argv = old_argv


class FakeClient:
    """LLM client returning canned replies (or raising them)."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    async def send(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class ScriptedInput:
    """input() replacement answering from a list, then EOF."""

    def __init__(self, answers):
        self.answers = list(answers)

    def __call__(self, prompt: str = "") -> str:
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


class RecordingVCS:
    """VCS integration that records mark_resolved calls."""

    def __init__(self, status=VcsStatus.MARKED):
        self.status = status
        self.marked = []
        self.diff_result = None

    def mark_resolved(self, path):
        self.marked.append(Path(path))
        if self.status is VcsStatus.MARKED:
            return MarkResult(status=self.status, message="Staged in git.")
        return MarkResult(
            status=self.status,
            message="'git add' failed",
            hint=f"git add {path}",
        )

    def diff(self, path=None, ref=None):
        return self.diff_result


@pytest.fixture
def make_client():
    """Factory for FakeClient instances."""
    return FakeClient


@pytest.fixture
def make_presenter():
    """Factory for presenters with scripted input and captured output.

    The captured text is available as presenter.console.file.getvalue().
    """
    def _make(answers=()):
        console = Console(
            file=io.StringIO(), no_color=True, highlight=False, width=200
        )
        return Presenter(console, ScriptedInput(answers))
    return _make


@pytest.fixture
def recording_vcs():
    return RecordingVCS()


@pytest.fixture
def make_vcs():
    """Factory for RecordingVCS with a given mark status."""
    return RecordingVCS


@pytest.fixture
def ok_result():
    """Factory for successful CommandResults."""
    def _make(command="true", stdout=""):
        return CommandResult(
            command=command,
            status=CommandStatus.SUCCESS,
            returncode=0,
            stdout=stdout,
        )
    return _make
