"""Launch the user's editor on a file."""

from __future__ import annotations

import shlex
from pathlib import Path

from mergepilot.core.log import logger
from mergepilot.core.result import CommandResult
from mergepilot.core.runner import Runner


class Editor:
    """Runs an editor command attached to the terminal.

    Args:
        command: Editor command line, e.g. "code --wait" or "vim"
        runner: Runner used to execute the editor
    """

    def __init__(self, command: str, runner: Runner | None = None):
        self.command = command
        self.runner = runner or Runner()

    def __call__(self, path: Path) -> CommandResult:
        args = [*shlex.split(self.command), str(path)]
        logger.info("Opening editor", command=self.command, file=str(path))
        return self.runner.execute(args, interactive=True)


__all__ = ["Editor"]
