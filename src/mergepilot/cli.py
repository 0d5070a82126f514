#!/usr/bin/env python3
"""mergepilot CLI - LLM-assisted merge conflict resolution."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from mergepilot.command.ask import AskCommand
from mergepilot.command.diff import DiffCommand
from mergepilot.command.merge import MergeCommand
from mergepilot.core.config import State
from mergepilot.core.log import logger


class CliState(State):
    """LLM-assisted merge conflict resolution and shell help.

    Subcommands:
      merge FILE     resolve the conflicts in FILE interactively
      ask REQUEST    turn a plain-words request into shell commands
      diff           review the current diff

    Configuration sources (in priority order):
    1. Command-line arguments (--config.llm.model value)
    2. --include files, ./mergepilot.yaml, the user config file,
       packaged defaults
    3. .env file for secrets
    4. Environment variables
       (MERGEPILOT_CONFIG__LLM__MODEL=value)
    """

    merge: CliSubCommand[MergeCommand]
    ask: CliSubCommand[AskCommand]
    diff: CliSubCommand[DiffCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes and closes the file sink
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
