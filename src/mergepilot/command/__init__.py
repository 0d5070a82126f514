"""CLI command modules for mergepilot."""

from mergepilot.command.ask import AskCommand
from mergepilot.command.diff import DiffCommand
from mergepilot.command.merge import MergeCommand

__all__ = ["AskCommand", "DiffCommand", "MergeCommand"]
