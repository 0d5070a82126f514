"""Terminal presentation for interactive commands."""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.rule import Rule

from mergepilot.conflict.models import ConflictRegion, Suggestion


def make_console(colors: str = "auto", **kwargs) -> Console:
    """Create a rich Console for a color mode (auto, always, never)."""
    if colors == "never":
        kwargs.setdefault("no_color", True)
        kwargs.setdefault("highlight", False)
    elif colors == "always":
        kwargs.setdefault("force_terminal", True)
    return Console(**kwargs)


class Presenter:
    """Everything the interactive commands print or read.

    Output goes through a rich Console and input through input_fn, so
    tests can swap both for in-memory versions.
    """

    def __init__(
        self,
        console: Console | None = None,
        input_fn: Callable[[str], str] = input,
        context_lines: int = 3,
    ):
        self.console = console or make_console()
        self.input_fn = input_fn
        self.context_lines = context_lines

    # Output

    def say(self, message: str, style: str | None = None):
        self.console.print(escape(message), style=style)

    def info(self, message: str):
        self.say(message, style="cyan")

    def success(self, message: str):
        self.say(message, style="green")

    def warning(self, message: str):
        self.say(message, style="yellow")

    def error(self, message: str):
        self.say(message, style="bold red")

    def heading(self, title: str):
        self.console.print(Rule(escape(title)))

    def block(self, text: str, style: str | None = None):
        for line in _lines(text):
            self.console.print(escape(line), style=style)

    def show_conflict(self, region: ConflictRegion, index: int, total: int):
        """Show one conflict with a few lines of surrounding context."""
        self.heading(
            f"Conflict {index} of {total} "
            f"(lines {region.start_line}-{region.end_line})"
        )
        before = _lines(region.context_before)
        after = _lines(region.context_after)
        keep = self.context_lines

        self.block("\n".join(before[-keep:] if keep else []), style="dim")
        self.console.print(
            escape(f"<<<<<<< {region.base_label}"), style="bold red"
        )
        self.block(region.base_content, style="red")
        self.console.print("=======", style="bold")
        self.block(region.incoming_content, style="green")
        self.console.print(
            escape(f">>>>>>> {region.incoming_label}"), style="bold green"
        )
        self.block("\n".join(after[:keep]), style="dim")

    def show_suggestion(self, suggestion: Suggestion):
        self.heading("Suggestion")
        self.block(suggestion.merged_code, style="bold cyan")
        self.console.print()
        self.say(f"Reason: {suggestion.reason}", style="italic")

    @contextlib.contextmanager
    def spinner(self, message: str) -> Iterator[Progress]:
        """Show a spinner while the body runs; erased when it ends.

        rich animates it from its refresh thread, which is stopped and
        joined on exit. Nothing is drawn unless the console is a
        terminal.
        """
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            console=self.console,
            transient=True,
        ) as progress:
            progress.add_task(escape(message), total=None)
            yield progress

    # Input

    def read(self, prompt: str) -> str | None:
        """Read one line; None when input is exhausted."""
        self.console.print(escape(prompt), end="", style="bold")
        try:
            return self.input_fn("")
        except EOFError:
            self.console.print()
            return None

    def read_multiline(self, prompt: str) -> str:
        """Read lines until a blank line (or end of input)."""
        self.say(prompt)
        self.say("(finish with an empty line)", style="dim")
        lines = []
        while True:
            try:
                line = self.input_fn("")
            except EOFError:
                break
            if not line.strip():
                break
            lines.append(line)
        return "\n".join(lines)

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question; repeats until answered."""
        while True:
            answer = self.read(f"{question} [y/n] ")
            if answer is None:
                return False
            answer = answer.strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self.warning("Please answer y or n.")


def _lines(text: str) -> list[str]:
    return text.split("\n") if text else []


__all__ = ["Presenter", "make_console"]
