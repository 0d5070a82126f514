"""Terminal presentation."""

from mergepilot.ui.console import Presenter, make_console

__all__ = ["Presenter", "make_console"]
