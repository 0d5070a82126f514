"""Result types for external command execution."""

from enum import Enum

from pydantic import BaseModel


class CommandStatus(str, Enum):
    """Outcome of a bounded command."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class CommandResult(BaseModel):
    """Result of an external command run through the Runner."""

    command: str
    status: CommandStatus
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.status is CommandStatus.SUCCESS

    @property
    def message(self) -> str:
        """One-line description suitable for the user."""
        if self.status is CommandStatus.SUCCESS:
            return f"'{self.command}' succeeded"
        if self.status is CommandStatus.TIMEOUT:
            return f"'{self.command}' timed out"
        detail = (self.stderr or self.stdout).strip().splitlines()
        suffix = f": {detail[-1]}" if detail else ""
        return f"'{self.command}' exited with {self.returncode}{suffix}"
