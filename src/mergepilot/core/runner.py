"""Bounded command execution using the invoke library."""

import contextlib
import os
import shlex
import signal
import time
from pathlib import Path

from invoke import Config, Context
from invoke.exceptions import CommandTimedOut
from invoke.runners import Local

from mergepilot.core.log import logger
from mergepilot.core.result import CommandResult, CommandStatus

DEFAULT_KILL_GRACE = 2.0

# Windows has no SIGKILL; os.kill() there passes the number to
# TerminateProcess() as the exit code.
_SIGKILL = getattr(signal, "SIGKILL", 9)


class EscalatingLocal(Local):
    """invoke Local runner whose timeout kill escalates.

    invoke calls kill() from its timer thread when a command exceeds
    its timeout. The stock implementation sends SIGKILL straight away;
    this one sends SIGTERM first and only sends SIGKILL if the process
    is still alive after the configured grace period.
    """

    def __init__(self, context):
        super().__init__(context)
        self._killed_on_timeout = False

    @property
    def timed_out(self) -> bool:
        # kill() runs on the timer thread, which stays alive until the
        # grace period is over
        return self._killed_on_timeout or super().timed_out

    def kill(self) -> None:
        self._killed_on_timeout = True
        pid = self.pid if self.using_pty else self.process.pid
        grace = self.context.config.escalation.grace

        logger.debug("Terminating timed out process", pid=pid)
        with contextlib.suppress(ProcessLookupError):
            os.kill(pid, signal.SIGTERM)

        deadline = time.monotonic() + grace
        while time.monotonic() < deadline:
            if self.process_is_finished:
                return
            time.sleep(0.05)

        logger.warning("Process ignored SIGTERM, killing", pid=pid)
        with contextlib.suppress(ProcessLookupError):
            os.kill(pid, _SIGKILL)


class Runner(Context):
    """invoke.Context that returns CommandResult instead of raising.

    Every command maps onto exactly one of success, failure or timeout.
    Timed out commands are terminated with SIGTERM, then SIGKILL.
    """

    def __init__(self, kill_grace: float = DEFAULT_KILL_GRACE):
        super().__init__(config=Config(overrides={
            "runners": {"local": EscalatingLocal},
            "escalation": {"grace": kill_grace},
        }))

    @staticmethod
    def join(args: list[str]) -> str:
        """Quote an argument vector into a shell command string."""
        return ' '.join(shlex.quote(str(part)) for part in args)

    def execute(
        self,
        command: str | list[str],
        cwd: Path | None = None,
        timeout: float | None = None,
        interactive: bool = False,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command with an optional hard timeout.

        Args:
            command: Command string, or argument list to be quoted
            cwd: Working directory for command execution
            timeout: Maximum execution time in seconds
            interactive: Attach the command to the terminal (editors,
                user-confirmed shell commands); output is not captured
            env: Environment variables to add to os.environ

        Returns:
            CommandResult with status success, failure or timeout
        """
        if isinstance(command, list):
            command = self.join(command)

        kwargs = {"warn": True}
        if interactive:
            kwargs["pty"] = True
            kwargs["hide"] = False
        else:
            kwargs["hide"] = True
            kwargs["in_stream"] = False
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        logger.debug(
            "Running command", command=command,
            cwd=str(cwd) if cwd else None, timeout=timeout,
        )

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            logger.warning(
                "Command timed out", command=command, timeout=timeout
            )
            return CommandResult(
                command=command,
                status=CommandStatus.TIMEOUT,
                returncode=-1,
                stdout=e.result.stdout or "",
                stderr=e.result.stderr or "",
            )

        status = (
            CommandStatus.SUCCESS if result.exited == 0
            else CommandStatus.FAILURE
        )
        logger.debug(
            "Command finished", command=command, returncode=result.exited
        )
        return CommandResult(
            command=command,
            status=status,
            returncode=result.exited,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
