"""Ask command - turn a request into shell commands."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from mergepilot.core.config import State
from mergepilot.core.errors import InvalidResponseError, LLMError
from mergepilot.core.log import logger
from mergepilot.core.runner import Runner
from mergepilot.model.client import LLMClient, PromptClient
from mergepilot.model.schemas import ShellCommands
from mergepilot.model.validator import ResponseValidator
from mergepilot.prompt.builder import PromptBuilder
from mergepilot.ui.console import Presenter, make_console


class AskCommand(BaseModel):
    """Translate a natural-language REQUEST into shell commands.

    The commands are printed with an explanation. With --execute they
    are run one by one after confirmation.
    """

    request: CliPositionalArg[list[str]] = Field(
        description="What you want to do, in plain words",
    )
    execute: bool = Field(
        default=False,
        description="Run the commands after confirmation",
    )

    async def run_workflow(
        self,
        state: State,
        presenter: Presenter | None = None,
        client: PromptClient | None = None,
        runner: Runner | None = None,
    ) -> int:
        """Run the request.

        Returns:
            Exit code (0=success, 1=failure)
        """
        config = state.config
        presenter = presenter or Presenter(make_console(config.ui.colors))
        request = " ".join(self.request).strip()
        if not request:
            presenter.error("Nothing to ask.")
            return 1

        builder = PromptBuilder(config.templates)
        client = client or LLMClient(config.llm)
        validator = ResponseValidator(ShellCommands, client, builder)

        logger.info("Translating request", request=request)
        try:
            with presenter.spinner("Thinking..."):
                raw = await client.send(builder.ask(request, Path.cwd()))
                answer = await validator.validate(raw)
        except (LLMError, InvalidResponseError) as e:
            presenter.error(str(e))
            return 1

        presenter.heading("Commands")
        presenter.block("\n".join(answer.commands), style="bold")
        if answer.explanation:
            presenter.say(answer.explanation, style="italic")

        if not self.execute or not answer.commands:
            return 0
        if not presenter.confirm("Run these commands?"):
            presenter.info("Not running anything.")
            return 0

        runner = runner or Runner()
        for command in answer.commands:
            result = runner.execute(command, interactive=True)
            if not result.success:
                presenter.error(result.message)
                return 1
        return 0
