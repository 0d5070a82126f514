"""Diff command - LLM review of the working-copy changes."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from mergepilot.core.config import State
from mergepilot.core.errors import InvalidResponseError, LLMError
from mergepilot.core.log import logger
from mergepilot.model.client import LLMClient, PromptClient
from mergepilot.model.schemas import DiffAnalysis
from mergepilot.model.validator import ResponseValidator
from mergepilot.prompt.builder import PromptBuilder
from mergepilot.ui.console import Presenter, make_console
from mergepilot.vcs.integration import VCSIntegration


class DiffCommand(BaseModel):
    """Review the current Git or Mercurial diff with the LLM.

    Reports a summary, likely errors, improvements and test coverage.
    With --requirements the change is also checked against a
    requirements file.
    """

    ref: str | None = Field(
        default=None,
        description="Revision to diff against (default: working copy)",
    )
    requirements: Path | None = Field(
        default=None,
        description="File describing what the change should do",
    )
    instructions: str | None = Field(
        default=None,
        description="Extra instructions for the review",
    )

    async def run_workflow(
        self,
        state: State,
        presenter: Presenter | None = None,
        client: PromptClient | None = None,
        vcs: VCSIntegration | None = None,
    ) -> int:
        """Run the review.

        Returns:
            Exit code (0=success, 1=failure)
        """
        config = state.config
        presenter = presenter or Presenter(make_console(config.ui.colors))
        vcs = vcs or VCSIntegration()

        try:
            result = vcs.diff(Path.cwd(), self.ref)
        except FileNotFoundError as e:
            presenter.error(str(e))
            return 1
        if not result.success:
            presenter.error(result.message)
            return 1
        if not result.stdout.strip():
            presenter.info("No changes to review.")
            return 0

        requirements = None
        if self.requirements is not None:
            try:
                requirements = self.requirements.read_text(encoding="utf-8")
            except OSError as e:
                presenter.error(f"Cannot read requirements: {e}")
                return 1

        builder = PromptBuilder(config.templates)
        client = client or LLMClient(config.llm)
        validator = ResponseValidator(DiffAnalysis, client, builder)
        prompt = builder.diff(result.stdout, requirements, self.instructions)

        logger.info("Reviewing diff", diff_length=len(result.stdout))
        try:
            with presenter.spinner("Reviewing..."):
                raw = await client.send(prompt)
                analysis = await validator.validate(raw)
        except (LLMError, InvalidResponseError) as e:
            presenter.error(str(e))
            return 1

        self._show(presenter, analysis)
        return 0

    @staticmethod
    def _show(presenter: Presenter, analysis: DiffAnalysis):
        presenter.heading("Summary")
        presenter.say(analysis.summary)

        for title, items in (
            ("Possible errors", analysis.errors),
            ("Suggested improvements", analysis.improvements),
        ):
            presenter.heading(title)
            if items:
                for item in items:
                    presenter.say(f"- {item}")
            else:
                presenter.say("None.", style="dim")

        if analysis.test_coverage:
            presenter.heading("Test coverage")
            presenter.say(analysis.test_coverage)
        if analysis.requirements_evaluation:
            presenter.heading("Requirements")
            presenter.say(analysis.requirements_evaluation)
