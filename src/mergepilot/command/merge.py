"""Merge command - resolve the conflicts in one file."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from mergepilot.conflict.audit import write_merge_log
from mergepilot.conflict.engine import EngineDeps, ResolutionEngine
from mergepilot.conflict.models import Suggestion
from mergepilot.conflict.mutator import FileMutator
from mergepilot.conflict.session import ResolutionSession
from mergepilot.core.config import State
from mergepilot.core.errors import (
    ConflictFileError,
    FileWriteError,
    MalformedConflictError,
)
from mergepilot.core.log import logger
from mergepilot.core.runner import Runner
from mergepilot.model.client import LLMClient, PromptClient
from mergepilot.model.validator import ResponseValidator
from mergepilot.prompt.builder import PromptBuilder
from mergepilot.ui.console import Presenter, make_console
from mergepilot.ui.editor import Editor
from mergepilot.vcs.integration import VCSIntegration


class MergeCommand(BaseModel):
    """Resolve merge conflicts in FILE with LLM suggestions.

    Conflicts are shown one at a time, starting from the bottom of the
    file. For each one you can accept the suggestion, skip it, add a
    comment and ask again, edit the file yourself, or abort. The file
    is written once, at the end; nothing is written after an abort.
    When every conflict was accepted the file is marked resolved in
    Git or Mercurial.
    """

    file: CliPositionalArg[Path] = Field(
        description="File containing conflict markers",
    )
    context: int | None = Field(
        default=None,
        ge=0,
        description=(
            "Lines of context sent around each conflict "
            "(default: merge.context_lines)"
        ),
    )

    async def run_workflow(
        self,
        state: State,
        presenter: Presenter | None = None,
        client: PromptClient | None = None,
        vcs: VCSIntegration | None = None,
        editor=None,
    ) -> int:
        """Run the interactive resolution of one file.

        Args:
            state: State instance with config loaded
            presenter: Terminal presentation (default: rich console)
            client: LLM client (default: from llm config)
            vcs: VCS integration (default: from merge config)
            editor: Callable launching an editor on a path

        Returns:
            Exit code (0=success, 1=failure or abort)
        """
        config = state.config
        context = (
            self.context if self.context is not None
            else config.merge.context_lines
        )
        presenter = presenter or Presenter(
            make_console(config.ui.colors),
            context_lines=config.merge.display_context_lines,
        )

        try:
            session = ResolutionSession(self.file, context)
        except (ConflictFileError, MalformedConflictError) as e:
            presenter.error(str(e))
            return 1

        if not session.pending:
            presenter.success(f"No conflicts found in {self.file}.")
            return 0

        presenter.info(
            f"Found {len(session.pending)} conflict(s) in {self.file}."
        )

        runner = Runner(kill_grace=config.merge.vcs_kill_grace)
        builder = PromptBuilder(config.templates)
        client = client or LLMClient(config.llm)
        engine = ResolutionEngine(EngineDeps(
            builder=builder,
            client=client,
            validator=ResponseValidator(Suggestion, client, builder),
            presenter=presenter,
            editor=editor or Editor(config.editor.resolve(), runner),
        ))

        vcs = vcs or VCSIntegration(runner, timeout=config.merge.vcs_timeout)

        try:
            await engine.resolve(session)
            return self._finish(session, presenter, vcs)
        finally:
            if config.merge.log_enabled:
                self._write_log(config.merge.log_dir, session, presenter)

    def _write_log(
        self,
        log_dir: Path,
        session: ResolutionSession,
        presenter: Presenter,
    ):
        try:
            path = write_merge_log(log_dir, self.file, session.log)
        except OSError as e:
            logger.error(
                "Failed to write merge log", log_dir=str(log_dir), error=str(e)
            )
            presenter.info(f"Merge log not written: {e}")
            return
        if path:
            presenter.info(f"Merge log written to {path}")

    def _finish(
        self,
        session: ResolutionSession,
        presenter: Presenter,
        vcs: VCSIntegration,
    ) -> int:
        """Write the decided file and update VCS state."""
        if session.aborted:
            presenter.warning(f"No changes were written to {self.file}.")
            return 1

        try:
            # Pick up edits made after the last decision
            if session.changed_on_disk():
                session.resync()
        except (MalformedConflictError, ConflictFileError) as e:
            presenter.error(f"{e}. No changes were written to {self.file}.")
            return 1

        mutator = FileMutator()
        outcome = mutator.apply(
            session.lines, session.decided, session.trailing_newline
        )
        try:
            mutator.commit(self.file, outcome)
        except FileWriteError as e:
            presenter.error(f"{e}. The original file was left untouched.")
            return 1

        summary = outcome.summary
        presenter.success(
            f"{summary.accepted} conflict(s) resolved, "
            f"{summary.skipped} skipped."
        )

        if not summary.fully_resolved:
            presenter.warning(
                f"{self.file} still has conflicts and was not marked "
                f"resolved."
            )
            return 0

        result = vcs.mark_resolved(self.file)
        if result.success:
            presenter.success(result.message)
        else:
            presenter.warning(result.message)
            if result.hint:
                presenter.info(f"To mark it resolved yourself: {result.hint}")
        logger.info(
            "Merge finished",
            file=str(self.file),
            accepted=summary.accepted,
            skipped=summary.skipped,
            vcs=result.status.value,
        )
        return 0

