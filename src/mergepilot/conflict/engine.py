"""Interactive per-region resolution state machine.

Each region is decided by one run of a pydantic_graph graph:

    Presenting → AwaitingChoice → End (accepted / skipped / aborted)
                      │  ├─ c → Commenting → Presenting
                      │  └─ e → Editing → Presenting, or End
                      └─ (empty or unknown input) → AwaitingChoice

    Presenting ── LLM or validation failure ──→ Recovery
    Recovery → Presenting (retry), Commenting, or End

Regions are handed out bottom-up by the ResolutionSession. After an
abort no further regions are processed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pydantic_graph import BaseNode, End, Graph, GraphRunContext

from mergepilot.conflict.models import (
    ConflictRegion,
    ResolutionMethod,
    ResolutionResult,
    Suggestion,
)
from mergepilot.conflict.session import ResolutionSession
from mergepilot.core.errors import (
    ConflictFileError,
    InvalidResponseError,
    LLMError,
    MalformedConflictError,
)
from mergepilot.core.log import logger
from mergepilot.core.result import CommandResult
from mergepilot.model.client import PromptClient
from mergepilot.model.validator import ResponseValidator
from mergepilot.prompt.builder import PromptBuilder
from mergepilot.ui.console import Presenter

CHOICE_PROMPT = (
    "Accept [y], Skip [n], Comment [c], Edit [e], Abort [a]: "
)
RECOVERY_PROMPT = (
    "Retry [r], Retry with comment [c], Use base [b], "
    "Use incoming [i], Skip [s], Abort [a]: "
)


@dataclass
class EngineDeps:
    """Collaborators shared by every node."""

    builder: PromptBuilder
    client: PromptClient
    validator: ResponseValidator[Suggestion]
    presenter: Presenter
    editor: Callable[[Path], CommandResult]


@dataclass
class RegionState:
    """Mutable state for the region being decided."""

    session: ResolutionSession
    region: ConflictRegion
    suggestion: Suggestion | None = None
    comment: str | None = None
    last_error: str | None = None

    @property
    def index(self) -> int:
        return len(self.session.decided) + 1


def _refresh(ctx: GraphRunContext[RegionState, EngineDeps]) -> bool:
    """Re-sync the session if the file changed on disk.

    Returns:
        False if no conflict is left to present
    """
    session = ctx.state.session
    if not session.changed_on_disk():
        return True

    ctx.deps.presenter.info("File changed on disk, re-reading it.")
    session.resync()
    if not session.pending:
        return False
    ctx.state.region = session.current()
    return True


@dataclass
class Presenting(BaseNode[RegionState, EngineDeps, ResolutionResult]):
    """Show the conflict and request a suggestion for it."""

    async def run(
        self, ctx: GraphRunContext[RegionState, EngineDeps]
    ) -> AwaitingChoice | Recovery:
        state, deps = ctx.state, ctx.deps
        region, session = state.region, state.session

        deps.presenter.show_conflict(region, state.index, session.total)

        prompt = deps.builder.build(region, session.text, state.comment)
        logger.info(
            "Requesting suggestion",
            start_line=region.start_line,
            end_line=region.end_line,
            has_comment=state.comment is not None,
        )

        try:
            with deps.presenter.spinner("Waiting for a suggestion..."):
                raw = await deps.client.send(prompt)
                suggestion = await deps.validator.validate(raw)
        except InvalidResponseError as e:
            state.suggestion = None
            state.last_error = (
                f"The model's reply could not be understood: {e.error}"
            )
            return Recovery()
        except LLMError as e:
            state.suggestion = None
            state.last_error = str(e)
            return Recovery()

        state.suggestion = suggestion
        deps.presenter.show_suggestion(suggestion)
        return AwaitingChoice()


@dataclass
class AwaitingChoice(BaseNode[RegionState, EngineDeps, ResolutionResult]):
    """Wait for an explicit decision; there is no default."""

    async def run(
        self, ctx: GraphRunContext[RegionState, EngineDeps]
    ) -> AwaitingChoice | Commenting | Editing | End[ResolutionResult]:
        presenter = ctx.deps.presenter
        suggestion, comment = ctx.state.suggestion, ctx.state.comment

        answer = presenter.read(CHOICE_PROMPT)
        if answer is None:
            presenter.warning("Input closed, aborting.")
            return End(ResolutionResult.aborted(suggestion, comment))

        choice = answer.strip().lower()
        if choice == "y":
            return End(ResolutionResult.accept(suggestion, comment))
        if choice == "n":
            return End(ResolutionResult.skip(suggestion, comment))
        if choice == "c":
            return Commenting()
        if choice == "e":
            return Editing()
        if choice == "a":
            return End(ResolutionResult.aborted(suggestion, comment))

        presenter.warning(
            "Please enter y (accept), n (skip), c (comment), "
            "e (edit) or a (abort)."
        )
        return AwaitingChoice()


@dataclass
class Commenting(BaseNode[RegionState, EngineDeps, ResolutionResult]):
    """Collect guidance from the user and ask again."""

    async def run(
        self, ctx: GraphRunContext[RegionState, EngineDeps]
    ) -> Presenting | AwaitingChoice | Recovery | End[ResolutionResult]:
        state, presenter = ctx.state, ctx.deps.presenter

        comment = presenter.read_multiline("Enter a comment for the model:")
        if not comment:
            presenter.warning("No comment entered.")
            return AwaitingChoice() if state.suggestion else Recovery()

        state.comment = comment
        logger.info("User comment received", length=len(comment))

        try:
            remaining = _refresh(ctx)
        except (MalformedConflictError, ConflictFileError) as e:
            presenter.error(f"{e}. Fix the file, then try again.")
            return AwaitingChoice() if state.suggestion else Recovery()

        if not remaining:
            presenter.info("No conflicts left in the file.")
            return End(ResolutionResult.manual_edit(comment))
        return Presenting()


@dataclass
class Editing(BaseNode[RegionState, EngineDeps, ResolutionResult]):
    """Hand the file to the user's editor, then re-sync."""

    async def run(
        self, ctx: GraphRunContext[RegionState, EngineDeps]
    ) -> Presenting | AwaitingChoice | End[ResolutionResult]:
        state, deps = ctx.state, ctx.deps
        session = state.session

        result = deps.editor(session.path)
        if not result.success:
            deps.presenter.error(f"Editor failed: {result.message}")
            return AwaitingChoice()

        try:
            changed = session.changed_on_disk()
            if changed:
                resolved = deps.presenter.confirm(
                    "Did you resolve this conflict manually?"
                )
                session.resync()
        except (MalformedConflictError, ConflictFileError) as e:
            deps.presenter.error(f"{e}. Fix the file, then try again.")
            return AwaitingChoice()

        if not changed:
            deps.presenter.info("File unchanged.")
            return AwaitingChoice()

        if resolved:
            return End(ResolutionResult.manual_edit(state.comment))

        if not session.pending:
            deps.presenter.info("No conflicts left in the file.")
            return End(ResolutionResult.manual_edit(state.comment))

        # Keep the edited file for the next request
        state.region = session.current()
        return Presenting()


@dataclass
class Recovery(BaseNode[RegionState, EngineDeps, ResolutionResult]):
    """Offer a way forward when no usable suggestion is available."""

    async def run(
        self, ctx: GraphRunContext[RegionState, EngineDeps]
    ) -> Presenting | Commenting | Recovery | End[ResolutionResult]:
        state, presenter = ctx.state, ctx.deps.presenter
        region = state.region

        if state.last_error:
            presenter.error(state.last_error)
            presenter.info(
                "Check llm.model, llm.api_key and llm.base_url in your "
                "configuration if this keeps happening."
            )
            state.last_error = None

        answer = presenter.read(RECOVERY_PROMPT)
        if answer is None:
            presenter.warning("Input closed, aborting.")
            return End(ResolutionResult.aborted(comment=state.comment))

        choice = answer.strip().lower()
        if choice == "r":
            return Presenting()
        if choice == "c":
            return Commenting()
        if choice == "b":
            return End(ResolutionResult.choose(region.base_content, "base"))
        if choice == "i":
            return End(
                ResolutionResult.choose(region.incoming_content, "incoming")
            )
        if choice == "s":
            return End(ResolutionResult.skip(comment=state.comment))
        if choice == "a":
            return End(ResolutionResult.aborted(comment=state.comment))

        presenter.warning("Please enter r, c, b, i, s or a.")
        return Recovery()


def create_graph() -> Graph:
    """Create the per-region resolution graph."""
    return Graph(
        nodes=(Presenting, AwaitingChoice, Commenting, Editing, Recovery),
        state_type=RegionState,
    )


class ResolutionEngine:
    """Decides every region of a session, bottom-up."""

    def __init__(self, deps: EngineDeps):
        self.deps = deps
        self.graph = create_graph()

    async def resolve_region(
        self, session: ResolutionSession
    ) -> ResolutionResult:
        """Run the state machine for the current region and record it."""
        state = RegionState(session=session, region=session.current())

        async with self.graph.iter(
            Presenting(), state=state, deps=self.deps
        ) as run:
            async for node in run:
                logger.debug("Resolution step", node=type(node).__name__)
        result = run.result.output

        if result.method is ResolutionMethod.MANUAL_EDIT:
            session.accept_manual_edit(state.region, result)
        else:
            session.record(result)
        return result

    async def resolve(self, session: ResolutionSession) -> ResolutionSession:
        """Decide regions until none is pending or the user aborts."""
        with logger.span("resolve {file}", file=str(session.path)):
            while session.has_pending():
                result = await self.resolve_region(session)
                if result.abort:
                    self.deps.presenter.warning(
                        "Aborted. No further changes will be made."
                    )
                    break
        return session


__all__ = [
    "ResolutionEngine",
    "EngineDeps",
    "RegionState",
    "Presenting",
    "AwaitingChoice",
    "Commenting",
    "Editing",
    "Recovery",
    "create_graph",
]
