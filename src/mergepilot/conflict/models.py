"""Data model for conflict regions and their resolutions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

# merged_code carried by regions the user resolved in their editor
MANUAL_RESOLUTION = "<resolved manually in editor>"


class ConflictRegion(BaseModel):
    """One <<<<<<< / ======= / >>>>>>> triplet and its surroundings.

    Line numbers are 1-based and inclusive, from the opening marker to
    the closing marker, in the snapshot the region was parsed from.
    """

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(ge=1)
    end_line: int = Field(ge=1)
    base_content: str
    incoming_content: str
    base_label: str = ""
    incoming_label: str = ""
    context_before: str = ""
    context_after: str = ""

    @model_validator(mode="after")
    def _check_span(self) -> ConflictRegion:
        if self.start_line > self.end_line:
            raise ValueError(
                f"start_line {self.start_line} is after "
                f"end_line {self.end_line}"
            )
        return self

    def same_conflict(self, other: ConflictRegion) -> bool:
        """True if both regions hold the same competing text."""
        return (
            self.base_content == other.base_content
            and self.incoming_content == other.incoming_content
        )


class Suggestion(BaseModel):
    """An LLM-proposed replacement for one conflict region.

    The wire contract is exactly two string keys; other keys are
    ignored.
    """

    model_config = ConfigDict(extra="ignore")

    merged_code: StrictStr
    reason: StrictStr


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    SKIPPED = "skipped"
    ABORTED = "aborted"


class ResolutionMethod(str, Enum):
    """How a region's final decision was reached."""

    LLM_SUGGESTION = "LLM Suggestion"
    MANUAL_EDIT = "Manual Edit"
    MANUAL_CHOICE = "Manual Choice"
    SKIPPED = "Skipped"
    ABORTED = "Aborted"


class ResolutionResult(BaseModel):
    """Final decision for one region."""

    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    method: ResolutionMethod
    merged_code: str = ""
    reason: str = ""
    comment: str | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome is Outcome.ACCEPTED

    @property
    def abort(self) -> bool:
        return self.outcome is Outcome.ABORTED

    @property
    def replaces_text(self) -> bool:
        """True if applying this result rewrites the region's lines.

        Editor resolutions already changed the file snapshot, so they
        leave the buffer alone.
        """
        return (
            self.accepted
            and self.method is not ResolutionMethod.MANUAL_EDIT
        )

    @classmethod
    def accept(
        cls,
        suggestion: Suggestion,
        comment: str | None = None,
    ) -> ResolutionResult:
        return cls(
            outcome=Outcome.ACCEPTED,
            method=ResolutionMethod.LLM_SUGGESTION,
            merged_code=suggestion.merged_code,
            reason=suggestion.reason,
            comment=comment,
        )

    @classmethod
    def choose(cls, text: str, side: str) -> ResolutionResult:
        return cls(
            outcome=Outcome.ACCEPTED,
            method=ResolutionMethod.MANUAL_CHOICE,
            merged_code=text,
            reason=f"Kept the {side} side",
        )

    @classmethod
    def manual_edit(cls, comment: str | None = None) -> ResolutionResult:
        return cls(
            outcome=Outcome.ACCEPTED,
            method=ResolutionMethod.MANUAL_EDIT,
            merged_code=MANUAL_RESOLUTION,
            reason="Resolved manually in editor",
            comment=comment,
        )

    @classmethod
    def skip(
        cls,
        suggestion: Suggestion | None = None,
        comment: str | None = None,
    ) -> ResolutionResult:
        return cls(
            outcome=Outcome.SKIPPED,
            method=ResolutionMethod.SKIPPED,
            merged_code=suggestion.merged_code if suggestion else "",
            reason=suggestion.reason if suggestion else "Skipped by user",
            comment=comment,
        )

    @classmethod
    def aborted(
        cls,
        suggestion: Suggestion | None = None,
        comment: str | None = None,
    ) -> ResolutionResult:
        return cls(
            outcome=Outcome.ABORTED,
            method=ResolutionMethod.ABORTED,
            merged_code=suggestion.merged_code if suggestion else "",
            reason=suggestion.reason if suggestion else "Aborted by user",
            comment=comment,
        )


class Decision(BaseModel):
    """A region paired with the result decided for it."""

    model_config = ConfigDict(frozen=True)

    region: ConflictRegion
    result: ResolutionResult


class ResolutionLogEntry(BaseModel):
    """Audit record for one decided region. Never mutated."""

    model_config = ConfigDict(frozen=True)

    start_line: int
    end_line: int
    base_label: str
    incoming_label: str
    base_content: str
    incoming_content: str
    outcome: Outcome
    method: ResolutionMethod
    merged_code: str
    reason: str
    comment: str | None = None
    timestamp: datetime

    @classmethod
    def record(cls, decision: Decision) -> ResolutionLogEntry:
        region, result = decision.region, decision.result
        return cls(
            start_line=region.start_line,
            end_line=region.end_line,
            base_label=region.base_label,
            incoming_label=region.incoming_label,
            base_content=region.base_content,
            incoming_content=region.incoming_content,
            outcome=result.outcome,
            method=result.method,
            merged_code=result.merged_code,
            reason=result.reason,
            comment=result.comment,
            timestamp=datetime.now(),
        )


class ResolutionSummary(BaseModel):
    """Counts reported after a resolution pass."""

    accepted: int = 0
    skipped: int = 0
    aborted: bool = False

    @property
    def fully_resolved(self) -> bool:
        """True if every region was accepted and nothing aborted."""
        return not self.aborted and self.skipped == 0 and self.accepted > 0
