"""Reply schemas for the ask and diff commands."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class ShellCommands(BaseModel):
    """Shell commands proposed for a natural-language request."""

    model_config = ConfigDict(extra="ignore")

    commands: list[str]
    explanation: str = ""

    @field_validator("commands", mode="before")
    @classmethod
    def _single_command(cls, value):
        if isinstance(value, str):
            return [value]
        return value


class DiffAnalysis(BaseModel):
    """Review of a diff."""

    model_config = ConfigDict(extra="ignore")

    summary: str
    errors: list[str] = []
    improvements: list[str] = []
    test_coverage: str = ""
    requirements_evaluation: str = ""

    @field_validator("errors", "improvements", mode="before")
    @classmethod
    def _as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


__all__ = ["ShellCommands", "DiffAnalysis"]
