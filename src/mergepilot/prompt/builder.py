"""Build LLM prompts from templates."""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path

from mergepilot.conflict.models import ConflictRegion
from mergepilot.core.errors import TemplateNotFoundError
from mergepilot.core.log import logger
from mergepilot.prompt.template import render

TEMPLATE_DIR = Path(__file__).parent / "templates"


class PromptBuilder:
    """Loads templates once and renders prompts from them.

    A template configured by the user is used when its file exists;
    otherwise the packaged template of the same name is used.
    """

    def __init__(
        self,
        templates: dict[str, Path] | None = None,
        template_dir: Path = TEMPLATE_DIR,
    ):
        self.templates = dict(templates or {})
        self.template_dir = Path(template_dir)
        self._cache: dict[str, str] = {}

    def resolve(self, name: str) -> Path:
        """Locate the template file for name."""
        user_path = self.templates.get(name)
        if user_path is not None:
            user_path = Path(user_path).expanduser()
            if user_path.is_file():
                return user_path
            logger.warning(
                "Configured template not found, using packaged default",
                template=name,
                path=str(user_path),
            )
        return self.template_dir / f"{name}.txt"

    def load(self, name: str) -> str:
        """Read a template, once per builder.

        Raises:
            TemplateNotFoundError: If no template file exists for name
        """
        if name not in self._cache:
            path = self.resolve(name)
            try:
                self._cache[name] = path.read_text(encoding="utf-8")
            except FileNotFoundError as e:
                raise TemplateNotFoundError(name, path) from e
            logger.debug("Loaded template", template=name, path=str(path))
        return self._cache[name]

    def render(self, name: str, **data) -> str:
        return render(self.load(name), data)

    def build(
        self,
        region: ConflictRegion,
        full_file_text: str,
        user_comment: str | None = None,
    ) -> str:
        """Build the prompt asking for a merge of one region.

        Args:
            region: Conflict region to resolve
            full_file_text: Current content of the whole file
            user_comment: Optional guidance from the user

        Returns:
            Complete prompt text
        """
        return self.render(
            "merge_conflict",
            full_file_content=full_file_text,
            context_before=region.context_before,
            base_label=region.base_label,
            base_content=region.base_content,
            incoming_content=region.incoming_content,
            incoming_label=region.incoming_label,
            context_after=region.context_after,
            start_line=region.start_line,
            end_line=region.end_line,
            user_comment=(
                f"User comment: {user_comment}" if user_comment else ""
            ),
        )

    def repair(self, malformed: str, error: str, schema: dict) -> str:
        """Build the prompt asking the LLM to fix a malformed reply."""
        return self.render(
            "json_repair",
            malformed_response=malformed,
            error=error,
            schema=json.dumps(schema, indent=2),
        )

    def ask(self, request: str, current_directory: Path | None = None) -> str:
        """Build the prompt translating a request into shell commands."""
        return self.render(
            "ask",
            request=request,
            shell=Path(os.environ.get("SHELL", "sh")).name,
            os_name=platform.system(),
            current_directory=str(current_directory or ""),
        )

    def diff(
        self,
        diff: str,
        requirements: str | None = None,
        instructions: str | None = None,
    ) -> str:
        """Build the prompt asking for a review of a diff."""
        return self.render(
            "diff_analysis",
            diff=diff,
            requirements=requirements or "",
            instructions=instructions or "",
        )


__all__ = ["PromptBuilder", "TEMPLATE_DIR"]
