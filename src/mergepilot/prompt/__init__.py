"""Prompt templates and rendering."""

from mergepilot.prompt.builder import TEMPLATE_DIR, PromptBuilder
from mergepilot.prompt.template import TemplateEngine, render

__all__ = ["PromptBuilder", "TemplateEngine", "TEMPLATE_DIR", "render"]
