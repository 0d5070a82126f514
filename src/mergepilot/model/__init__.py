"""LLM client, reply schemas and validation."""

from mergepilot.model.client import LLMClient, PromptClient
from mergepilot.model.schemas import DiffAnalysis, ShellCommands
from mergepilot.model.validator import ResponseValidator, extract_json

__all__ = [
    "LLMClient",
    "PromptClient",
    "ResponseValidator",
    "extract_json",
    "ShellCommands",
    "DiffAnalysis",
]
