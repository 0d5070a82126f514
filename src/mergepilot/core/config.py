"""Application configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mergepilot.core.base import BaseConfig
from mergepilot.core.log import Logger
from mergepilot.core.yaml_settings import YamlWithIncludesSettingsSource

# ============================================================
# TEMPLATE SUBSTITUTION NAMESPACE
# ============================================================

# Modules available for template substitution in YAML files
# Usage: {platformdirs.user_log_dir}, {os.getcwd}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class LLMConfig(BaseConfig):
    """LLM provider and model selection."""

    model: str = Field(
        default="openai:gpt-4o-mini",
        description=(
            "Model used for suggestions. "
            "Format: 'provider:model' (e.g., openai:gpt-4o, "
            "anthropic:claude-sonnet-4-0, ollama:llama3)"
        )
    )
    api_key: str | None = Field(
        default=None,
        description=(
            "API key for LLM provider. If not set, provider will "
            "look for provider-specific environment variables "
            "(e.g., OPENAI_API_KEY, ANTHROPIC_API_KEY)"
        )
    )
    base_url: str | None = Field(
        default=None,
        description=(
            "Override API base URL for custom OpenAI-compatible endpoints "
            "(e.g., a local Ollama at http://localhost:11434/v1)"
        )
    )
    retries: int = Field(
        default=1,
        description="Agent-level retries for a single request",
    )
    system_prompt: str | None = Field(
        default=None,
        description="Optional system prompt sent with every request",
    )


class MergeConfig(BaseConfig):
    """Merge conflict resolution settings."""

    context_lines: int = Field(
        default=10,
        ge=0,
        description="Lines of context sent around each conflict",
    )
    display_context_lines: int = Field(
        default=3,
        ge=0,
        description="Lines of context shown around each conflict",
    )
    log_enabled: bool = Field(
        default=False,
        description="Write a JSON record of every resolution run",
    )
    log_dir: Path = Field(
        default=Path(".mergepilot/merge_log"),
        description="Directory for JSON merge logs",
    )
    vcs_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds before a VCS command is terminated",
    )
    vcs_kill_grace: float = Field(
        default=2.0,
        ge=0,
        description="Seconds between SIGTERM and SIGKILL on timeout",
    )


class EditorConfig(BaseConfig):
    """External editor used by the 'edit' choice."""

    command: str | None = Field(
        default=None,
        description=(
            "Editor command. Falls back to $VISUAL, $EDITOR, then vi"
        ),
    )

    def resolve(self) -> str:
        return (
            self.command
            or os.environ.get("VISUAL")
            or os.environ.get("EDITOR")
            or "vi"
        )


class UIConfig(BaseConfig):
    """Interactive terminal presentation."""

    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI.

    Groups configuration into logical sections. Inherits from
    BaseConfig so closing it closes the logger and its sinks.
    """
    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM provider and model settings"
    )
    merge: MergeConfig = Field(
        default_factory=MergeConfig,
        description="Merge conflict resolution settings"
    )
    editor: EditorConfig = Field(
        default_factory=EditorConfig,
        description="External editor settings"
    )
    ui: UIConfig = Field(
        default_factory=UIConfig,
        description="Terminal presentation settings"
    )
    templates: dict[str, Path] = Field(
        default_factory=dict,
        description=(
            "User prompt templates by name (merge_conflict, "
            "json_repair, ask, diff_analysis)"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("mergepilot"))
        ),
        description=(
            "Root directory for all log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Initialize the global logger singleton after config loads."""
        from mergepilot.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        self.logger = setup_logger(
            log_root=self.log_root,
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )

        # The bootstrap logger used while reading YAML is no longer
        # needed once the real one exists
        from mergepilot.core.yaml_settings import _cleanup_bootstrap_logger
        _cleanup_bootstrap_logger()

        return self


# ============================================================
# STATE (configuration as loaded by the CLI)
# ============================================================

class State(BaseSettings):
    """Complete application state as loaded from all sources.

    Being a pydantic BaseSettings, State loads from YAML files,
    environment variables and CLI arguments, and validates everything
    on load.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="mergepilot.yaml",
        env_file=".env",
        env_prefix="MERGEPILOT_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority.

        Priority order (highest to lowest):
        1. init_settings (direct instantiation arguments)
        2. YAML files with include support
        3. .env file
        4. Environment variables
        5. File secrets
        """
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Substitute {config.*} and {platformdirs.*} references in
        every string and Path field, recursively."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            substituted = self._substitute_string(str(value))
            return value if substituted == str(value) else Path(substituted)
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        else:
            return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual field values.

        Examples:
            "{config.log_root}/merges" → "/home/user/.local/state/mergepilot/merges"
            "{platformdirs.user_cache_dir}" → "/home/user/.cache/mergepilot"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)

                if callable(obj):
                    obj = obj('mergepilot', appauthor=False)

                return str(obj)
            except (AttributeError, TypeError):
                # Not a valid reference, leave unchanged
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = [
    "State",
    "Config",
    "LLMConfig",
    "MergeConfig",
    "EditorConfig",
    "UIConfig",
]
