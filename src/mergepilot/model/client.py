"""LLM client built on a pydantic-ai Agent."""

from __future__ import annotations

import time
import traceback
from contextlib import contextmanager
from typing import Protocol

from pydantic_ai import Agent, providers

from mergepilot.core.config import LLMConfig
from mergepilot.core.errors import LLMError
from mergepilot.core.log import logger

DEFAULT_SYSTEM_PROMPT = (
    "You are a careful software engineering assistant. "
    "When asked for JSON, reply with JSON only."
)


class PromptClient(Protocol):
    """Anything that turns a prompt into reply text."""

    async def send(self, prompt: str) -> str:
        ...


@contextmanager
def inject_provider_params(llm_config: LLMConfig):
    """Context manager to inject parameters into provider creation.

    Temporarily patches pydantic-AI's infer_provider to pass
    custom parameters to provider constructors. Restores original
    behavior on exit.

    Args:
        llm_config: LLM configuration with api_key, base_url, etc.

    Yields:
        None
    """
    kwargs = {}
    if llm_config.api_key:
        kwargs['api_key'] = llm_config.api_key
    if llm_config.base_url:
        kwargs['base_url'] = llm_config.base_url

    if not kwargs:
        yield
        return

    original_infer_provider = providers.infer_provider

    def patched_infer_provider(provider_name: str):
        """Infer provider and inject parameters."""
        provider_class = providers.infer_provider_class(provider_name)
        return provider_class(**kwargs)

    try:
        providers.infer_provider = patched_infer_provider
        yield
    finally:
        providers.infer_provider = original_infer_provider


class LLMClient:
    """Sends plain-text prompts to the configured model.

    The agent is created on first use, so building a client never
    touches provider credentials.
    """

    def __init__(self, llm_config: LLMConfig):
        self.llm_config = llm_config
        self._agent: Agent | None = None

    def _create_agent(self) -> Agent:
        logger.debug(
            "Creating agent",
            model=self.llm_config.model,
            api_key_set=self.llm_config.api_key is not None,
            base_url=self.llm_config.base_url,
            retries=self.llm_config.retries,
        )
        with inject_provider_params(self.llm_config):
            return Agent(
                self.llm_config.model,
                output_type=str,
                system_prompt=(
                    self.llm_config.system_prompt or DEFAULT_SYSTEM_PROMPT
                ),
                retries=self.llm_config.retries,
            )

    @property
    def agent(self) -> Agent:
        if self._agent is None:
            self._agent = self._create_agent()
        return self._agent

    async def send(self, prompt: str) -> str:
        """Send one prompt and return the model's reply text.

        Raises:
            LLMError: For any provider, network or configuration failure
        """
        logger.debug("Sending prompt", prompt_length=len(prompt))
        logger.trace(f"Prompt:\n{prompt}")
        start = time.time()

        try:
            result = await self.agent.run(prompt)
        except Exception as e:
            self._log_exception(e)
            raise LLMError(
                f"LLM request to '{self.llm_config.model}' failed: {e}. "
                f"Check llm.model, llm.api_key and llm.base_url."
            ) from e

        reply = result.output
        logger.info(
            "LLM replied",
            model=self.llm_config.model,
            elapsed_ms=round((time.time() - start) * 1000, 2),
            reply_length=len(reply),
        )
        logger.trace(f"Reply:\n{reply}")
        return reply

    def _log_exception(self, e: Exception):
        logger.error("LLM API call failed", _exc_info=e)
        tb_lines = traceback.format_exception(type(e), e, e.__traceback__)
        logger.debug("Exception traceback:\n" + ''.join(tb_lines))

        cause = e.__cause__
        depth = 1
        while cause:
            logger.debug(
                f"Exception cause chain (depth {depth}): {cause}",
                cause_type=type(cause).__name__,
            )
            cause = cause.__cause__
            depth += 1


__all__ = ["LLMClient", "PromptClient", "inject_provider_params"]
