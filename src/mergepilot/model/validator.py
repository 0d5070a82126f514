"""Parse, extract and repair JSON replies from the LLM."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from mergepilot.core.errors import InvalidResponseError
from mergepilot.core.log import logger
from mergepilot.model.client import PromptClient
from mergepilot.prompt.builder import PromptBuilder

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_json(text: str) -> str | None:
    """Return the balanced {...} block starting at the first '{'.

    Braces inside JSON strings are not counted, so code snippets in
    string values do not end the block early.

    Returns:
        The block, or None if there is no '{' or it is never closed
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


class ResponseValidator(Generic[ModelT]):
    """Turns raw LLM text into an instance of a pydantic model.

    Ladder: strict parse, then balanced-brace extraction, then exactly
    one repair request to the LLM (re-running both steps on the
    repaired text). Anything still invalid raises InvalidResponseError.
    """

    def __init__(
        self,
        schema: type[ModelT],
        client: PromptClient,
        builder: PromptBuilder,
    ):
        self.schema = schema
        self.client = client
        self.builder = builder

    def parse(self, text: str) -> tuple[ModelT | None, str | None]:
        """Run the strict parse and the extraction step.

        Returns:
            (model, None) on success, (None, last error) otherwise
        """
        try:
            return self.schema.model_validate_json(text), None
        except ValidationError as e:
            error = str(e)

        block = extract_json(text)
        if block is None:
            logger.debug("No JSON object found in reply")
            return None, error or "no JSON object found"
        if block == text.strip():
            return None, error

        try:
            parsed = self.schema.model_validate_json(block)
        except ValidationError as e:
            return None, str(e)
        logger.debug("Parsed JSON extracted from reply")
        return parsed, None

    async def validate(self, raw: str) -> ModelT:
        """Validate raw reply text.

        Raises:
            InvalidResponseError: If the reply cannot be parsed even
                after one repair round trip
            LLMError: If the repair request itself fails
        """
        parsed, error = self.parse(raw)
        if parsed is not None:
            return parsed

        logger.warning(
            "Invalid LLM reply, requesting repair",
            schema=self.schema.__name__,
            error=error,
        )
        prompt = self.builder.repair(
            raw, error, self.schema.model_json_schema()
        )
        repaired = await self.client.send(prompt)

        parsed, repair_error = self.parse(repaired)
        if parsed is not None:
            logger.info("Repaired LLM reply", schema=self.schema.__name__)
            return parsed

        logger.error(
            "LLM reply still invalid after repair",
            schema=self.schema.__name__,
            error=repair_error,
        )
        raise InvalidResponseError(raw, repair_error or error)


__all__ = ["ResponseValidator", "extract_json"]
