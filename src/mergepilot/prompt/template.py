"""Small template language used for prompts.

Supported syntax, processed in this order:

    {#each items}...{/each}     repeat for every element of a list;
                                dict elements expose their keys as
                                variables, other elements are {.}
    {#if cond}...{#else}...{/if}
                                cond is a name (truthy check),
                                name == 'value' or name != 'value'
    {name}                      variable; unresolved names render empty

Braces that do not match these forms (JSON examples in prompts, for
instance) are left untouched.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_LOOP = re.compile(r"\{#each\s+(\w+)\}(.*?)\{/each\}", re.DOTALL)
_CONDITIONAL = re.compile(
    r"\{#if\s+(.+?)\}(.*?)(?:\{#else\}(.*?))?\{/if\}", re.DOTALL
)
_COMPARISON = re.compile(r"(\w+)\s*(==|!=)\s*['\"]([^'\"]*)['\"]")
_VARIABLE = re.compile(r"\{(\w+)\}")
_ITEM = re.compile(r"\{\.?\}")


class TemplateEngine:
    """Renders one template against a mapping of values."""

    def __init__(self, template: str, data: Mapping[str, Any] | None = None):
        self.template = template
        self.data = dict(data or {})

    def render(self) -> str:
        result = self._process_loops(self.template)
        result = self._process_conditionals(result, self.data)
        return self._process_variables(result, self.data)

    def _process_loops(self, content: str) -> str:
        def expand(match: re.Match) -> str:
            items = self.data.get(match.group(1))
            body = match.group(2)
            if not isinstance(items, (list, tuple)):
                return ""

            parts = []
            for item in items:
                if isinstance(item, Mapping):
                    scope = {**self.data, **item}
                    text = self._process_conditionals(body, scope)
                    for key, value in item.items():
                        text = text.replace(f"{{{key}}}", _text(value))
                else:
                    text = _ITEM.sub(lambda _: _text(item), body)
                parts.append(text)
            return "".join(parts)

        return _LOOP.sub(expand, content)

    def _process_conditionals(
        self, content: str, scope: Mapping[str, Any]
    ) -> str:
        def choose(match: re.Match) -> str:
            if self._evaluate(match.group(1).strip(), scope):
                return match.group(2)
            return match.group(3) or ""

        return _CONDITIONAL.sub(choose, content)

    def _process_variables(
        self, content: str, scope: Mapping[str, Any]
    ) -> str:
        return _VARIABLE.sub(lambda m: _text(scope.get(m.group(1))), content)

    @staticmethod
    def _evaluate(condition: str, scope: Mapping[str, Any]) -> bool:
        comparison = _COMPARISON.fullmatch(condition)
        if comparison:
            name, operator, expected = comparison.groups()
            actual = _text(scope.get(name))
            if operator == "==":
                return actual == expected
            return actual != expected
        return bool(scope.get(condition))


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def render(template: str, data: Mapping[str, Any] | None = None) -> str:
    """Render template with data."""
    return TemplateEngine(template, data).render()


__all__ = ["TemplateEngine", "render"]
