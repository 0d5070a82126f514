"""Tests for the prompt template language."""

from mergepilot.prompt.template import TemplateEngine, render


def test_variables():
    assert render("Hello {name}!", {"name": "world"}) == "Hello world!"


def test_unresolved_variable_renders_empty():
    assert render("[{missing}]", {}) == "[]"
    assert render("[{value}]", {"value": None}) == "[]"


def test_non_string_values():
    assert render("lines {start}-{end}", {"start": 3, "end": 7}) == (
        "lines 3-7"
    )


def test_json_braces_left_alone():
    template = 'Reply as {"merged_code": "<code>", "reason": "{why}"}'
    assert render(template, {"why": "x"}) == (
        'Reply as {"merged_code": "<code>", "reason": "x"}'
    )


def test_each_over_dicts():
    template = "{#each files}- {path} ({status})\n{/each}"
    data = {"files": [
        {"path": "a.py", "status": "M"},
        {"path": "b.py", "status": "A"},
    ]}

    assert render(template, data) == "- a.py (M)\n- b.py (A)\n"


def test_each_over_scalars():
    assert render("{#each xs}<{.}>{/each}", {"xs": [1, 2]}) == "<1><2>"
    assert render("{#each xs}<{}>{/each}", {"xs": ["a"]}) == "<a>"


def test_each_missing_list():
    assert render("a{#each nope}x{/each}b", {}) == "ab"


def test_each_item_sees_outer_scope():
    template = "{#each xs}{#if name == 'b'}{label}{#else}-{/if}{/each}"
    data = {"label": "B!", "xs": [{"name": "a"}, {"name": "b"}]}

    assert render(template, data) == "-B!"


def test_if_truthiness():
    template = "{#if comment}Note: {comment}{#else}none{/if}"

    assert render(template, {"comment": "careful"}) == "Note: careful"
    assert render(template, {"comment": ""}) == "none"
    assert render(template, {}) == "none"


def test_if_comparisons():
    template = "{#if kind == 'git'}stage{/if}{#if kind != 'git'}mark{/if}"

    assert render(template, {"kind": "git"}) == "stage"
    assert render(template, {"kind": "hg"}) == "mark"


def test_engine_keeps_data():
    engine = TemplateEngine("{a}", {"a": 1})

    assert engine.render() == "1"
    assert engine.render() == "1"
