"""Tests for --include CLI argument."""

import sys
from pathlib import Path

import pytest

from mergepilot.core.config import State
from mergepilot.core.yaml_settings import (
    YamlWithIncludesSettingsSource,
    _cli_includes,
)


@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    yield
    sys.argv = original


def test_cli_includes_parsed():
    argv = [
        "mergepilot", "merge", "f.txt",
        "--include", "a.yaml", "--include=b.yaml", "--include",
    ]
    assert _cli_includes(argv) == ["a.yaml", "b.yaml"]


def test_single_cli_include(fixtures_dir, mock_argv):
    """Single --include arg loads additional file."""
    sys.argv = [
        "prog",
        "--include", str(fixtures_dir / "override_merge.yaml"),
    ]

    source = YamlWithIncludesSettingsSource(
        State,
        yaml_file=str(fixtures_dir / "minimal.yaml")
    )
    data = source()

    assert data["config"]["merge"]["context_lines"] == 99
    assert data["config"]["llm"]["model"] == "test:model"


def test_multiple_cli_includes(fixtures_dir, mock_argv):
    """Multiple --include args load files in order."""
    sys.argv = [
        "prog",
        "--include", str(fixtures_dir / "extra_templates.yaml"),
        "--include", str(fixtures_dir / "override_merge.yaml"),
    ]

    source = YamlWithIncludesSettingsSource(
        State,
        yaml_file=str(fixtures_dir / "minimal.yaml")
    )
    data = source()

    assert "merge_conflict" in data["config"]["templates"]
    assert data["config"]["merge"]["log_enabled"] is True


def test_cli_include_overrides_yaml(fixtures_dir, mock_argv, tmp_path):
    """CLI --include has higher priority than base YAML."""
    override = tmp_path / "override.yaml"
    override.write_text("config:\n  llm:\n    model: cli:model\n")
    sys.argv = ["prog", "--include", str(override)]

    source = YamlWithIncludesSettingsSource(
        State,
        yaml_file=str(fixtures_dir / "with_include.yaml")
    )
    data = source()

    # From the YAML include
    assert "merge_conflict" in data["config"]["templates"]
    # From the CLI include, which comes last
    assert data["config"]["llm"]["model"] == "cli:model"


def test_cli_include_with_no_base_yaml(fixtures_dir, mock_argv):
    """CLI --include works even without a base config file."""
    sys.argv = [
        "prog",
        "--include", str(fixtures_dir / "minimal.yaml"),
    ]

    source = YamlWithIncludesSettingsSource(State, yaml_file=None)
    data = source()

    assert data["config"]["llm"]["model"] == "test:model"
