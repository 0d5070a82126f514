"""Tests for conflict parser."""

import pytest

from mergepilot.conflict.parser import (
    parse,
    parse_file,
    read_lines,
    split_lines,
)
from mergepilot.core.errors import ConflictFileError, MalformedConflictError


def lines(text):
    return text.splitlines()


def test_parse_simple_conflict():
    """Test parsing a simple conflict with context."""
    content = """line 1
line 2
<<<<<<< HEAD
our change
=======
their change
>>>>>>> branch
line 3
line 4
"""
    regions = parse(lines(content), context_lines=2)

    assert len(regions) == 1
    region = regions[0]

    assert region.start_line == 3
    assert region.end_line == 7
    assert region.base_content == "our change"
    assert region.incoming_content == "their change"
    assert region.base_label == "HEAD"
    assert region.incoming_label == "branch"
    assert region.context_before == "line 1\nline 2"
    assert region.context_after == "line 3\nline 4"


def test_parse_multiple_conflicts_in_order():
    """Test parsing multiple conflicts in one file."""
    content = """line 1
<<<<<<< HEAD
change 1 ours
=======
change 1 theirs
>>>>>>> branch
middle line
<<<<<<< HEAD
change 2 ours
change 2 ours again
=======
change 2 theirs
>>>>>>> other
last line
"""
    regions = parse(lines(content), context_lines=1)

    assert len(regions) == 2
    assert [r.start_line for r in regions] == [2, 8]
    assert [r.end_line for r in regions] == [6, 13]

    assert regions[0].base_content == "change 1 ours"
    assert regions[0].incoming_content == "change 1 theirs"
    assert regions[0].context_after == "middle line"

    assert regions[1].base_content == "change 2 ours\nchange 2 ours again"
    assert regions[1].incoming_label == "other"
    assert regions[1].context_before == "middle line"
    assert regions[1].context_after == "last line"


def test_context_clamped_at_file_start():
    """Test that a conflict on line 1 has empty context before."""
    content = """<<<<<<< HEAD
a
=======
b
>>>>>>> branch
after
"""
    region = parse(lines(content), context_lines=10)[0]

    assert region.start_line == 1
    assert region.context_before == ""
    assert region.context_after == "after"


def test_context_clamped_at_file_end():
    """Test that a conflict on the last line has empty context after."""
    content = "x\ny\n<<<<<<< HEAD\na\n=======\nb\n>>>>>>> branch"
    region = parse(lines(content), context_lines=10)[0]

    assert region.end_line == 7
    assert region.context_before == "x\ny"
    assert region.context_after == ""


def test_context_window_is_bounded():
    """Test that only N lines of context are taken on each side."""
    before = [f"b{i}" for i in range(20)]
    after = [f"a{i}" for i in range(20)]
    content = before + ["<<<<<<<", "x", "=======", "y", ">>>>>>>"] + after

    region = parse(content, context_lines=3)[0]

    assert region.context_before == "b17\nb18\nb19"
    assert region.context_after == "a0\na1\na2"


def test_parse_no_conflicts():
    """Test that a file without markers yields no regions."""
    assert parse(lines("just\nsome\ncode\n")) == []
    assert parse([]) == []


def test_parse_empty_sides_and_bare_markers():
    """Test markers without labels and with empty sides."""
    content = ["<<<<<<<", "=======", "added", ">>>>>>>"]
    region = parse(content)[0]

    assert region.base_label == ""
    assert region.incoming_label == ""
    assert region.base_content == ""
    assert region.incoming_content == "added"


def test_parse_missing_separator_raises():
    """Test that a region without ======= is malformed."""
    content = ["ok", "<<<<<<< HEAD", "ours", "theirs"]

    with pytest.raises(MalformedConflictError) as exc_info:
        parse(content)

    assert exc_info.value.line == 2
    assert "=======" in str(exc_info.value)


def test_parse_missing_end_marker_raises():
    """Test that a file ending before >>>>>>> is malformed."""
    content = ["<<<<<<< HEAD", "ours", "=======", "theirs"]

    with pytest.raises(MalformedConflictError) as exc_info:
        parse(content)

    assert exc_info.value.missing == ">>>>>>>"


def test_parse_file(tmp_path):
    """Test parsing from a file on disk."""
    path = tmp_path / "conflicted.py"
    path.write_text("A\n<<<<<<< HEAD\nfoo=1\n=======\nfoo=2\n>>>>>>> br\nB\n")

    regions = parse_file(path)

    assert len(regions) == 1
    assert regions[0].base_content == "foo=1"
    assert regions[0].incoming_content == "foo=2"
    assert regions[0].incoming_label == "br"


def test_parse_file_missing(tmp_path):
    """Test that a missing file raises a FileNotFoundError."""
    with pytest.raises(FileNotFoundError) as exc_info:
        parse_file(tmp_path / "nope.txt")

    assert isinstance(exc_info.value, ConflictFileError)


def test_parse_file_not_regular(tmp_path):
    """Test that a directory is rejected."""
    with pytest.raises(ConflictFileError, match="Not a regular file"):
        parse_file(tmp_path)


def test_split_lines_only_on_newline():
    """Test that only "\\n" ends a line, as in git."""
    text = "a\fb\r\nc\x85d e\x1cf\n"

    assert split_lines(text) == (["a\fb\r", "c\x85d e\x1cf"], True)
    assert split_lines("x\ny") == (["x", "y"], False)
    assert split_lines("") == ([], False)
    assert split_lines("\n") == ([""], True)


def test_crlf_region_text():
    """Test that region text drops the "\\r" of CRLF files."""
    content = (
        "top\r\n<<<<<<< HEAD\r\nours 1\r\nours 2\r\n=======\r\n"
        "theirs\r\n>>>>>>> feature\r\nbottom\r\n"
    )
    [region] = parse(split_lines(content)[0])

    assert region.start_line == 2
    assert region.end_line == 7
    assert region.base_content == "ours 1\nours 2"
    assert region.incoming_content == "theirs"
    assert region.base_label == "HEAD"
    assert region.incoming_label == "feature"
    assert region.context_before == "top"
    assert region.context_after == "bottom"


def test_read_lines_not_utf8(tmp_path):
    path = tmp_path / "latin1.txt"
    path.write_bytes(b"caf\xe9\n")

    with pytest.raises(ConflictFileError, match="not UTF-8 text"):
        read_lines(path)
