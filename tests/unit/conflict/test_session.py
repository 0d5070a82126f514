"""Tests for the per-file resolution session."""

from mergepilot.conflict.models import (
    ResolutionMethod,
    ResolutionResult,
    Suggestion,
)
from mergepilot.conflict.session import ResolutionSession

TWO_CONFLICTS = """top
<<<<<<< HEAD
first ours
=======
first theirs
>>>>>>> branch
middle
<<<<<<< HEAD
second ours
=======
second theirs
>>>>>>> branch
bottom
"""


def make_session(tmp_path, content=TWO_CONFLICTS):
    path = tmp_path / "file.txt"
    path.write_text(content)
    return ResolutionSession(path, context_lines=2)


def accept(code="merged"):
    return ResolutionResult.accept(Suggestion(merged_code=code, reason="r"))


def test_regions_handed_out_bottom_up(tmp_path):
    """Test that the bottom-most region is decided first."""
    session = make_session(tmp_path)

    assert session.total == 2
    assert [r.start_line for r in session.pending] == [2, 8]
    assert session.current().base_content == "second ours"

    session.record(accept())

    assert session.current().base_content == "first ours"
    assert session.total == 2
    assert len(session.decided) == 1
    assert len(session.log) == 1


def test_abort_stops_session(tmp_path):
    """Test that recording an abort ends the session."""
    session = make_session(tmp_path)

    session.record(ResolutionResult.aborted())

    assert session.aborted
    assert session.pending
    assert not session.has_pending()


def test_text_keeps_trailing_newline(tmp_path):
    session = make_session(tmp_path)
    assert session.text == TWO_CONFLICTS

    session = make_session(tmp_path, TWO_CONFLICTS.rstrip("\n"))
    assert session.text == TWO_CONFLICTS.rstrip("\n")


def test_changed_on_disk(tmp_path):
    session = make_session(tmp_path)
    assert not session.changed_on_disk()

    session.path.write_text("changed\n" + TWO_CONFLICTS)
    assert session.changed_on_disk()


def test_resync_rebinds_decided_regions(tmp_path):
    """Test that decided regions follow lines inserted above them."""
    session = make_session(tmp_path)
    session.record(accept("second merged"))

    session.path.write_text("new first line\n" + TWO_CONFLICTS)
    session.resync()

    assert [r.start_line for r in session.pending] == [3]
    assert len(session.decided) == 1
    decision = session.decided[0]
    assert decision.region.start_line == 9
    assert decision.region.base_content == "second ours"
    assert decision.result.merged_code == "second merged"
    assert session.lines[0] == "new first line"


def test_resync_after_pending_region_resolved_by_hand(tmp_path):
    """Test that a region fixed in the editor leaves the pending list."""
    session = make_session(tmp_path)
    session.record(accept())

    session.path.write_text(TWO_CONFLICTS.replace(
        "<<<<<<< HEAD\nfirst ours\n=======\nfirst theirs\n>>>>>>> branch\n",
        "first fixed\n",
    ))
    session.resync()

    assert session.pending == []
    assert session.decided[0].region.start_line == 4


def test_accept_manual_edit_keeps_presented_region(tmp_path):
    """Test recording an editor resolution of the current region."""
    session = make_session(tmp_path)
    presented = session.current()

    session.path.write_text(TWO_CONFLICTS.replace(
        "<<<<<<< HEAD\nsecond ours\n=======\nsecond theirs\n"
        ">>>>>>> branch\n",
        "second fixed\n",
    ))
    session.resync()
    decision = session.accept_manual_edit(
        presented, ResolutionResult.manual_edit()
    )

    assert decision.region == presented
    assert decision.result.method is ResolutionMethod.MANUAL_EDIT
    assert [r.base_content for r in session.pending] == ["first ours"]


def test_accept_manual_edit_with_markers_left(tmp_path):
    """Test that a region left with markers is still treated as done."""
    session = make_session(tmp_path)
    presented = session.current()

    session.path.write_text("edited\n" + TWO_CONFLICTS)
    session.resync()
    session.accept_manual_edit(presented, ResolutionResult.manual_edit())

    assert [r.base_content for r in session.pending] == ["first ours"]
    assert len(session.decided) == 1


def test_manual_edits_survive_resync(tmp_path):
    """Test that editor resolutions are kept through a later resync."""
    session = make_session(tmp_path)
    presented = session.current()
    session.path.write_text(TWO_CONFLICTS.replace(
        "<<<<<<< HEAD\nsecond ours\n=======\nsecond theirs\n"
        ">>>>>>> branch\n",
        "second fixed\n",
    ))
    session.resync()
    session.accept_manual_edit(presented, ResolutionResult.manual_edit())
    session.record(accept("first merged"))

    session.path.write_text("header\n" + session.text)
    session.resync()

    methods = [d.result.method for d in session.decided]
    assert methods == [
        ResolutionMethod.MANUAL_EDIT,
        ResolutionMethod.LLM_SUGGESTION,
    ]
    assert session.decided[1].region.start_line == 3
    assert session.pending == []


def test_resync_drops_decision_for_region_fixed_by_hand(tmp_path):
    """Test that a skip never moves onto a region the user has not seen."""
    session = make_session(tmp_path)
    session.record(ResolutionResult.skip())

    session.path.write_text(TWO_CONFLICTS.replace(
        "<<<<<<< HEAD\nsecond ours\n=======\nsecond theirs\n"
        ">>>>>>> branch\n",
        "second fixed\n",
    ))
    session.resync()

    assert [r.base_content for r in session.pending] == ["first ours"]
    assert session.decided == []


def test_resync_decided_region_edited_becomes_pending(tmp_path):
    """Test that changing a decided region's text asks about it again."""
    session = make_session(tmp_path)
    session.record(accept("second merged"))

    session.path.write_text(
        TWO_CONFLICTS.replace("second ours", "second ours, edited")
    )
    session.resync()

    assert [r.base_content for r in session.pending] == [
        "first ours",
        "second ours, edited",
    ]
    assert session.decided == []
