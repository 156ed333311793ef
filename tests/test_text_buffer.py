import pytest

from url_preview.workflows.text_buffer import AnchorConsumedError, ReadOnlyRegionError, TextBuffer, Workspace


def test_anchor_shifts_on_insert_before_only():
    buffer = TextBuffer("abcdef")
    anchor = buffer.capture_anchor(3)

    buffer.insert(4, "XX")
    assert anchor.position == 3

    buffer.insert(3, "YY")
    assert anchor.position == 3

    buffer.insert(1, "ZZZ")
    assert anchor.position == 6
    assert buffer.text[anchor.position:] == "YYdXXef"


def test_anchor_collapses_on_covering_delete():
    buffer = TextBuffer("0123456789")
    inside = buffer.capture_anchor(5)
    after = buffer.capture_anchor(8)

    buffer.delete(3, 7)

    assert inside.position == 3
    assert after.position == 4
    assert buffer.text == "012789"


def test_anchor_consumed_exactly_once():
    buffer = TextBuffer("abc")
    anchor = buffer.capture_anchor(1)
    assert buffer.live_anchors == 1

    assert anchor.consume() == 1
    assert buffer.live_anchors == 0
    with pytest.raises(AnchorConsumedError):
        anchor.consume()
    anchor.release()


def test_capture_anchor_rejects_out_of_range():
    buffer = TextBuffer("abc")
    with pytest.raises(ValueError):
        buffer.capture_anchor(4)


def test_read_only_span_blocks_user_edits():
    buffer = TextBuffer("head\ntail\n")
    buffer.insert(5, "preview\n", force=True)
    buffer.mark_read_only(5, 13)

    with pytest.raises(ReadOnlyRegionError):
        buffer.insert(7, "x")
    with pytest.raises(ReadOnlyRegionError):
        buffer.delete(4, 6)

    buffer.insert(5, ">")
    buffer.insert(len(buffer), "end")
    assert buffer.read_only_spans() == [(6, 14)]
    assert buffer.text[6:14] == "preview\n"
    assert buffer.is_read_only(6)
    assert not buffer.is_read_only(14)


def test_line_navigation():
    buffer = TextBuffer("one\ntwo")
    assert buffer.line_end(1) == 3
    assert buffer.next_line_start(1) == 4
    assert buffer.next_line_start(5) == 7


def test_run_hooks_receives_buffer():
    buffer = TextBuffer("x", name="notes")
    seen = []
    buffer.run_hooks([lambda buf: seen.append(buf.name)])
    assert seen == ["notes"]


def test_workspace_get_or_create():
    workspace = Workspace()
    first = workspace.get_or_create("*previews*")
    assert workspace.get_or_create("*previews*") is first
    assert workspace.get("missing") is None
    source = workspace.add(TextBuffer("x", name="src"))
    assert workspace.names() == ["*previews*", "src"]
    assert workspace.get("src") is source
