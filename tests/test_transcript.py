import pytest

from serialterm.config_term import MAX_LINES
from serialterm.transcript import Category, TranscriptBuffer, TranscriptLine, classify_inbound


def fill(buf, n, start=1):
    for i in range(start, start + n):
        buf.append(f"line {i}", Category.INBOUND)


def test_length_never_exceeds_cap():
    buf = TranscriptBuffer(max_lines=5)
    for i in range(20):
        buf.append(str(i), Category.INBOUND)
        assert len(buf) <= 5


def test_1005_appends_keep_lines_6_to_1005():
    buf = TranscriptBuffer(max_lines=MAX_LINES)
    fill(buf, 1005)
    assert MAX_LINES == 1000
    assert len(buf) == 1000
    texts = [line.text for line in buf]
    assert texts[0] == "line 6"
    assert texts[-1] == "line 1005"


def test_eviction_removes_oldest_and_decrements_scroll():
    buf = TranscriptBuffer(max_lines=10)
    fill(buf, 10)
    buf.scroll_up(5)
    assert buf.scroll_offset == 5

    buf.append("line 11", Category.INBOUND)

    assert [l.text for l in buf][0] == "line 2"
    assert buf.scroll_offset == 4


def test_eviction_at_zero_offset_stays_zero():
    buf = TranscriptBuffer(max_lines=3)
    fill(buf, 4)
    assert buf.scroll_offset == 0


def test_new_lines_do_not_reset_scroll_before_cap():
    buf = TranscriptBuffer(max_lines=100)
    fill(buf, 20)
    buf.scroll_up()
    fill(buf, 5, start=21)
    assert buf.scroll_offset == 3


def test_visible_window_follows_tail():
    buf = TranscriptBuffer()
    fill(buf, 10)
    window = buf.visible_window(4)
    assert [l.text for l in window] == ["line 7", "line 8", "line 9", "line 10"]


def test_visible_window_with_offset_returns_from_start_to_end():
    buf = TranscriptBuffer()
    fill(buf, 10)
    window = buf.visible_window(4, scroll_offset=3)
    # start = 10 - (4 + 3) = 3; caller draws the first 4
    assert [l.text for l in window][:4] == ["line 4", "line 5", "line 6", "line 7"]
    assert len(window) == 7


def test_visible_window_on_short_buffer():
    buf = TranscriptBuffer()
    fill(buf, 2)
    assert len(buf.visible_window(10, scroll_offset=5)) == 2


def test_scroll_up_caps_at_len_minus_one():
    buf = TranscriptBuffer()
    fill(buf, 4)
    buf.scroll_up()
    buf.scroll_up()
    assert buf.scroll_offset == 3


def test_scroll_on_empty_buffer_stays_zero():
    buf = TranscriptBuffer()
    buf.scroll_up()
    assert buf.scroll_offset == 0


def test_scroll_down_floors_at_zero():
    buf = TranscriptBuffer()
    fill(buf, 10)
    buf.scroll_up()
    buf.scroll_down()
    buf.scroll_down()
    assert buf.scroll_offset == 0


def test_classify_inbound():
    assert classify_inbound("ERROR: sensor timeout") is Category.INBOUND_ERROR
    assert classify_inbound("temp=21.5") is Category.INBOUND
    assert classify_inbound("error lowercase") is Category.INBOUND


def test_transcript_line_is_immutable():
    line = TranscriptLine("hello", Category.OUTBOUND)
    assert line.timestamp.tzinfo is not None
    with pytest.raises(AttributeError):
        line.text = "changed"


def test_zero_capacity_rejected():
    with pytest.raises(ValueError):
        TranscriptBuffer(max_lines=0)
