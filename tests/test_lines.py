"""Unit tests for LineIndex.

RULES:
- Offsets sitting on a line break report the full preceding line
"""

from __future__ import annotations

import pytest

from cue_reveal.core.lines import LineIndex


class TestLineIndex:
    def test_starts(self):
        index = LineIndex("ab\ncde\n\nf")
        assert index.starts == [0, 3, 7, 8]
        assert index.line_count == 4
        assert index.line_text(1) == "cde"

    def test_empty_text_has_one_line(self):
        index = LineIndex("")
        assert index.line_count == 1
        assert index.raw_to_line_char(0) == (0, 0)

    def test_trailing_newline_adds_empty_line(self):
        index = LineIndex("abc\n")
        assert index.line_count == 2
        assert index.raw_to_line_char(4) == (1, 0)

    @pytest.mark.parametrize("raw, expected", [
        (0, (0, 0)),
        (2, (0, 2)),
        (3, (1, 0)),
        (6, (1, 3)),
        (7, (2, 0)),
        (9, (3, 1)),
    ])
    def test_raw_to_line_char(self, raw, expected):
        assert LineIndex("ab\ncde\n\nf").raw_to_line_char(raw) == expected

    def test_raw_offsets_clamped(self):
        index = LineIndex("ab\ncd")
        assert index.raw_to_line_char(-3) == (0, 0)
        assert index.raw_to_line_char(99) == (1, 2)

    def test_line_char_to_raw_inverse(self):
        index = LineIndex("ab\ncde\n\nf")
        for raw in range(10):
            line, char = index.raw_to_line_char(raw)
            assert index.line_char_to_raw(line, char) == raw

    def test_line_char_to_raw_clamps(self):
        index = LineIndex("ab\ncde")
        assert index.line_char_to_raw(0, 10) == 2
        assert index.line_char_to_raw(7, 1) == 4
