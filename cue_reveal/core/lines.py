"""Line-start index for raw → (line, char) lookups.

WHY: The reader sees the chapter as lines, and the viewport window is
measured in lines. The reveal controller needs to turn a raw offset into
"line L, first C characters" many times per second.

HOW: Split once on ``\\n`` and record each line's starting raw offset
(previous start + previous length + 1 for the break). Lookups bisect the
start list.

RULES:
- Line breaks are already normalized to ``\\n`` by the content source
- starts is non-decreasing; starts[0] == 0
- An empty text has exactly one empty line
- raw offsets are clamped to [0, len(text)]
- char = min(line_length, raw - line_start), so an offset sitting on a
  line break reports the full line
"""

from __future__ import annotations

from bisect import bisect_right


class LineIndex:
    """Precomputed line starts and lengths for one raw text."""

    def __init__(self, text: str) -> None:
        self.text_length = len(text)
        self.lines: list[str] = text.split("\n")
        self.starts: list[int] = []
        offset = 0
        for line in self.lines:
            self.starts.append(offset)
            offset += len(line) + 1

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_text(self, index: int) -> str:
        return self.lines[index]

    def line_length(self, index: int) -> int:
        return len(self.lines[index])

    def raw_to_line_char(self, raw: int) -> tuple[int, int]:
        """Return ``(line_index, char_in_line)`` for a raw offset."""
        raw = max(0, min(raw, self.text_length))
        line = bisect_right(self.starts, raw) - 1
        char = min(self.line_length(line), raw - self.starts[line])
        return line, char

    def line_char_to_raw(self, line: int, char: int) -> int:
        """Inverse of raw_to_line_char, clamped to the line."""
        line = max(0, min(line, self.line_count - 1))
        char = max(0, min(char, self.line_length(line)))
        return self.starts[line] + char
