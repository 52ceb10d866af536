"""Reveal controller: progress → windowed line reveal.

WHY: Scroll position arrives as a fraction at animation-frame cadence,
forward and backward. The host needs to know, for every sample, which
lines to draw and how many characters of each are revealed. Because the
answer is a pure function of progress, scrolling back simply retracts
the reveal with no extra bookkeeping.

HOW: clamp → scale by the visible length → project to a raw offset with
the SegmentMapper → locate (line, char) with the LineIndex → build a
window of the last ``window_lines`` lines ending at the target line.

RULES:
- progress is clamped to [0, 1]; NaN counts as 0
- target_visible = floor(progress * total_visible_length)
- Lines before the target line are fully revealed, the target line is
  revealed up to target_char
- start_line = max(0, target_line - window_lines + 1)
- No I/O, no forward-only state; the only memory is a one-entry cache
  keyed by target_raw
"""

from __future__ import annotations

import math

from cue_reveal.config import REVEAL_WINDOW_LINES
from cue_reveal.core.ir import RevealState, VisibleLine
from cue_reveal.core.lines import LineIndex
from cue_reveal.core.mapping import SegmentMapper


def clamp_progress(progress: float) -> float:
    """Clamp a progress value to [0, 1]; NaN becomes 0."""
    if math.isnan(progress):
        return 0.0
    return max(0.0, min(1.0, float(progress)))


class RevealController:
    """Computes RevealState snapshots for one loaded text."""

    def __init__(
        self,
        mapper: SegmentMapper,
        line_index: LineIndex,
        window_lines: int = REVEAL_WINDOW_LINES,
    ) -> None:
        if window_lines < 1:
            raise ValueError("window_lines must be at least 1, got {}".format(window_lines))
        self.mapper = mapper
        self.line_index = line_index
        self.window_lines = window_lines
        self._cache_key: int | None = None
        self._cache_lines: list[VisibleLine] = []

    @property
    def total_visible_length(self) -> int:
        return self.mapper.total_visible_length

    @property
    def total_raw_length(self) -> int:
        return self.mapper.text_length

    def window(self, target_line: int, target_char: int) -> list[VisibleLine]:
        """Visible lines of the viewport ending at ``target_line``."""
        start_line = max(0, target_line - self.window_lines + 1)
        lines: list[VisibleLine] = []
        for i in range(start_line, target_line + 1):
            text = self.line_index.line_text(i)
            if i < target_line:
                revealed = len(text)
            elif i == target_line:
                revealed = target_char
            else:
                revealed = 0
            lines.append(VisibleLine(line_index=i, text=text, revealed_chars=revealed))
        return lines

    def compute(self, progress: float) -> RevealState:
        """Return the reveal snapshot for ``progress``.

        RULES:
        - Calling twice with the same progress yields equal snapshots
        - Larger progress never yields a smaller target_raw
        """
        clamped = clamp_progress(progress)
        target_visible = math.floor(clamped * self.total_visible_length)
        target_raw = self.mapper.visible_to_raw(target_visible)
        target_line, target_char = self.line_index.raw_to_line_char(target_raw)

        if self._cache_key != target_raw:
            self._cache_lines = self.window(target_line, target_char)
            self._cache_key = target_raw

        return RevealState(
            progress=clamped,
            target_visible=target_visible,
            target_raw=target_raw,
            target_line=target_line,
            target_char=target_char,
            visible_lines=[
                VisibleLine(v.line_index, v.text, v.revealed_chars) for v in self._cache_lines
            ],
            total_visible_length=self.total_visible_length,
            total_raw_length=self.total_raw_length,
        )
