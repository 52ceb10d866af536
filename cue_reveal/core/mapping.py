"""Visible ↔ raw coordinate projection.

WHY: Reveal progress is a fraction of what the reader can see, but the
text the engine slices, indexes by line, and compares against cue
boundaries is the raw text with markup included. Scaling progress by
the raw length would stall the reveal on every cue and leak partial
markup. The mapper translates between the two coordinate systems.

HOW: Cue spans are merged into maximal covered ranges. Their complement
is a sorted list of NonCueSegments, each carrying the cumulative count
of visible characters before it (visible_prefix). Lookups are binary
searches over visible_prefix (visible → raw) or raw_start (raw → visible).

RULES:
- Segments are sorted, non-overlapping, and exactly the complement of
  the merged cue spans
- Sum of segment lengths == total_visible_length
- No cues → one segment spanning the text; mapping is the identity
- Empty text → one degenerate empty segment
- visible_to_raw clamps: v <= 0 → 0-based start, v >= total → len(text)
"""

from __future__ import annotations

from bisect import bisect_right

from cue_reveal.core.ir import NonCueSegment


def merge_spans(spans: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Merge overlapping or touching ``(start, end)`` spans.

    Empty spans are dropped. Output is sorted by start.
    """
    merged: list[tuple[int, int]] = []
    for start, end in sorted(s for s in spans if s[1] > s[0]):
        if merged and start <= merged[-1][1]:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


def build_segments(text_length: int, spans: list[tuple[int, int]]) -> list[NonCueSegment]:
    """Build the NonCueSegment list for a text of ``text_length`` characters.

    WHY: The complement of the cue spans is what the reader sees; its
    cumulative length is the visible coordinate system.

    HOW: Walk the merged spans, emitting the gap before each one, then
    the tail after the last one. visible_prefix accumulates gap lengths.

    RULES:
    - Spans are clipped to [0, text_length]
    - Zero-length gaps are not emitted
    - At least one segment is always returned
    """
    segments: list[NonCueSegment] = []
    cursor = 0
    visible = 0
    for start, end in merge_spans(spans):
        start = max(0, min(start, text_length))
        end = max(0, min(end, text_length))
        if start > cursor:
            segments.append(NonCueSegment(cursor, start, visible))
            visible += start - cursor
        cursor = max(cursor, end)
    if text_length > cursor:
        segments.append(NonCueSegment(cursor, text_length, visible))
    if not segments:
        # Empty text, or text made only of cues
        segments.append(NonCueSegment(text_length, text_length, 0))
    return segments


class SegmentMapper:
    """Projection between visible indices and raw offsets.

    WHY: The reveal controller turns progress into a visible index and
    needs the raw offset to slice at; hosts that show a percentage or
    restore a bookmark need the inverse.

    HOW: Precomputes segments once per load and keeps parallel lists of
    visible_prefix and raw_start for bisect lookups.

    RULES:
    - visible_to_raw never returns an offset inside a cue span, except
      len(text) when the text ends with a cue
    - raw_to_visible maps offsets inside a cue to the visible index of
      the text that follows it
    """

    def __init__(self, text_length: int, cue_spans: list[tuple[int, int]]) -> None:
        self.text_length = text_length
        self.covered_spans = merge_spans(cue_spans)
        self.segments = build_segments(text_length, cue_spans)
        self._prefixes = [s.visible_prefix for s in self.segments]
        self._raw_starts = [s.raw_start for s in self.segments]
        last = self.segments[-1]
        self.total_visible_length = last.visible_prefix + last.length

    def visible_to_raw(self, visible: int) -> int:
        """Map a visible index to a raw offset.

        RULES:
        - The segment containing ``visible`` is the last one whose
          visible_prefix <= visible
        - raw = segment.raw_start + (visible - visible_prefix), clamped to
          the segment
        - visible >= total_visible_length → text end
        """
        if visible >= self.total_visible_length:
            return self.text_length
        if visible <= 0:
            return self.segments[0].raw_start
        idx = bisect_right(self._prefixes, visible) - 1
        seg = self.segments[idx]
        raw = seg.raw_start + (visible - seg.visible_prefix)
        return max(seg.raw_start, min(raw, seg.raw_end))

    def raw_to_visible(self, raw: int) -> int:
        """Map a raw offset to the number of visible characters before it."""
        if raw <= 0:
            return 0
        if raw >= self.text_length:
            return self.total_visible_length
        idx = bisect_right(self._raw_starts, raw) - 1
        if idx < 0:
            # Raw offset inside a leading cue
            return 0
        seg = self.segments[idx]
        return seg.visible_prefix + min(raw - seg.raw_start, seg.length)
