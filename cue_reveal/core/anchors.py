"""Inline anchor renderer: cue-free line rendering with glyph markers.

WHY: The reader must never see cue markup, yet should be able to hover
a small marker to learn which effects sit at a point in the text. A
marker floating in whitespace looks broken, so every marker is bound to
a real letter, the first one after the cues. When a line ends before
any letter appears (cue at end of paragraph, blank line after it), the
marker moves to the first letter of the next line instead.

HOW: Each revealed line slice is processed on its own:
  1. hide a trailing, still-unterminated ``[cue:`` opener
  2. anchor a group carried over from the previous line, if any
  3. re-parse complete cues, group them, and anchor each group on the
     next letter, emitting sanitized text in between
  4. emit the sanitized tail
The result is a list of TextFragment / AnchorMarker nodes plus the
group to carry into the next line (at most one).

RULES:
- "Letter" means a Unicode letter (str.isalpha); digits, spaces and
  punctuation are never anchors
- Letters inside cue markup are never anchors
- Groups with no letter before the next group share that group's anchor
- A group with no letter before the end of the line becomes the carry
  and processing of that line stops
- A carried group waits, unchanged, through lines with no letters
- Sanitization: drop ``]``, collapse runs of spaces/tabs, drop
  whitespace before ``.,;:!?…``
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from cue_reveal.config import ANCHOR_PUNCTUATION, CUE_CLOSER, CUE_OPENER, HYPHENATE
from cue_reveal.core.hyphenation import hyphenate
from cue_reveal.core.ir import (
    AnchorMarker,
    Cue,
    CueGroup,
    RenderedLine,
    TextFragment,
    VisibleLine,
)
from cue_reveal.core.lines import LineIndex
from cue_reveal.core.parser import group_consecutive_cues, parse_cues

_HSPACE_RUN_RE = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([{}])".format(re.escape(ANCHOR_PUNCTUATION)))


def sanitize(text: str) -> str:
    """Clean a text fragment for display (see module RULES)."""
    text = text.replace(CUE_CLOSER, "")
    text = _HSPACE_RUN_RE.sub(" ", text)
    return _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)


def strip_partial_cue(text: str) -> str:
    """Cut a trailing ``[cue:`` opener that has no ``]`` after it."""
    last_open = text.rfind(CUE_OPENER)
    if last_open > text.rfind(CUE_CLOSER):
        return text[:last_open]
    return text


def _find_letter(text: str, start: int, stop: int) -> Optional[int]:
    for i in range(start, stop):
        if text[i].isalpha():
            return i
    return None


def _has_visible_letter(text: str) -> bool:
    """True if a letter appears outside cue markup in a full line."""
    text = strip_partial_cue(text)
    pos = 0
    for cue in parse_cues(text):
        if _find_letter(text, pos, cue.raw_start) is not None:
            return True
        pos = cue.raw_end
    return _find_letter(text, pos, len(text)) is not None


def _next_significant(text: str, start: int) -> str:
    """First character at or after ``start`` that is not ``]`` or whitespace."""
    for ch in text[start:]:
        if ch != CUE_CLOSER and not ch.isspace():
            return ch
    return ""


@dataclass
class LineRender:
    """Nodes for one line plus the group deferred to the next line."""

    nodes: List[Any] = field(default_factory=list)
    carry: Optional[CueGroup] = None


def _emit(nodes: list, text: str) -> None:
    if not text:
        return
    if nodes and isinstance(nodes[-1], TextFragment):
        nodes[-1] = TextFragment(nodes[-1].text + text)
    else:
        nodes.append(TextFragment(text))


def render_line(text: str, carry: Optional[CueGroup] = None) -> LineRender:
    """Render one revealed line slice into text and anchor nodes.

    Args:
        text: The revealed part of a single line (raw, markup included).
        carry: Group deferred from the previous line, or None.

    Returns:
        LineRender with the nodes to display and the carry for the next
        line (the incoming carry if it could not be placed, a new group
        if one ran out of letters, otherwise None).
    """
    processed = strip_partial_cue(text)
    groups = group_consecutive_cues(parse_cues(processed), processed)
    nodes: list = []
    cursor = 0
    pending: List[Cue] = []
    pending_start: Optional[int] = None

    if carry is not None:
        while cursor < len(processed) and processed[cursor] == CUE_CLOSER:
            cursor += 1
        stop = groups[0].start if groups else len(processed)
        idx = _find_letter(processed, cursor, stop)
        if idx is not None:
            _emit(nodes, sanitize(processed[cursor:idx]))
            nodes.append(AnchorMarker(glyph=processed[idx], cues=list(carry.cues)))
            cursor = idx + 1
        elif groups:
            # No letter before the first cue: share its anchor
            pending = list(carry.cues)
            pending_start = carry.start
        else:
            _emit(nodes, sanitize(processed[cursor:]))
            return LineRender(nodes=nodes, carry=carry)

    for i, group in enumerate(groups):
        pre = sanitize(processed[cursor:group.start])
        following = _next_significant(processed, group.end)
        if pre and pre[-1].isspace() and following and following in ANCHOR_PUNCTUATION:
            pre = pre.rstrip()
        _emit(nodes, pre)

        cursor = group.end
        if pre and pre[-1].isspace() and processed.startswith(" ", cursor):
            cursor += 1
        while cursor < len(processed) and processed[cursor] == CUE_CLOSER:
            cursor += 1

        cues = pending + group.cues
        start = pending_start if pending else group.start
        pending = []
        pending_start = None

        stop = groups[i + 1].start if i + 1 < len(groups) else len(processed)
        idx = _find_letter(processed, cursor, stop)
        if idx is None:
            if i + 1 < len(groups):
                pending = cues
                pending_start = start
                continue
            _emit(nodes, sanitize(processed[cursor:]))
            return LineRender(nodes=nodes, carry=CueGroup(cues=cues, start=start, end=group.end))

        _emit(nodes, sanitize(processed[cursor:idx]))
        nodes.append(AnchorMarker(glyph=processed[idx], cues=cues))
        cursor = idx + 1

    _emit(nodes, sanitize(processed[cursor:]))
    return LineRender(nodes=nodes, carry=None)


class AnchorRenderer:
    """Renders a viewport window of lines, threading the carry between them.

    WHY: The carry is a property of the whole window, not of one line. A
    marker deferred from a line that has scrolled out of the window still
    belongs on the first letter of the next line, so the window's first
    line has to receive whatever the lines above it left over.

    HOW: carry_into() replays the lines above the window, starting from
    the nearest one that contains a letter (any earlier carry is always
    resolved on such a line), discarding their nodes. render_window()
    then renders the visible lines in order and, when ``hyphenate`` is
    on, passes every TextFragment through hyphenate(). Anchor glyphs are
    left alone.

    RULES:
    - render_window() never mutates its inputs
    - Hyphenation happens after anchoring, so it never moves an anchor
    - The returned carry is the group still waiting after the last
      visible line, or None
    """

    def __init__(self, line_index: LineIndex, hyphenate: bool = HYPHENATE) -> None:
        self.line_index = line_index
        self.hyphenate = hyphenate

    def carry_into(self, start_line: int) -> Optional[CueGroup]:
        """Carry that the window's first line receives from the lines above."""
        if start_line <= 0:
            return None
        first = start_line - 1
        while first > 0 and not _has_visible_letter(self.line_index.line_text(first)):
            first -= 1
        carry: Optional[CueGroup] = None
        for i in range(first, start_line):
            carry = render_line(self.line_index.line_text(i), carry).carry
        return carry

    def render_window(
        self,
        visible_lines: List[VisibleLine],
        target_line: int,
    ) -> tuple[List[RenderedLine], Optional[CueGroup]]:
        if not visible_lines:
            return [], None
        carry = self.carry_into(visible_lines[0].line_index)
        rendered: List[RenderedLine] = []
        for line in visible_lines:
            result = render_line(line.revealed_text, carry)
            carry = result.carry
            nodes = result.nodes
            if self.hyphenate:
                nodes = [
                    TextFragment(hyphenate(n.text)) if isinstance(n, TextFragment) else n
                    for n in nodes
                ]
            rendered.append(RenderedLine(
                line_index=line.line_index,
                nodes=nodes,
                is_reveal_line=line.line_index == target_line,
            ))
        return rendered, carry


class HoverTracker:
    """Host-side hover contract for anchor markers.

    WHY: The tooltip lives in the host UI. The engine only promises that
    entering or moving over a marker reports its full cue metadata and
    leaving clears it.

    HOW: enter()/move() remember the active marker and call
    ``on_cue_hover(cues, pointer)``; leave() calls ``on_cue_leave()``
    once if a marker was active.
    """

    def __init__(
        self,
        on_cue_hover: Optional[Callable[[List[Cue], Any], None]] = None,
        on_cue_leave: Optional[Callable[[], None]] = None,
    ) -> None:
        self.on_cue_hover = on_cue_hover
        self.on_cue_leave = on_cue_leave
        self.active: Optional[AnchorMarker] = None

    def enter(self, marker: AnchorMarker, pointer: Any) -> None:
        self.active = marker
        if self.on_cue_hover is not None:
            self.on_cue_hover(marker.cues, pointer)

    move = enter

    def leave(self) -> None:
        if self.active is None:
            return
        self.active = None
        if self.on_cue_leave is not None:
            self.on_cue_leave()
