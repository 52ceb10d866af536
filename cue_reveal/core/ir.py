"""Intermediate representation dataclasses for the reveal engine.

WHY: The parser, coordinate mapper, reveal controller, trigger tracker
and anchor renderer all talk about the same handful of things: cues,
groups of cues, text segments, lines, reveal snapshots, render nodes.
A single, well-typed module for them decouples the stages from each
other and gives formatters and the HTTP layer one contract to consume.

HOW: Plain dataclasses grouped by stage:
  Cue, CueGroup: parsed markup
  NonCueSegment: one maximal run of visible text in raw coordinates
  VisibleLine, RevealState: output of the reveal controller
  TriggerState: cross-update memory of the trigger tracker
  TextFragment, AnchorMarker, RenderedLine: output of the anchor renderer

RULES:
- All offsets are Python string indices into the raw text (code points)
- raw_end is always exclusive
- A cue's identity within a session is its raw_start
- RevealState is derived and never persisted
- TriggerState is immutable; the tracker returns a new one per update
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cue_reveal.config import ANCHOR_GLYPH, GROUP_TITLE_SEPARATOR, SOFT_HYPHEN


@dataclass
class Cue:
    """One parsed ``[cue:TYPE|EFFECT|k=v|...]`` occurrence.

    RULES:
    - type: canonical lower-cased type (``fx`` already mapped to ``vfx``);
      unknown types pass through unchanged
    - effect: trimmed EFFECT field, never empty
    - params: ordered mapping of trimmed keys to trimmed string values
    - raw_start / raw_end: span of the markup in the text it was parsed from
    - original_text: the exact markup, ``text[raw_start:raw_end]``
    """

    type: str
    effect: str
    params: dict[str, str]
    raw_start: int
    raw_end: int
    original_text: str

    @property
    def label(self) -> str:
        """Short hover label, e.g. ``"VFX: breeze"``."""
        return "{}: {}".format(self.type.upper(), self.effect)

    def payload(self) -> dict:
        """The ``fire(cue)`` payload handed to effect renderers."""
        return {"type": self.type, "effect": self.effect, "params": dict(self.params)}

    def describe(self) -> dict:
        """Full hover metadata, including the original markup."""
        return {
            "type": self.type,
            "effect": self.effect,
            "params": dict(self.params),
            "original_text": self.original_text,
        }


@dataclass
class CueGroup:
    """A maximal run of cues separated only by whitespace.

    start/end span the whole run (first cue's raw_start to last cue's
    raw_end) in the coordinates of the text the group was built from.
    """

    cues: list[Cue]
    start: int
    end: int

    @property
    def title(self) -> str:
        return GROUP_TITLE_SEPARATOR.join(c.label for c in self.cues)


@dataclass
class NonCueSegment:
    """A maximal raw range not covered by any merged cue span.

    visible_prefix is the number of visible characters in all earlier
    segments, i.e. the visible index of this segment's first character.
    """

    raw_start: int
    raw_end: int
    visible_prefix: int

    @property
    def length(self) -> int:
        return self.raw_end - self.raw_start


@dataclass
class VisibleLine:
    """One line of the viewport window and how much of it is revealed."""

    line_index: int
    text: str
    revealed_chars: int

    @property
    def revealed_text(self) -> str:
        return self.text[:self.revealed_chars]


@dataclass
class RevealState:
    """Snapshot produced by the reveal controller for one progress value.

    RULES:
    - progress is the clamped value actually used
    - target_visible = floor(progress * total_visible_length)
    - target_raw is the raw offset target_visible projects to
    - visible_lines ends at target_line and holds at most the window size
    """

    progress: float
    target_visible: int
    target_raw: int
    target_line: int
    target_char: int
    visible_lines: list[VisibleLine]
    total_visible_length: int
    total_raw_length: int


@dataclass(frozen=True)
class TriggerState:
    """Cross-update memory of the cue trigger tracker.

    prev_raw is None until the first sample of a session has been seen.
    fired holds the raw_start of every cue already dispatched.
    """

    prev_raw: int | None = None
    fired: frozenset[int] = frozenset()


@dataclass
class TextFragment:
    """Plain, sanitized, cue-free text to display.

    May contain soft hyphens (U+00AD) when hyphenation is enabled.
    """

    text: str


@dataclass
class AnchorMarker:
    """A single glyph carrying a hover marker for a group of cues."""

    glyph: str
    cues: list[Cue]
    marker: str = ANCHOR_GLYPH

    @property
    def title(self) -> str:
        return GROUP_TITLE_SEPARATOR.join(c.label for c in self.cues)

    def describe(self) -> list[dict]:
        return [c.describe() for c in self.cues]


@dataclass
class RenderedLine:
    """Render nodes for one viewport line.

    is_reveal_line marks the line currently being revealed (the host
    draws its caret there).
    """

    line_index: int
    nodes: list[TextFragment | AnchorMarker] = field(default_factory=list)
    is_reveal_line: bool = False

    @property
    def text(self) -> str:
        """Cue-free text of the line, markers reduced to their glyph.

        Soft hyphens are removed, so this is the text as read.
        """
        return "".join(
            n.text if isinstance(n, TextFragment) else n.glyph for n in self.nodes
        ).replace(SOFT_HYPHEN, "")

    @property
    def anchors(self) -> list[AnchorMarker]:
        return [n for n in self.nodes if isinstance(n, AnchorMarker)]


@dataclass
class CueFiredEvent:
    """Message emitted when a cue's boundary is crossed forward.

    raw_offset is the reveal's raw offset in the update that fired the
    cue; progress is the clamped progress of that update.
    """

    cue: Cue
    raw_offset: int
    progress: float

    def payload(self) -> dict:
        return self.cue.payload()
