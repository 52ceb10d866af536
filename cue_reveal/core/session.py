"""Reveal sessions: load content, feed progress, collect everything.

WHY: Hosts want two calls, ``load(text)`` and ``update(progress)``,
and a single result object per update holding the reveal snapshot, the
cues that fired, and the rendered lines. Keeping the cross-update
memory in an explicit SessionState (instead of hidden mutable
references) lets independent sessions run side by side and makes every
update reproducible in tests.

HOW: RevealEngine owns the immutable derived indices for one text (cue
list, SegmentMapper, LineIndex, RevealController, AnchorRenderer) and
exposes a pure ``update(state, progress) -> (state, RevealUpdate)``.
RevealSession wraps an engine plus its current state, rebuilds both on
load(), and publishes fired cues to an EffectBus.

RULES:
- Each update runs reveal → triggers → anchors to completion, in order
- load() replaces the engine and resets state before any new update
- The first update of a session never fires cues
- normalize_content() is the content-source step; load() expects text
  that has already been normalized
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from cue_reveal.config import HYPHENATE, REARM_ON_RETREAT, REVEAL_WINDOW_LINES
from cue_reveal.core.anchors import AnchorRenderer
from cue_reveal.core.ir import (
    Cue,
    CueFiredEvent,
    CueGroup,
    RenderedLine,
    RevealState,
    TriggerState,
)
from cue_reveal.core.lines import LineIndex
from cue_reveal.core.mapping import SegmentMapper
from cue_reveal.core.parser import parse_cues
from cue_reveal.core.reveal import RevealController
from cue_reveal.core.triggers import advance_triggers

if TYPE_CHECKING:
    from cue_reveal.effects.bus import EffectBus

logger = logging.getLogger(__name__)


def normalize_content(text: Optional[str]) -> str:
    """Normalize chapter text as delivered by storage.

    WHY: Chapters stored as JSON strings often carry literal ``\\n``
    escape sequences and Windows line endings. The engine counts
    characters, so every line break must be exactly one ``\\n``.

    RULES:
    - None → ""
    - ``\\r\\n`` and lone ``\\r`` → ``\\n``
    - Literal backslash-n sequences → ``\\n``
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.replace("\\n", "\n")


@dataclass
class SessionState:
    """Everything a session remembers between updates.

    Only ``triggers`` feeds the next update. ``deferred`` and ``last``
    record the previous update for hosts to inspect. The renderer
    recomputes the carry from the text on every update.
    """

    triggers: TriggerState = field(default_factory=TriggerState)
    deferred: Optional[CueGroup] = None
    last: Optional[RevealState] = None


@dataclass
class RevealUpdate:
    """Result of one progress update."""

    state: RevealState
    fired: List[CueFiredEvent]
    lines: List[RenderedLine]
    carry: Optional[CueGroup] = None

    @property
    def total_visible_length(self) -> int:
        return self.state.total_visible_length

    @property
    def total_raw_length(self) -> int:
        return self.state.total_raw_length

    @property
    def text(self) -> str:
        """Cue-free text of the rendered window, one line per line."""
        return "\n".join(line.text for line in self.lines)


class RevealEngine:
    """Derived indices for one loaded text plus the pure update step."""

    def __init__(
        self,
        raw_text: str = "",
        window_lines: int = REVEAL_WINDOW_LINES,
        rearm_on_retreat: bool = REARM_ON_RETREAT,
        hyphenate: bool = HYPHENATE,
    ) -> None:
        self.raw_text = raw_text
        self.rearm_on_retreat = rearm_on_retreat
        self.cues: List[Cue] = parse_cues(raw_text)
        self.mapper = SegmentMapper(len(raw_text), [(c.raw_start, c.raw_end) for c in self.cues])
        self.line_index = LineIndex(raw_text)
        self.controller = RevealController(self.mapper, self.line_index, window_lines)
        self.renderer = AnchorRenderer(self.line_index, hyphenate=hyphenate)
        self._ends = [c.raw_end for c in self.cues]

    @property
    def total_visible_length(self) -> int:
        return self.mapper.total_visible_length

    @property
    def total_raw_length(self) -> int:
        return len(self.raw_text)

    @property
    def window_lines(self) -> int:
        return self.controller.window_lines

    def update(self, state: SessionState, progress: float) -> tuple[SessionState, RevealUpdate]:
        """Advance ``state`` to ``progress``.

        Returns:
            Tuple of (next SessionState, RevealUpdate). ``state`` itself
            is not modified.
        """
        reveal = self.controller.compute(progress)
        triggers, fired_cues = advance_triggers(
            state.triggers,
            self.cues,
            reveal.target_raw,
            rearm_on_retreat=self.rearm_on_retreat,
            ends=self._ends,
        )
        lines, carry = self.renderer.render_window(reveal.visible_lines, reveal.target_line)
        fired = [CueFiredEvent(cue=c, raw_offset=reveal.target_raw, progress=reveal.progress) for c in fired_cues]
        next_state = SessionState(triggers=triggers, deferred=carry, last=reveal)
        return next_state, RevealUpdate(state=reveal, fired=fired, lines=lines, carry=carry)


class RevealSession:
    """One reader's session over one chapter.

    WHY: Most hosts own exactly one chapter at a time and want a
    load/update object rather than threading SessionState by hand.

    HOW: Holds a RevealEngine and the current SessionState; update()
    delegates to the engine, stores the new state, and publishes fired
    cues to the bus (fire-and-forget).

    RULES:
    - load() is atomic: engine and state are swapped together
    - last_update is the RevealUpdate of the most recent update(), or None
    """

    def __init__(
        self,
        raw_text: str = "",
        window_lines: int = REVEAL_WINDOW_LINES,
        rearm_on_retreat: bool = REARM_ON_RETREAT,
        bus: Optional[EffectBus] = None,
        hyphenate: bool = HYPHENATE,
    ) -> None:
        self.window_lines = window_lines
        self.rearm_on_retreat = rearm_on_retreat
        self.hyphenate = hyphenate
        self.bus = bus
        self.engine = RevealEngine("", window_lines, rearm_on_retreat, hyphenate)
        self.state = SessionState()
        self.last_update: Optional[RevealUpdate] = None
        self.load(raw_text)

    def load(self, raw_text: str) -> None:
        """Rebuild every derived index and clear all session state."""
        engine = RevealEngine(raw_text, self.window_lines, self.rearm_on_retreat, self.hyphenate)
        self.engine, self.state, self.last_update = engine, SessionState(), None
        logger.debug(
            "Loaded content: %d raw chars, %d visible chars, %d cues, %d lines",
            engine.total_raw_length,
            engine.total_visible_length,
            len(engine.cues),
            engine.line_index.line_count,
        )

    def update(self, progress: float) -> RevealUpdate:
        self.state, update = self.engine.update(self.state, progress)
        self.last_update = update
        for event in update.fired:
            logger.debug("Cue fired at %d: %s", event.raw_offset, event.cue.label)
        if self.bus is not None:
            for event in update.fired:
                self.bus.publish(event)
        return update

    @property
    def cues(self) -> List[Cue]:
        return self.engine.cues

    @property
    def fired(self) -> frozenset:
        return self.state.triggers.fired

    @property
    def total_visible_length(self) -> int:
        return self.engine.total_visible_length

    @property
    def total_raw_length(self) -> int:
        return self.engine.total_raw_length
