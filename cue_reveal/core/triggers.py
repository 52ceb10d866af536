"""Forward-edge cue trigger tracking.

WHY: A cue's effect should play once, at the moment the reader's reveal
moves past the cue. Not on every frame the cue is revealed, not when
the reader scrolls back, and not again when they scroll forward over
the same spot. Fast scrolls can jump over several cues in one frame and
every one of them still has to fire, in reading order.

HOW: The tracker remembers the previous raw offset and the set of cues
already fired (a TriggerState). Each new raw offset selects the cues
whose raw_end lies in (prev_raw, target_raw] with a bisect over the
sorted raw_end list, drops already-fired ones, and returns them together
with the next TriggerState.

RULES:
- First sample of a session (prev_raw is None) only records the offset
- Fire condition: prev_raw < cue.raw_end <= target_raw and not fired
- Fired cues are returned in ascending raw_start order
- Moving backward never un-fires; the fired set only grows
- rearm_on_retreat=True (opt-in) lets a backward crossing re-arm cues
- advance_triggers() is pure; CueTriggerTracker is a thin convenience
"""

from __future__ import annotations

import logging
from bisect import bisect_right

from cue_reveal.config import REARM_ON_RETREAT
from cue_reveal.core.ir import Cue, TriggerState

logger = logging.getLogger(__name__)


def _crossed(cues: list[Cue], ends: list[int], low: int, high: int) -> list[Cue]:
    """Cues with low < raw_end <= high, in order."""
    return cues[bisect_right(ends, low):bisect_right(ends, high)]


def advance_triggers(
    state: TriggerState,
    cues: list[Cue],
    target_raw: int,
    rearm_on_retreat: bool = False,
    ends: list[int] | None = None,
) -> tuple[TriggerState, list[Cue]]:
    """Advance the trigger state to ``target_raw``.

    Args:
        state: TriggerState from the previous update (or a fresh one).
        cues: All cues of the loaded text, sorted by raw_start.
        target_raw: Raw offset of the current reveal.
        rearm_on_retreat: Re-arm cues crossed backward.
        ends: Precomputed ``[c.raw_end for c in cues]``.

    Returns:
        Tuple of (next TriggerState, cues to fire now).
    """
    if ends is None:
        ends = [c.raw_end for c in cues]

    if state.prev_raw is None:
        return TriggerState(prev_raw=target_raw, fired=state.fired), []

    prev_raw = state.prev_raw
    fired = state.fired
    to_fire: list[Cue] = []

    if target_raw > prev_raw:
        to_fire = [c for c in _crossed(cues, ends, prev_raw, target_raw) if c.raw_start not in fired]
        if to_fire:
            fired = fired | {c.raw_start for c in to_fire}
    elif target_raw < prev_raw and rearm_on_retreat:
        rearmed = {c.raw_start for c in _crossed(cues, ends, target_raw, prev_raw)}
        if rearmed & fired:
            logger.debug("Re-armed %d cue(s) on retreat to %d", len(rearmed & fired), target_raw)
            fired = fired - rearmed

    return TriggerState(prev_raw=target_raw, fired=fired), to_fire


class CueTriggerTracker:
    """Stateful wrapper around advance_triggers() for one loaded text.

    WHY: Callers that own a single session (CLI, tests, simple hosts)
    prefer ``tracker.advance(raw)`` to threading the state by hand.

    HOW: Holds the cue list, its raw_end list, and the current
    TriggerState; reset() starts a new session.
    """

    def __init__(self, cues: list[Cue], rearm_on_retreat: bool = REARM_ON_RETREAT) -> None:
        self.cues = list(cues)
        self.rearm_on_retreat = rearm_on_retreat
        self._ends = [c.raw_end for c in self.cues]
        self.state = TriggerState()

    def advance(self, target_raw: int) -> list[Cue]:
        self.state, fired = advance_triggers(
            self.state,
            self.cues,
            target_raw,
            rearm_on_retreat=self.rearm_on_retreat,
            ends=self._ends,
        )
        for cue in fired:
            logger.debug("Cue fired at %d: %s", target_raw, cue.label)
        return fired

    def reset(self) -> None:
        self.state = TriggerState()

    @property
    def fired(self) -> frozenset[int]:
        return self.state.fired
