"""Unit tests for forward-edge cue triggering.

WHY: Effects are the visible payoff of a cue. Firing twice, firing on
a backward scroll, or dropping a cue during a fast scroll are all
regressions a reader notices immediately.

HOW: Drive advance_triggers() and CueTriggerTracker with raw offsets
chosen around the cue boundaries of TWO_CUES:
  a[cue:vfx|one]b[cue:vfx|two]c
  cue "one" spans 1..14, cue "two" spans 15..28, text length 29

RULES:
- The first sample of a session never fires
- A cue fires when its raw_end is crossed forward, exactly once
"""

from __future__ import annotations

import logging

from cue_reveal.core.ir import TriggerState
from cue_reveal.core.parser import parse_cues
from cue_reveal.core.triggers import CueTriggerTracker, advance_triggers

TWO_CUES = "a[cue:vfx|one]b[cue:vfx|two]c"


def _effects(cues):
    return [c.effect for c in cues]


class TestAdvanceTriggers:
    """advance_triggers() is a pure step function."""

    def test_offsets(self):
        cues = parse_cues(TWO_CUES)
        assert [(c.raw_start, c.raw_end) for c in cues] == [(1, 14), (15, 28)]

    def test_first_sample_only_records(self):
        cues = parse_cues(TWO_CUES)
        state, fired = advance_triggers(TriggerState(), cues, 29)
        assert fired == []
        assert state.prev_raw == 29
        assert state.fired == frozenset()

    def test_crossing_fires(self):
        cues = parse_cues(TWO_CUES)
        state, _ = advance_triggers(TriggerState(), cues, 0)
        state, fired = advance_triggers(state, cues, 14)
        assert _effects(fired) == ["one"]
        assert state.fired == frozenset({1})

    def test_not_yet_crossed(self):
        cues = parse_cues(TWO_CUES)
        state, _ = advance_triggers(TriggerState(), cues, 0)
        _, fired = advance_triggers(state, cues, 13)
        assert fired == []

    def test_fast_scroll_fires_all_in_order(self):
        cues = parse_cues(TWO_CUES)
        state, _ = advance_triggers(TriggerState(), cues, 0)
        _, fired = advance_triggers(state, cues, 29)
        assert _effects(fired) == ["one", "two"]

    def test_input_state_not_modified(self):
        cues = parse_cues(TWO_CUES)
        start = TriggerState(prev_raw=0)
        advance_triggers(start, cues, 29)
        assert start == TriggerState(prev_raw=0)

    def test_same_offset_fires_nothing(self):
        cues = parse_cues(TWO_CUES)
        state = TriggerState(prev_raw=14, fired=frozenset({1}))
        next_state, fired = advance_triggers(state, cues, 14)
        assert fired == []
        assert next_state == state

    def test_no_cues(self):
        state, fired = advance_triggers(TriggerState(prev_raw=0), [], 10)
        assert fired == []
        assert state.prev_raw == 10


class TestRefirePolicy:
    def test_at_most_once_by_default(self):
        cues = parse_cues(TWO_CUES)
        state = TriggerState(prev_raw=0)
        state, fired = advance_triggers(state, cues, 29)
        assert len(fired) == 2
        state, fired = advance_triggers(state, cues, 0)
        assert fired == []
        assert state.fired == frozenset({1, 15})
        _, fired = advance_triggers(state, cues, 29)
        assert fired == []

    def test_rearm_on_retreat(self):
        cues = parse_cues(TWO_CUES)
        state = TriggerState(prev_raw=0)
        state, _ = advance_triggers(state, cues, 29, rearm_on_retreat=True)
        # back past "two" only
        state, fired = advance_triggers(state, cues, 20, rearm_on_retreat=True)
        assert fired == []
        assert state.fired == frozenset({1})
        _, fired = advance_triggers(state, cues, 29, rearm_on_retreat=True)
        assert _effects(fired) == ["two"]

    def test_rearm_logs(self, caplog):
        cues = parse_cues(TWO_CUES)
        state = TriggerState(prev_raw=29, fired=frozenset({1, 15}))
        with caplog.at_level(logging.DEBUG, logger="cue_reveal.core.triggers"):
            advance_triggers(state, cues, 0, rearm_on_retreat=True)
        assert "Re-armed 2 cue(s)" in caplog.text


class TestCueTriggerTracker:
    def test_tracker_threads_state(self):
        tracker = CueTriggerTracker(parse_cues(TWO_CUES), rearm_on_retreat=False)
        assert tracker.advance(0) == []
        assert _effects(tracker.advance(16)) == ["one"]
        assert _effects(tracker.advance(29)) == ["two"]
        assert tracker.fired == frozenset({1, 15})

    def test_reset_starts_new_session(self):
        tracker = CueTriggerTracker(parse_cues(TWO_CUES), rearm_on_retreat=False)
        tracker.advance(0)
        tracker.advance(29)
        tracker.reset()
        assert tracker.fired == frozenset()
        assert tracker.advance(0) == []
        assert len(tracker.advance(29)) == 2

    def test_leading_cue_never_fires(self):
        tracker = CueTriggerTracker(parse_cues("[cue:vfx|flash]Hola"), rearm_on_retreat=False)
        # The first reveal offset already sits past the leading cue
        assert tracker.advance(15) == []
        assert tracker.advance(19) == []
