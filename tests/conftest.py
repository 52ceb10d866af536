"""Shared test fixtures for the cue_reveal test suite.

WHY: Most modules are exercised against the same few chapters: the
one-cue breeze sentence, a chapter whose cue ends a paragraph, and a
cue-free text. Centralizing them keeps offsets consistent across files.

HOW: Pytest fixtures return the raw texts, a helper that turns a target
visible index into a progress value, and a fresh EffectBus with a
collecting handler.

RULES:
- BREEZE_TEXT offsets: cue at raw 18..45, 31 visible characters
- progress_for(v, total) lands strictly inside the v-th visible step so
  floor(p * total) == v regardless of float rounding
"""

from typing import Callable, List

import pytest

from cue_reveal.core.ir import CueFiredEvent
from cue_reveal.effects import EffectBus

BREEZE_TEXT = "El viento soplaba.[cue:vfx|breeze|duration=5] Todo cambió."
BREEZE_CUE = "[cue:vfx|breeze|duration=5]"

PARAGRAPH_TEXT = "Fin.[cue:vfx|flash]\n\nLuego vino la calma."


@pytest.fixture
def breeze_text() -> str:
    """Single-line chapter with one vfx cue right after a full stop."""
    return BREEZE_TEXT


@pytest.fixture
def paragraph_text() -> str:
    """Chapter whose first paragraph ends with a cue and no letter after it."""
    return PARAGRAPH_TEXT


@pytest.fixture
def plain_chapter() -> str:
    """Cue-free, multi-line chapter."""
    return "uno\ndos\ntres\ncuatro\ncinco\nseis\nsiete"


@pytest.fixture
def progress_for() -> Callable[[int, int], float]:
    """Return a progress value whose visible target is exactly ``visible``."""
    def _progress(visible: int, total: int) -> float:
        return (visible + 0.5) / total
    return _progress


@pytest.fixture
def collecting_bus():
    """An EffectBus plus the list its only handler appends events to."""
    bus = EffectBus()
    events: List[CueFiredEvent] = []
    bus.subscribe(events.append)
    return bus, events
