"""Cue Reveal: scroll-driven progressive reveal for cue-annotated prose.

WHY: Chapters are written with inline effect cues
(``[cue:vfx|breeze|duration=5]``) that must never leak into the prose a
reader sees, yet must fire their effect at the exact point in the
reading flow where the author placed them. Reveal is driven by a
continuous progress signal (scroll), forward and backward.

HOW: Four-stage pipeline: parse (cue scanner), project (visible↔raw
coordinates and line index), reveal (progress → windowed lines, fired
cues), render (anchor markers on real glyphs, pluggable formatters).
Each stage is independently testable.

RULES:
- The raw text is the single source of truth; every derived index is
  rebuilt wholesale on load
- Session state (fired cues, previous offset, deferred anchor) is an
  explicit object, never hidden in module globals
- Effects are emitted as events; the engine never knows how they render
"""

__version__ = "0.1.0"
