"""Configuration constants, cue grammar tables, and .env loading.

WHY: Centralizes every tunable value (viewport window size, refire
policy, cue type aliases, anchor punctuation, hyphenation, HTTP store
limits) so both humans and coding agents can change behaviour without
digging through engine logic.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level dicts, sets, and strings. Numeric and boolean overrides are
read from environment variables through small helpers that fail loudly
on malformed values.

RULES:
- CUE_TYPE_ALIASES maps lower-cased aliases to canonical cue types
- Unknown cue types are NOT listed anywhere; they pass through unchanged
- REVEAL_WINDOW_LINES must be >= 1
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read an integer from the environment, raising ValueError on junk."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}".format(name, raw)
        ) from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Cue grammar
# ---------------------------------------------------------------------------

CUE_OPENER = "[cue:"
"""Literal prefix that starts every cue. Matched case-sensitively."""

CUE_CLOSER = "]"
CUE_FIELD_SEPARATOR = "|"
CUE_PARAM_SEPARATOR = "="

KNOWN_CUE_TYPES: set[str] = {"vfx", "sound", "image"}
"""Canonical cue types understood by the bundled effect dispatcher."""

CUE_TYPE_ALIASES: dict[str, str] = {
    "fx": "vfx",
}


def normalize_cue_type(raw_type: str) -> str:
    """Normalize a cue TYPE field to its canonical, lower-cased form.

    WHY: Authors write ``FX``, ``Vfx`` or ``sound`` interchangeably.
    Downstream routing needs one spelling per type.

    HOW: Trim, lower-case, then apply CUE_TYPE_ALIASES.

    RULES:
    - ``fx`` (any case) becomes ``vfx``
    - Unknown types are returned lower-cased, never rejected
    """
    lowered = raw_type.strip().lower()
    return CUE_TYPE_ALIASES.get(lowered, lowered)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

ANCHOR_GLYPH = "▼"
"""Marker drawn above the anchored letter (▼)."""

ANCHOR_PUNCTUATION = ".,;:!?…"
"""Punctuation that never has whitespace in front of it in rendered text."""

GROUP_TITLE_SEPARATOR = " • "

SOFT_HYPHEN = "\u00ad"

HYPHENATE = _env_bool("CUE_REVEAL_HYPHENATE", True)
"""Insert soft hyphens into rendered text fragments (never into anchor glyphs)."""

HYPHENATION_LANG = os.getenv("CUE_REVEAL_HYPHENATION_LANG", "es")
HYPHENATION_MIN_WORD = 4

# ---------------------------------------------------------------------------
# Reveal engine defaults
# ---------------------------------------------------------------------------

REVEAL_WINDOW_LINES = _env_int("CUE_REVEAL_WINDOW_LINES", 5)
REARM_ON_RETREAT = _env_bool("CUE_REVEAL_REARM_ON_RETREAT", False)

if REVEAL_WINDOW_LINES < 1:
    raise ValueError(
        "CUE_REVEAL_WINDOW_LINES must be at least 1, got {}".format(REVEAL_WINDOW_LINES)
    )

# ---------------------------------------------------------------------------
# HTTP API defaults
# ---------------------------------------------------------------------------

SESSION_TTL_SECONDS = _env_int("CUE_REVEAL_SESSION_TTL", 3600)
MAX_SESSIONS = _env_int("CUE_REVEAL_MAX_SESSIONS", 100)
API_HOST = os.getenv("CUE_REVEAL_HOST", "127.0.0.1")
API_PORT = _env_int("CUE_REVEAL_PORT", 8000)
