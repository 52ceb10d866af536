"""Reading statistics over cue-free chapter text.

WHY: Hosts show "N words · ~M min" next to a chapter and authors want
to know how long a chapter reads. Counting the raw text would include
every cue's markup.

HOW: Cues are cut out using the parser's spans, HTML-like tags are
removed, then words, characters, paragraphs and sentences are counted
with simple regular expressions.

RULES:
- Words are runs of letters/digits (accents included)
- characters excludes whitespace; characters_with_spaces does not
- Paragraphs are separated by one or more blank lines
- Sentences are split on runs of ``.``, ``!`` or ``?``
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from cue_reveal.core.parser import parse_cues

_TAG_RE = re.compile(r"<[^>]*>")
_WORD_RE = re.compile(r"[^\W_]+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

WORDS_PER_MINUTE = 200


@dataclass
class TextStats:
    words: int
    characters: int
    characters_with_spaces: int
    paragraphs: int
    sentences: int

    @property
    def reading_minutes(self) -> float:
        return round(self.words / WORDS_PER_MINUTE, 1)


def strip_cues(text: str) -> str:
    """Return ``text`` with every well-formed cue removed."""
    parts = []
    pos = 0
    for cue in parse_cues(text):
        parts.append(text[pos:cue.raw_start])
        pos = cue.raw_end
    parts.append(text[pos:])
    return "".join(parts)


def text_stats(text: str) -> TextStats:
    """Compute reading statistics for a chapter (cues excluded)."""
    if not text:
        return TextStats(0, 0, 0, 0, 0)
    clean = _TAG_RE.sub("", strip_cues(text))
    return TextStats(
        words=len(_WORD_RE.findall(clean)),
        characters=len(re.sub(r"\s", "", clean)),
        characters_with_spaces=len(clean),
        paragraphs=len([p for p in _PARAGRAPH_SPLIT_RE.split(clean) if p.strip()]),
        sentences=len([s for s in _SENTENCE_SPLIT_RE.split(clean) if s.strip()]),
    )
