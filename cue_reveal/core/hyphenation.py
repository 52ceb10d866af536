"""Soft-hyphen insertion for rendered text.

WHY: Narrow reading columns justify Spanish prose badly unless long
words may break. Soft hyphens (U+00AD) are invisible until the host's
layout engine decides to break a word there, so they can be inserted
into every text fragment without changing what the reader sees.

HOW: Pyphen supplies the hyphenation patterns. Every run of at least
HYPHENATION_MIN_WORD letters is replaced by Pyphen's hyphenated form,
using SOFT_HYPHEN as the separator. Dictionaries are cached per
language.

RULES:
- Only letters are hyphenated; digits, spaces and punctuation pass through
- Removing every SOFT_HYPHEN from the result gives back the input
- Unknown languages raise ValueError
"""

from __future__ import annotations

import re
from functools import lru_cache

import pyphen

from cue_reveal.config import HYPHENATION_LANG, HYPHENATION_MIN_WORD, SOFT_HYPHEN

_WORD_RE = re.compile(r"[^\W\d_]{%d,}" % HYPHENATION_MIN_WORD)


@lru_cache(maxsize=None)
def get_dictionary(lang: str = HYPHENATION_LANG) -> pyphen.Pyphen:
    """Load (once) the Pyphen dictionary for ``lang``."""
    resolved = pyphen.language_fallback(lang)
    if resolved is None:
        raise ValueError("Unknown hyphenation language: {!r}".format(lang))
    return pyphen.Pyphen(lang=resolved)


def hyphenate(text: str, lang: str = HYPHENATION_LANG) -> str:
    """Insert soft hyphens at every allowed break in ``text``."""
    if not text:
        return text
    dictionary = get_dictionary(lang)
    return _WORD_RE.sub(lambda m: dictionary.inserted(m.group(0), hyphen=SOFT_HYPHEN), text)

