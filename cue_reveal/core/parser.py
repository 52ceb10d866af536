"""Cue scanner and cue grouping.

WHY: Authors embed effect cues inline with the prose using the grammar
``[cue:TYPE|EFFECT|k1=v1|k2=v2|...]``. Every other stage needs to know
exactly where each cue starts and ends so markup never reaches the
reader, and so that malformed markup degrades to literal text instead
of swallowing prose.

HOW: A left-to-right scanner looks for the ``[cue:`` opener and then
walks three fields: TYPE (up to ``|``), EFFECT (up to ``|`` or ``]``),
and an optional parameter block (up to ``]``). Any field that hits a
line break or the end of the text aborts the attempt and scanning
resumes one character after the opener. Grouping is a separate pass
over the parsed cues.

RULES:
- TYPE is trimmed, lower-cased and alias-mapped (``fx`` → ``vfx``)
- Blank TYPE, blank EFFECT, missing ``]`` or a line break inside the
  markup → not a cue; the characters stay literal text
- A ``[cue:`` opener inside any field abandons the current attempt and
  the scan restarts at it; any other ``[`` is ordinary field content
  (``label=[loud]`` has the value ``[loud``)
- An empty parameter block (``[cue:vfx|x|]``) is accepted as no params
- Params split on ``|`` then on the first ``=`` only, so the value keeps
  any later ``=`` (``url=a=b`` gives ``a=b``, not ``a``); empty keys or
  values are dropped; no escaping of ``|``, ``=`` or ``]``
- Back-to-back cues are separate entries; grouping is group_consecutive_cues()
"""

from __future__ import annotations

from cue_reveal.config import (
    CUE_CLOSER,
    CUE_FIELD_SEPARATOR,
    CUE_OPENER,
    CUE_PARAM_SEPARATOR,
    normalize_cue_type,
)
from cue_reveal.core.ir import Cue, CueGroup

_LINE_BREAKS = frozenset("\n\r")


def _parse_params(block: str) -> dict[str, str]:
    """Split a ``k1=v1|k2=v2`` block into an ordered dict.

    Later duplicates overwrite earlier ones, keeping the first position.
    """
    params: dict[str, str] = {}
    for pair in block.split(CUE_FIELD_SEPARATOR):
        key, _, value = pair.partition(CUE_PARAM_SEPARATOR)
        key = key.strip()
        value = value.strip()
        if key and value:
            params[key] = value
    return params


def _scan_cue(text: str, start: int) -> tuple[Cue | None, int]:
    """Try to read one cue whose opener sits at ``start``.

    Returns ``(cue, next_pos)`` on success. On failure returns
    ``(None, resume_pos)`` where resume_pos is where the outer scan
    continues looking for an opener.
    """
    n = len(text)
    pos = start + len(CUE_OPENER)

    # TYPE: up to the first "|"
    type_start = pos
    while pos < n and text[pos] != CUE_FIELD_SEPARATOR:
        ch = text[pos]
        if ch in _LINE_BREAKS or ch == CUE_CLOSER:
            return None, start + 1
        if text.startswith(CUE_OPENER, pos):
            # A nested opener wins over this unterminated one
            return None, pos
        pos += 1
    if pos >= n:
        return None, start + 1
    raw_type = text[type_start:pos]
    pos += 1

    # EFFECT: up to "|" or "]"
    effect_start = pos
    while pos < n and text[pos] not in (CUE_FIELD_SEPARATOR, CUE_CLOSER):
        if text[pos] in _LINE_BREAKS:
            return None, start + 1
        if text.startswith(CUE_OPENER, pos):
            return None, pos
        pos += 1
    if pos >= n:
        return None, start + 1
    effect = text[effect_start:pos].strip()

    # Optional parameter block: up to "]"
    block = ""
    if text[pos] == CUE_FIELD_SEPARATOR:
        pos += 1
        block_start = pos
        while pos < n and text[pos] != CUE_CLOSER:
            if text[pos] in _LINE_BREAKS:
                return None, start + 1
            if text.startswith(CUE_OPENER, pos):
                return None, pos
            pos += 1
        if pos >= n:
            return None, start + 1
        block = text[block_start:pos]

    end = pos + 1  # past "]"
    cue_type = normalize_cue_type(raw_type)
    if not cue_type or not effect:
        return None, start + 1

    return Cue(
        type=cue_type,
        effect=effect,
        params=_parse_params(block),
        raw_start=start,
        raw_end=end,
        original_text=text[start:end],
    ), end


def parse_cues(text: str) -> list[Cue]:
    """Find every well-formed cue in ``text``, in offset order.

    WHY: The reveal engine needs exact cue spans to build its coordinate
    projection and to know when a cue's boundary is crossed; the anchor
    renderer needs them to hide markup in a revealed slice.

    HOW: Jump from one ``[cue:`` opener to the next with str.find and
    hand each one to _scan_cue().

    RULES:
    - Offsets are relative to ``text`` (callers parse whole chapters or
      single revealed lines)
    - Malformed openers are skipped silently, never raised
    - Returned cues never overlap and are sorted by raw_start
    """
    cues: list[Cue] = []
    pos = text.find(CUE_OPENER)
    while pos != -1:
        cue, resume = _scan_cue(text, pos)
        if cue is not None:
            cues.append(cue)
        pos = text.find(CUE_OPENER, resume)
    return cues


def group_consecutive_cues(cues: list[Cue], text: str) -> list[CueGroup]:
    """Group cues that have nothing but whitespace between them.

    WHY: ``[cue:vfx|x][cue:sound|y]word`` places two effects at the same
    point; the reader should see one marker for both, not two.

    HOW: Walk the cues in order and start a new group whenever the text
    between the previous cue's end and the current cue's start contains
    anything other than whitespace.

    RULES:
    - ``text`` must be the text the cues were parsed from
    - Groups are maximal runs and partition the input cues
    - Empty input → empty list
    """
    groups: list[CueGroup] = []
    for cue in cues:
        if groups and not text[groups[-1].end:cue.raw_start].strip():
            current = groups[-1]
            current.cues.append(cue)
            current.end = cue.raw_end
        else:
            groups.append(CueGroup(cues=[cue], start=cue.raw_start, end=cue.raw_end))
    return groups
