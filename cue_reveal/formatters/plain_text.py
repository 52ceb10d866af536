"""Plain text formatter: the cue-free revealed window.

WHY: The quickest way to check what a reader sees at a given progress
is the bare text, with markers reduced to their letters. Useful in a
terminal and in tests.

RULES:
- One output line per window line, in order
- Anchor markers contribute only their letter (no glyph)
- Trailing newline only when there is any text
- Output suffix: "-reveal.txt"; media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from cue_reveal.core.session import RevealUpdate
from cue_reveal.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, update: RevealUpdate) -> List[FormatterOutput]:
        content = update.text
        if content:
            content += "\n"
        return [
            FormatterOutput(
                suffix="-reveal.txt",
                content=content,
                media_type="text/plain",
            )
        ]
