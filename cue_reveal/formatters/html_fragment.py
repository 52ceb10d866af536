"""HTML fragment formatter with hoverable cue anchors.

WHY: The simplest host is a web page. It needs the revealed window as
markup where each anchor letter carries a small marker above it and a
native tooltip listing the cues, plus enough data for scripts to show a
richer popover without re-parsing anything.

HOW: Each rendered line becomes a ``<p class="cue-line">``. Text
fragments are HTML-escaped. Anchor markers become
``<span class="cue-anchor">`` holding a hidden marker span and the
letter, with ``title``/``aria-label`` set to the group title and
``data-cues`` set to the cues' JSON metadata. The reveal line ends with
a caret span.

RULES:
- All text and attribute values are escaped with html.escape
- Empty lines render as ``<p class="cue-line"><br></p>`` to keep height
- Output suffix: "-reveal.html"; media type: "text/html"
"""

from __future__ import annotations

import html
import json
from typing import List

from cue_reveal.core.ir import AnchorMarker, RenderedLine, TextFragment
from cue_reveal.core.session import RevealUpdate
from cue_reveal.formatters.base import BaseFormatter, FormatterOutput

CARET_HTML = '<span class="cue-caret" aria-hidden="true"></span>'


def _anchor_html(marker: AnchorMarker) -> str:
    title = html.escape(marker.title, quote=True)
    data = html.escape(json.dumps(marker.describe(), ensure_ascii=False), quote=True)
    return (
        '<span class="cue-anchor" title="{title}" aria-label="{title}" data-cues="{data}">'
        '<span class="cue-marker" aria-hidden="true">{marker}</span>{glyph}</span>'
    ).format(
        title=title,
        data=data,
        marker=html.escape(marker.marker),
        glyph=html.escape(marker.glyph),
    )


def render_line_html(line: RenderedLine) -> str:
    parts: List[str] = []
    for node in line.nodes:
        if isinstance(node, TextFragment):
            parts.append(html.escape(node.text, quote=False))
        else:
            parts.append(_anchor_html(node))
    if line.is_reveal_line:
        parts.append(CARET_HTML)
    body = "".join(parts) or "<br>"
    return '<p class="cue-line" data-line="{}">{}</p>'.format(line.line_index, body)


class HTMLFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "HTML Fragment"

    def format(self, update: RevealUpdate) -> List[FormatterOutput]:
        lines = [render_line_html(line) for line in update.lines]
        content = '<div class="cue-reveal">\n{}\n</div>\n'.format("\n".join(lines))
        return [
            FormatterOutput(
                suffix="-reveal.html",
                content=content,
                media_type="text/html",
            )
        ]
