"""JSON formatter: reveal state, fired cues, and render nodes.

WHY: Web and game hosts draw the text themselves. They need the exact
node stream (text fragments and anchors with full cue metadata), the
fired cues of this update, and the reveal coordinates, in a stable
machine-readable shape.

HOW: update_to_dict() serializes a RevealUpdate; the formatter validates
the result against reveal_nodes_schema.json with jsonschema before
returning it. The HTTP API reuses update_to_dict() for its responses.

RULES:
- Node kinds: "text" {text} and "anchor" {glyph, marker, title, cues}
- Fired cues carry raw_start/raw_end in addition to the cue metadata
- carry is null or {title, cues}
- Output suffix: "-reveal.json"; media type: "application/json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from cue_reveal.core.ir import AnchorMarker, CueFiredEvent, CueGroup, RenderedLine, TextFragment
from cue_reveal.core.session import RevealUpdate
from cue_reveal.formatters.base import BaseFormatter, FormatterOutput

_SCHEMA_PATH = Path(__file__).resolve().parent / "reveal_nodes_schema.json"

_CACHED_SCHEMA: Optional[dict] = None


def _get_schema() -> dict:
    """Load and cache the render document JSON schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def node_to_dict(node: TextFragment | AnchorMarker) -> Dict[str, Any]:
    if isinstance(node, TextFragment):
        return {"kind": "text", "text": node.text}
    return {
        "kind": "anchor",
        "glyph": node.glyph,
        "marker": node.marker,
        "title": node.title,
        "cues": node.describe(),
    }


def line_to_dict(line: RenderedLine) -> Dict[str, Any]:
    return {
        "line_index": line.line_index,
        "is_reveal_line": line.is_reveal_line,
        "text": line.text,
        "nodes": [node_to_dict(n) for n in line.nodes],
    }


def fired_to_dict(event: CueFiredEvent) -> Dict[str, Any]:
    data = event.cue.describe()
    data["raw_start"] = event.cue.raw_start
    data["raw_end"] = event.cue.raw_end
    return data


def carry_to_dict(group: Optional[CueGroup]) -> Optional[Dict[str, Any]]:
    if group is None:
        return None
    return {"title": group.title, "cues": [c.describe() for c in group.cues]}


def update_to_dict(update: RevealUpdate) -> Dict[str, Any]:
    """Serialize a RevealUpdate to plain JSON-compatible data."""
    state = update.state
    return {
        "progress": state.progress,
        "target_visible": state.target_visible,
        "target_raw": state.target_raw,
        "target_line": state.target_line,
        "target_char": state.target_char,
        "total_visible_length": state.total_visible_length,
        "total_raw_length": state.total_raw_length,
        "fired": [fired_to_dict(e) for e in update.fired],
        "lines": [line_to_dict(line) for line in update.lines],
        "carry": carry_to_dict(update.carry),
    }


class JSONNodesFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "JSON Render Nodes"

    def format(self, update: RevealUpdate) -> List[FormatterOutput]:
        """Serialize and validate one update.

        Raises:
            jsonschema.ValidationError: If the generated document does
                not conform to reveal_nodes_schema.json.
        """
        document = update_to_dict(update)
        jsonschema.validate(instance=document, schema=_get_schema())
        return [
            FormatterOutput(
                suffix="-reveal.json",
                content=json.dumps(document, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
