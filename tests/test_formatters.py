"""Unit tests for all formatter modules.

WHY: Each formatter turns a RevealUpdate into something a host displays
or stores. A formatter that leaks cue markup, drops an anchor, or emits
JSON that does not match the published schema breaks every host that
consumes it.

HOW: Tests render real updates of the breeze and paragraph chapters:
  - Plain text: cue-free lines, trailing newline rules
  - HTML: escaping, anchor spans, caret, empty lines
  - JSON nodes: schema validation, node kinds, fired cues, carry
  - Registry: every FORMATTERS entry is a working formatter

RULES:
- Schema validation uses reveal_nodes_schema.json from the package
- Updates are produced through RevealSession, never built by hand
"""

import json
from pathlib import Path

import jsonschema
import pytest

from cue_reveal.core.session import RevealSession
from cue_reveal.formatters import FORMATTERS
from cue_reveal.formatters.base import BaseFormatter
from cue_reveal.formatters.html_fragment import CARET_HTML, HTMLFormatter
from cue_reveal.formatters.json_nodes import JSONNodesFormatter, update_to_dict
from cue_reveal.formatters.plain_text import PlainTextFormatter

SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent
    / "cue_reveal" / "formatters" / "reveal_nodes_schema.json"
)


def _load_schema():
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


def _scrolled(text, *samples, window_lines=5):
    session = RevealSession(text, window_lines=window_lines)
    update = None
    for progress in (0.0,) + samples:
        update = session.update(progress)
    return update


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class TestPlainTextFormatter:
    def test_full_reveal(self, breeze_text):
        output = PlainTextFormatter().format(_scrolled(breeze_text, 1.0))[0]
        assert output.content == "El viento soplaba. Todo cambió.\n"
        assert output.suffix == "-reveal.txt"
        assert output.media_type == "text/plain"

    def test_nothing_revealed(self, breeze_text):
        output = PlainTextFormatter().format(_scrolled(breeze_text))[0]
        assert output.content == ""

    def test_blank_lines_kept(self, paragraph_text):
        output = PlainTextFormatter().format(_scrolled(paragraph_text, 1.0))[0]
        assert output.content == "Fin.\n\nLuego vino la calma.\n"


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


class TestHTMLFormatter:
    def test_wrapper_and_metadata(self, breeze_text):
        output = HTMLFormatter().format(_scrolled(breeze_text, 1.0))[0]
        assert output.content.startswith('<div class="cue-reveal">\n')
        assert output.content.endswith("\n</div>\n")
        assert output.suffix == "-reveal.html"
        assert output.media_type == "text/html"

    def test_anchor_span(self, breeze_text):
        content = HTMLFormatter().format(_scrolled(breeze_text, 1.0))[0].content
        assert 'title="VFX: breeze"' in content
        assert 'aria-label="VFX: breeze"' in content
        assert '<span class="cue-marker" aria-hidden="true">▼</span>T</span>' in content
        assert "duration=5]T" not in content

    def test_data_cues_is_escaped_json(self, breeze_text):
        content = HTMLFormatter().format(_scrolled(breeze_text, 1.0))[0].content
        assert "data-cues=\"[{&quot;type&quot;: &quot;vfx&quot;" in content

    def test_caret_on_reveal_line(self, paragraph_text):
        content = HTMLFormatter().format(_scrolled(paragraph_text, 1.0))[0].content
        lines = content.splitlines()[1:-1]
        assert len(lines) == 3
        assert CARET_HTML not in lines[0]
        assert lines[1] == '<p class="cue-line" data-line="1"><br></p>'
        assert lines[2].endswith(CARET_HTML + "</p>")

    def test_text_is_escaped(self):
        content = HTMLFormatter().format(_scrolled("<b>a & b</b>", 1.0))[0].content
        assert "&lt;b&gt;a &amp; b&lt;/b&gt;" in content


# ---------------------------------------------------------------------------
# JSON nodes
# ---------------------------------------------------------------------------


class TestJSONNodesFormatter:
    def test_output_validates_against_schema(self, breeze_text):
        output = JSONNodesFormatter().format(_scrolled(breeze_text, 1.0))[0]
        document = json.loads(output.content)
        jsonschema.validate(instance=document, schema=_load_schema())
        assert output.suffix == "-reveal.json"
        assert output.media_type == "application/json"

    def test_state_fields(self, breeze_text):
        document = update_to_dict(_scrolled(breeze_text, 1.0))
        assert document["progress"] == 1.0
        assert document["target_visible"] == 31
        assert document["target_raw"] == 58
        assert document["total_visible_length"] == 31
        assert document["total_raw_length"] == 58

    def test_nodes(self, breeze_text):
        document = update_to_dict(_scrolled(breeze_text, 1.0))
        nodes = document["lines"][0]["nodes"]
        assert [n["kind"] for n in nodes] == ["text", "anchor", "text"]
        anchor = nodes[1]
        assert anchor["glyph"] == "T"
        assert anchor["marker"] == "▼"
        assert anchor["cues"][0]["original_text"] == "[cue:vfx|breeze|duration=5]"
        assert document["lines"][0]["text"] == "El viento soplaba. Todo cambió."

    def test_fired_cues(self, breeze_text):
        document = update_to_dict(_scrolled(breeze_text, 1.0))
        assert document["fired"] == [{
            "type": "vfx",
            "effect": "breeze",
            "params": {"duration": "5"},
            "original_text": "[cue:vfx|breeze|duration=5]",
            "raw_start": 18,
            "raw_end": 45,
        }]

    def test_carry(self, paragraph_text, progress_for):
        document = update_to_dict(_scrolled(paragraph_text, progress_for(5, 26)))
        assert document["carry"]["title"] == "VFX: flash"
        assert document["carry"]["cues"][0]["effect"] == "flash"

    def test_empty_content_validates(self):
        output = JSONNodesFormatter().format(_scrolled("", 0.5))[0]
        document = json.loads(output.content)
        assert document["carry"] is None
        assert document["lines"][0]["nodes"] == []

    def test_unicode_not_escaped(self, breeze_text):
        content = JSONNodesFormatter().format(_scrolled(breeze_text, 1.0))[0].content
        assert "cambió" in content


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestFormatterRegistry:
    def test_keys(self):
        assert set(FORMATTERS) == {"plain_text", "html", "json_nodes"}

    @pytest.mark.parametrize("key", sorted(FORMATTERS))
    def test_every_formatter_produces_output(self, key, breeze_text):
        formatter = FORMATTERS[key]()
        assert isinstance(formatter, BaseFormatter)
        assert formatter.name
        outputs = formatter.format(_scrolled(breeze_text, 0.5))
        assert len(outputs) == 1
        assert outputs[0].suffix.startswith("-reveal.")
