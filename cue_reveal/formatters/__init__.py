"""Output formatter registry.

WHY: The CLI and API layers need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["html"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and query params)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cue_reveal.formatters.html_fragment import HTMLFormatter
from cue_reveal.formatters.json_nodes import JSONNodesFormatter
from cue_reveal.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from cue_reveal.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "html": HTMLFormatter,
    "json_nodes": JSONNodesFormatter,
}
