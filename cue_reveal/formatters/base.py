"""Abstract base formatter and output container.

WHY: The CLI and the HTTP API both need to turn a RevealUpdate into
something a host can display or store (plain text, HTML, JSON). A
shared interface lets either layer work with any format generically.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; every bundled formatter returns one item
- ``suffix`` starts with a hyphen, e.g. ``"-reveal.html"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from cue_reveal.core.session import RevealUpdate


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-reveal.html"`` → ``"chapter1-reveal.html"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"text/html"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'HTML Fragment'."""

    @abstractmethod
    def format(self, update: RevealUpdate) -> list[FormatterOutput]:
        """Convert one RevealUpdate into one or more outputs.

        Args:
            update: The result of a RevealSession/RevealEngine update,
                    including reveal state, fired cues and rendered lines.

        Returns:
            List of FormatterOutput objects.
        """
