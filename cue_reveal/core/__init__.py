"""Core reveal engine: parsing, coordinate mapping, reveal, triggers, anchors.

WHY: The core package is the part every host shares. It turns raw
chapter text plus a stream of progress samples into reveal snapshots,
fired cues, and cue-free render nodes, with no knowledge of how those
are drawn or which effects exist.

HOW: ir.py defines the data structures; parser.py finds cues;
mapping.py and lines.py translate between visible, raw, and
(line, char) coordinates; reveal.py, triggers.py and anchors.py are the
three per-update stages; session.py runs them in order. hyphenation.py
adds soft hyphens to rendered text; stats.py adds reading statistics.

RULES:
- IR dataclasses are the contract for formatters and the HTTP layer
- No I/O and no effect logic in this package
- Every stage is a pure function of its inputs plus explicit state
"""
