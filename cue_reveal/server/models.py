"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Request models describe what a client sends (content, progress);
response models mirror the engine's IR (cues, render nodes, reveal
state) and the effect dispatcher's commands. Render documents produced
by formatters.json_nodes.update_to_dict() validate directly into
ProgressResponse.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Format keys match FORMATTERS exactly
- Response models never expose internal objects (locks, buses)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CreateSessionRequest(BaseModel):
    """Body of POST /sessions."""

    content: str = Field(
        default="",
        description="Chapter text with inline [cue:TYPE|EFFECT|k=v|...] markup.",
    )
    window_lines: Optional[int] = Field(
        default=None,
        ge=1,
        le=1000,
        description="Viewport window size in lines. Defaults to the server setting.",
    )
    rearm_on_retreat: Optional[bool] = Field(
        default=None,
        description="Re-arm cues when the reveal moves back past them.",
    )
    normalize: bool = Field(
        default=True,
        description="Convert CRLF/CR and literal '\\n' sequences to line breaks before loading.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "content": "El viento soplaba.[cue:fx|breeze|duration=5] Todo quedó quieto.",
                "window_lines": 5,
            }
        ]
    }}


class ContentRequest(BaseModel):
    """Body of PUT /sessions/{id}/content."""

    content: str = Field(description="Replacement chapter text.")
    normalize: bool = Field(
        default=True,
        description="Convert CRLF/CR and literal '\\n' sequences to line breaks before loading.",
    )


class ProgressRequest(BaseModel):
    """Body of POST /sessions/{id}/progress."""

    progress: float = Field(
        description="Scroll progress; values outside [0, 1] are clamped.",
        json_schema_extra={"example": 0.42},
    )


# ---------------------------------------------------------------------------
# Response models: cues and render nodes
# ---------------------------------------------------------------------------


class CueInfo(BaseModel):
    """Metadata of one parsed cue."""

    type: str = Field(description="Canonical cue type (e.g. 'vfx').")
    effect: str = Field(description="Effect name as written in the cue.")
    params: Dict[str, str] = Field(description="Raw cue parameters.")
    original_text: str = Field(description="The exact cue markup.")


class PlacedCue(CueInfo):
    """A cue together with its position in the raw text."""

    raw_start: int = Field(description="Raw offset of the cue's '['.")
    raw_end: int = Field(description="Raw offset just past the cue's ']'.")


class RenderNode(BaseModel):
    """One render node: plain text or an anchor marker."""

    kind: str = Field(description="'text' or 'anchor'.")
    text: Optional[str] = Field(default=None, description="Text of a 'text' node.")
    glyph: Optional[str] = Field(default=None, description="Anchored letter of an 'anchor' node.")
    marker: Optional[str] = Field(default=None, description="Marker glyph drawn above the letter.")
    title: Optional[str] = Field(default=None, description="Hover title listing the cues.")
    cues: Optional[List[CueInfo]] = Field(default=None, description="Cues anchored on this letter.")


class RenderedLineInfo(BaseModel):
    line_index: int = Field(description="Zero-based line index in the chapter.")
    is_reveal_line: bool = Field(description="True for the line currently being revealed.")
    text: str = Field(description="Cue-free text of the line.")
    nodes: List[RenderNode] = Field(description="Render nodes in display order.")


class CarryInfo(BaseModel):
    title: str = Field(description="Hover title of the deferred group.")
    cues: List[CueInfo] = Field(description="Cues waiting for the next letter.")


class EffectCommandInfo(BaseModel):
    """A fired cue resolved into a renderer-ready command."""

    type: str = Field(description="Cue type.")
    effect: str = Field(description="Catalog effect key (aliases resolved).")
    params: Dict[str, Any] = Field(description="Typed, defaulted parameters.")
    source: str = Field(description="The cue markup that produced this command.")


class RejectedCue(BaseModel):
    original_text: str = Field(description="The cue markup that was rejected.")
    error: str = Field(description="Why the effect could not be resolved.")


class ProgressResponse(BaseModel):
    """Result of one progress update."""

    session_id: str = Field(description="Session the update belongs to.")
    progress: float = Field(description="Clamped progress actually used.")
    target_visible: int = Field(description="Visible characters revealed.")
    target_raw: int = Field(description="Raw offset of the reveal.")
    target_line: int = Field(description="Line currently being revealed.")
    target_char: int = Field(description="Characters revealed on the target line.")
    total_visible_length: int = Field(description="Cue-free length of the chapter.")
    total_raw_length: int = Field(description="Raw length of the chapter.")
    fired: List[PlacedCue] = Field(description="Cues fired by this update, in reading order.")
    lines: List[RenderedLineInfo] = Field(description="Rendered viewport window.")
    carry: Optional[CarryInfo] = Field(
        default=None,
        description="Cue group still waiting for a letter after the last visible line.",
    )
    effects: List[EffectCommandInfo] = Field(
        default_factory=list,
        description="Effects dispatched for the fired cues.",
    )
    rejected: List[RejectedCue] = Field(
        default_factory=list,
        description="Fired cues whose effect or parameters were invalid.",
    )


# ---------------------------------------------------------------------------
# Response models: sessions, catalog, misc
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Reveal session summary."""

    id: str = Field(description="Unique session identifier (UUID).")
    created_at: float = Field(description="Creation timestamp (Unix epoch seconds).")
    updated_at: float = Field(description="Last activity timestamp (Unix epoch seconds).")
    window_lines: int = Field(description="Viewport window size in lines.")
    rearm_on_retreat: bool = Field(description="Whether cues re-arm on backward movement.")
    total_visible_length: int = Field(description="Cue-free length of the chapter.")
    total_raw_length: int = Field(description="Raw length of the chapter.")
    line_count: int = Field(description="Number of lines in the chapter.")
    updates: int = Field(description="Progress updates since the last load.")
    progress: Optional[float] = Field(
        default=None,
        description="Progress of the last update, or null before the first one.",
    )
    fired_count: int = Field(description="Number of cues fired so far.")
    cues: List[PlacedCue] = Field(description="All cues in the chapter.")


class StatsResponse(BaseModel):
    words: int = Field(description="Word count (cues excluded).")
    characters: int = Field(description="Characters excluding whitespace.")
    characters_with_spaces: int = Field(description="Characters including whitespace.")
    paragraphs: int = Field(description="Paragraphs separated by blank lines.")
    sentences: int = Field(description="Sentences split on '.', '!' and '?'.")
    reading_minutes: float = Field(description="Estimated reading time in minutes.")


class EffectParamInfo(BaseModel):
    key: str = Field(description="Parameter key used in cues.")
    type: str = Field(description="number, text, select or boolean.")
    description: str = Field(default="", description="What the parameter controls.")
    min: Optional[float] = Field(default=None, description="Minimum for numbers.")
    max: Optional[float] = Field(default=None, description="Maximum for numbers.")
    step: Optional[float] = Field(default=None, description="Suggested step for numbers.")
    options: Optional[List[str]] = Field(default=None, description="Allowed values for selects.")
    default: Optional[Any] = Field(default=None, description="Value used when the cue omits it.")


class EffectInfo(BaseModel):
    """Description of a catalog effect."""

    key: str = Field(description="Effect key.")
    cue_type: str = Field(description="Cue type the effect belongs to.")
    aliases: List[str] = Field(description="Alternative names accepted in cues.")
    label: Dict[str, str] = Field(description="Display labels by language code.")
    description: str = Field(description="What the effect looks like.")
    params: List[EffectParamInfo] = Field(description="Accepted parameters.")


class FormatInfo(BaseModel):
    """Description of an available output format."""

    key: str = Field(description="Format identifier used in API requests.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '-reveal.html').")
    media_type: str = Field(description="MIME type of the rendered content.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
