"""FastAPI application exposing reveal sessions over HTTP.

WHY: Web readers, game engines and authoring tools in other languages
need the engine without embedding Python. A small HTTP API lets them
create a session for a chapter, stream progress samples, and receive
the reveal state, fired cues, resolved effects, and render nodes.
FastAPI provides automatic OpenAPI documentation and request
validation.

HOW: A single FastAPI app backed by a module-level SessionStore. Each
session wraps a RevealSession whose fired cues are dispatched through
the effect catalog. Endpoints are grouped by tags: sessions, effects,
formats, health. Idle sessions are removed by a periodic cleanup task
started in the app lifespan.

RULES:
- Error responses use a consistent ErrorResponse schema
- 404 for unknown sessions, 429 when the store is full, 400 for unknown
  formats, 409 for rendering before the first progress update,
  422 for invalid request bodies
- Content is normalized (line endings, literal "\\n") unless the
  request opts out
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Annotated, List

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from cue_reveal import __version__
from cue_reveal.config import API_HOST, API_PORT
from cue_reveal.core.session import RevealEngine, SessionState, normalize_content
from cue_reveal.core.stats import text_stats
from cue_reveal.effects import list_effects
from cue_reveal.formatters import FORMATTERS
from cue_reveal.formatters.json_nodes import update_to_dict
from cue_reveal.server.models import (
    ContentRequest,
    CreateSessionRequest,
    EffectInfo,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    ProgressRequest,
    ProgressResponse,
    SessionResponse,
    StatsResponse,
)
from cue_reveal.server.sessions import ProgressResult, SessionStore, StoredSession

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 300

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore()


async def _periodic_cleanup() -> None:
    """Run session cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Cue Reveal API",
    description=(
        "REST API for progressive, scroll-driven reveal of chapters with "
        "inline effect cues. Create a session, post progress samples, and "
        "receive the revealed window, fired cues and resolved effects."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_or_404(session_id: str) -> StoredSession:
    stored = session_store.get_session(session_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return stored


def _session_to_response(stored: StoredSession) -> SessionResponse:
    """Convert a StoredSession to a SessionResponse model."""
    session = stored.session
    last = session.last_update
    return SessionResponse(
        id=stored.id,
        created_at=stored.created_at,
        updated_at=stored.updated_at,
        window_lines=session.window_lines,
        rearm_on_retreat=session.rearm_on_retreat,
        total_visible_length=session.total_visible_length,
        total_raw_length=session.total_raw_length,
        line_count=session.engine.line_index.line_count,
        updates=stored.updates,
        progress=last.state.progress if last is not None else None,
        fired_count=len(session.fired),
        cues=[
            dict(c.describe(), raw_start=c.raw_start, raw_end=c.raw_end)
            for c in session.cues
        ],
    )


def _progress_to_response(session_id: str, result: ProgressResult) -> ProgressResponse:
    return ProgressResponse(
        session_id=session_id,
        effects=[c.to_dict() for c in result.effects],
        rejected=[
            {"original_text": event.cue.original_text, "error": str(error)}
            for event, error in result.rejected
        ],
        **update_to_dict(result.update),
    )


def _prepare_content(content: str, normalize: bool) -> str:
    return normalize_content(content) if normalize else content


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Create a reveal session",
    description=(
        "Load a chapter and create a session for it. All derived indices "
        "are built immediately; nothing is revealed until the first "
        "progress update."
    ),
    responses={
        429: {"model": ErrorResponse, "description": "Too many concurrent sessions"},
    },
)
async def create_session(body: CreateSessionRequest) -> SessionResponse:
    try:
        stored = session_store.create_session(
            content=_prepare_content(body.content, body.normalize),
            window_lines=body.window_lines,
            rearm_on_retreat=body.rearm_on_retreat,
        )
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return _session_to_response(stored)


@app.get(
    "/sessions",
    response_model=List[SessionResponse],
    tags=["sessions"],
    summary="List reveal sessions",
)
async def list_sessions() -> List[SessionResponse]:
    return [_session_to_response(s) for s in session_store.list_sessions()]


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get a reveal session",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_session(session_id: str) -> SessionResponse:
    return _session_to_response(_get_or_404(session_id))


@app.put(
    "/sessions/{session_id}/content",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Replace the chapter of a session",
    description=(
        "Reload the session with new text. All derived indices and all "
        "session state (fired cues, deferred anchors, last render) are reset."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def replace_content(session_id: str, body: ContentRequest) -> SessionResponse:
    stored = session_store.reload(session_id, _prepare_content(body.content, body.normalize))
    if stored is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return _session_to_response(stored)


@app.post(
    "/sessions/{session_id}/progress",
    response_model=ProgressResponse,
    tags=["sessions"],
    summary="Feed a progress sample",
    description=(
        "Advance the reveal to the given progress. Returns the revealed "
        "window, the cues fired by this update, and their resolved effects."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def post_progress(session_id: str, body: ProgressRequest) -> ProgressResponse:
    result = session_store.advance(session_id, body.progress)
    if result is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    if result.update.fired:
        logger.debug(
            "Session %s fired %s",
            session_id,
            ", ".join(e.cue.original_text for e in result.update.fired),
        )
    return _progress_to_response(session_id, result)


@app.get(
    "/sessions/{session_id}/render",
    tags=["sessions"],
    summary="Render the last update",
    description="Format the most recent progress update with one of the registered formatters.",
    responses={
        400: {"model": ErrorResponse, "description": "Unknown format"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "No progress update yet"},
    },
)
async def render_session(
    session_id: str,
    format: Annotated[
        str,
        Query(description="Formatter key, e.g. 'html' or 'plain_text'."),
    ] = "html",
) -> Response:
    stored = _get_or_404(session_id)
    if format not in FORMATTERS:
        available = ", ".join(sorted(FORMATTERS.keys()))
        raise HTTPException(
            status_code=400,
            detail="Unknown format '{}'. Available: {}".format(format, available),
        )
    update = stored.session.last_update
    if update is None:
        raise HTTPException(
            status_code=409,
            detail="Session has no progress update yet.",
        )
    output = FORMATTERS[format]().format(update)[0]
    return Response(content=output.content, media_type=output.media_type)


@app.get(
    "/sessions/{session_id}/stats",
    response_model=StatsResponse,
    tags=["sessions"],
    summary="Reading statistics of the loaded chapter",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def session_stats(session_id: str) -> StatsResponse:
    stats = text_stats(_get_or_404(session_id).session.engine.raw_text)
    return StatsResponse(
        words=stats.words,
        characters=stats.characters,
        characters_with_spaces=stats.characters_with_spaces,
        paragraphs=stats.paragraphs,
        sentences=stats.sentences,
        reading_minutes=stats.reading_minutes,
    )


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Delete a reveal session",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def delete_session(session_id: str) -> Response:
    if not session_store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Effects and formats
# ---------------------------------------------------------------------------


@app.get(
    "/effects",
    response_model=List[EffectInfo],
    tags=["effects"],
    summary="List catalog effects",
    description="All effects the dispatcher validates, with aliases and parameter specs.",
)
async def get_effects() -> List[EffectInfo]:
    return [EffectInfo(**spec.to_dict()) for spec in list_effects()]


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available render formats",
)
async def list_formats() -> List[FormatInfo]:
    _, empty_update = RevealEngine("").update(SessionState(), 0.0)
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        output = formatter.format(empty_update)[0]
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=output.suffix,
            media_type=output.media_type,
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the cue-reveal-api console script."""
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
