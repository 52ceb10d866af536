"""HTTP API for reveal sessions (FastAPI + uvicorn).

WHY: Hosts outside Python drive the engine over HTTP.

HOW: sessions.py holds per-reader RevealSessions, models.py defines the
pydantic schemas, app.py wires the FastAPI routes.
"""
