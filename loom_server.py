"""Loom backend server.

Mounts the Weave traceability router under a single FastAPI
application for the programme design editor. The router is imported
lazily so that an import failure does not prevent the server from
starting -- the unified health endpoint reports whether it loaded.

Usage::

    # Development (auto-reload)
    uvicorn loom_server:app --reload --port 8430

    # Production
    uvicorn loom_server:app --host 0.0.0.0 --port 8430

    # Or run directly
    python loom_server.py
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger("loom")

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Loom API",
    description=(
        "Backend for the programme design editor: "
        "Weave (PLO to MIMLO to assessment traceability and award standard coverage)."
    ),
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS -- allow the editor's local dev origins
# ---------------------------------------------------------------------------

_ALLOWED_ORIGINS = [
    "http://localhost:5173",   # Vite dev server
    "http://localhost:8430",   # Self (for Swagger UI)
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8430",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Tool loading state
# ---------------------------------------------------------------------------

_tool_status: dict[str, dict[str, Any]] = {
    "weave": {"loaded": False, "error": None},
}


def _mount_weave() -> None:
    """Mount the Weave router at ``/api/weave/``.

    Initializes the traceability engine with its default configuration
    (memoized, LRU cache of 32 reports).
    """
    try:
        from weave.src.server import init_weave, router as weave_router

        init_weave()

        app.include_router(weave_router, prefix="/api/weave", tags=["weave"])
        _tool_status["weave"]["loaded"] = True
        logger.info("Weave router mounted at /api/weave/")
    except Exception as exc:
        _tool_status["weave"]["error"] = str(exc)
        logger.warning("Weave router failed to load: %s", exc)


# ---------------------------------------------------------------------------
# Unified health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def unified_health() -> dict[str, Any]:
    """Return health status for the Loom backend.

    Returns:
        Dictionary with overall status and per-tool breakdown.
    """
    loaded = [t["loaded"] for t in _tool_status.values()]
    if all(loaded):
        status = "ok"
    elif any(loaded):
        status = "degraded"
    else:
        status = "error"

    return {
        "status": status,
        "version": "0.1.0",
        "tools": _tool_status,
    }


_mount_weave()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run_server(host: str = "127.0.0.1", port: int = 8430) -> None:
    """Start the Loom server via uvicorn.

    Args:
        host: Bind address. Defaults to localhost.
        port: Port number. Defaults to 8430.
    """
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    run_server()
