"""FastAPI router for Weave traceability analysis.

Exposes REST endpoints that run the traceability engine over a
programme snapshot posted by the editor: trace rows, award standard
coverage, the Sankey graph, the combined report and a CSV export of the
traceability matrix. Designed to be mounted at /api/weave/ by the parent
application.

All endpoint functions are synchronous (not async) because the engine
is pure CPU-bound Python. FastAPI runs sync handlers in a thread pool
automatically.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from shared.errors import ErrorFormatter
from weave.src.engine import ALL, EngineConfig, TraceabilityEngine, filter_rows
from weave.src.export import CSV_FILENAME, rows_to_csv_text
from weave.src.models import (
    DocumentFormatError,
    Programme,
    StandardDefinition,
    standards_from_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Module-level engine instance (initialized by init_weave)
# ---------------------------------------------------------------------------

_engine: TraceabilityEngine | None = None
_formatter = ErrorFormatter(component="weave")


def init_weave(config: EngineConfig | None = None) -> TraceabilityEngine:
    """Initialize the traceability engine used by the router.

    Call this once at application startup before any requests are served.

    Args:
        config: Engine configuration. Uses defaults when None.

    Returns:
        The initialized TraceabilityEngine instance.
    """
    global _engine

    _engine = TraceabilityEngine(config)
    return _engine


def get_engine() -> TraceabilityEngine:
    """Return the initialized TraceabilityEngine or raise.

    Raises:
        HTTPException: If the engine has not been initialized.
    """
    if _engine is None:
        raise HTTPException(
            status_code=500,
            detail="Weave engine not initialized",
        )
    return _engine


# ---------------------------------------------------------------------------
# Pydantic request models
# ---------------------------------------------------------------------------


class TraceRequest(BaseModel):
    """Request body carrying a programme snapshot and its standards."""

    programme: dict[str, Any]
    standards: dict[str, dict[str, Any]] = Field(default_factory=dict)


class CsvExportRequest(TraceRequest):
    """Request body for exporting the traceability matrix as CSV."""

    status_filter: str = Field(default=ALL, max_length=20)
    module_filter: str = Field(default=ALL, max_length=100)


def _load(body: TraceRequest) -> tuple[Programme, dict[str, StandardDefinition]]:
    """Parse the request documents, mapping format errors to HTTP 422."""
    try:
        programme = Programme.from_dict(body.programme)
    except DocumentFormatError as exc:
        raise HTTPException(
            status_code=422, detail=_formatter.format_document_error(exc).to_dict()
        ) from exc
    try:
        standards = standards_from_dict(body.standards)
    except DocumentFormatError as exc:
        raise HTTPException(
            status_code=422, detail=_formatter.format_standards_error(exc).to_dict()
        ) from exc
    return programme, standards


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health")
def health_check() -> dict[str, Any]:
    """Return Weave service health status.

    Returns:
        Dict with status, version, and engine availability.
    """
    return {
        "status": "ok",
        "service": "weave",
        "version": "0.1.0",
        "engine_initialized": _engine is not None,
    }


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


@router.post("/trace")
def trace(body: TraceRequest) -> dict[str, Any]:
    """Build the traceability table rows for a programme.

    Args:
        body: Programme snapshot and standards.

    Returns:
        Dict with rows and per-status stats.
    """
    try:
        programme, standards = _load(body)
        report = get_engine().run(programme, standards)
        return {
            "rows": [r.to_dict() for r in report.rows],
            "stats": report.stats.to_dict(),
        }
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Trace build failed")
        raise HTTPException(status_code=500, detail="Failed to build trace rows") from exc


@router.post("/coverage")
def coverage(body: TraceRequest) -> dict[str, Any]:
    """Report award standard coverage for a programme.

    Args:
        body: Programme snapshot and standards.

    Returns:
        Dict with per-standard coverage records and a summary.
    """
    try:
        programme, standards = _load(body)
        report = get_engine().run(programme, standards)
        return {
            "coverage": [c.to_dict() for c in report.coverage],
            "summary": report.summary.to_dict(),
        }
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Coverage analysis failed")
        raise HTTPException(status_code=500, detail="Failed to analyse coverage") from exc


@router.post("/sankey")
def sankey(body: TraceRequest) -> dict[str, Any]:
    """Return the alignment Sankey graph for a programme.

    Args:
        body: Programme snapshot and standards.

    Returns:
        Plotly-shaped node/link dict plus an is_empty flag.
    """
    try:
        programme, standards = _load(body)
        graph = get_engine().run(programme, standards).graph
        return {"is_empty": graph.is_empty, **graph.to_plotly()}
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Sankey aggregation failed")
        raise HTTPException(status_code=500, detail="Failed to build Sankey graph") from exc


@router.post("/report")
def report(body: TraceRequest) -> dict[str, Any]:
    """Return rows, stats, coverage and graph in one response.

    Args:
        body: Programme snapshot and standards.

    Returns:
        Full traceability report dict.
    """
    try:
        programme, standards = _load(body)
        return get_engine().run(programme, standards).to_dict()
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Traceability report failed")
        raise HTTPException(status_code=500, detail="Failed to build report") from exc


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


@router.post("/export/csv")
def export_csv(body: CsvExportRequest) -> Response:
    """Export the (optionally filtered) traceability matrix as CSV.

    Args:
        body: Programme snapshot, standards and table filters.

    Returns:
        text/csv attachment response.
    """
    try:
        programme, standards = _load(body)
        rows = get_engine().run(programme, standards).rows
        try:
            rows = filter_rows(rows, status=body.status_filter, module=body.module_filter)
        except ValueError as exc:
            raise HTTPException(
                status_code=422, detail=_formatter.format_query_error(exc).to_dict()
            ) from exc
        return Response(
            content=rows_to_csv_text(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
        )
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("CSV export failed")
        raise HTTPException(status_code=500, detail="Failed to export CSV") from exc
