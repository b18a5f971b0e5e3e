"""Traceability engine facade.

Runs the trace row builder, coverage analyzer and Sankey aggregator over
one programme snapshot and bundles their output into a single report.
The engine holds no programme state: callers pass the snapshot and the
standards map on every call and decide themselves when to re-run.
An optional memo cache keyed on a fingerprint of the inputs avoids
recomputing identical snapshots (e.g. table and diagram views asking
for the same programme).
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import threading
from collections import OrderedDict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from weave.src.coverage import CoverageAnalyzer, CoverageRecord, CoverageSummary
from weave.src.models import Programme, StandardDefinition, TraceRow, TraceStatus
from weave.src.sankey import SankeyAggregator, SankeyGraph, SankeyPalette
from weave.src.trace_rows import TraceRowBuilder, TraceStats

logger = logging.getLogger(__name__)

ALL = "all"
UNKNOWN_STANDARD = "unknown"


@dataclass
class EngineConfig:
    """Configuration for the traceability engine.

    Attributes:
        memoize: Cache reports by input fingerprint.
        cache_size: Maximum number of cached reports (LRU eviction).
        palette: Sankey colour configuration.
    """

    memoize: bool = True
    cache_size: int = 32
    palette: SankeyPalette = field(default_factory=SankeyPalette)


@dataclass
class TraceabilityReport:
    """Everything the traceability views render for one snapshot.

    Attributes:
        rows: Trace rows.
        stats: Row counts by status.
        coverage: Per-standard coverage records.
        summary: Programme-wide coverage totals.
        graph: Sankey node/link graph.
    """

    rows: list[TraceRow]
    stats: TraceStats
    coverage: list[CoverageRecord]
    summary: CoverageSummary
    graph: SankeyGraph

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "rows": [r.to_dict() for r in self.rows],
            "stats": self.stats.to_dict(),
            "coverage": [c.to_dict() for c in self.coverage],
            "summary": self.summary.to_dict(),
            "graph": self.graph.to_plotly(),
        }


class TraceabilityEngine:
    """Runs the full traceability pipeline for a programme snapshot.

    Thread-safe: the only shared state is the memo cache, which is
    guarded by a lock. Cached reports are stored and handed out as deep
    copies, so callers may mutate what run() returns.

    Args:
        config: Engine configuration. Uses defaults when None.

    Example::

        engine = TraceabilityEngine()
        report = engine.run(programme, standards)
        print(report.stats.uncovered_count, "standard gaps")
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self._analyzer = CoverageAnalyzer()
        self._builder = TraceRowBuilder(self._analyzer)
        self._aggregator = SankeyAggregator(self.config.palette)
        self._cache: OrderedDict[str, TraceabilityReport] = OrderedDict()
        self._lock = threading.Lock()

    def run(
        self,
        programme: Programme,
        standards: Mapping[str, StandardDefinition] | None = None,
    ) -> TraceabilityReport:
        """Build rows, coverage and graph for a programme.

        Args:
            programme: The programme snapshot.
            standards: Pre-loaded award standard definitions keyed by ID.

        Returns:
            TraceabilityReport for the snapshot.
        """
        standards = standards or {}
        if not self.config.memoize:
            return self._compute(programme, standards)

        key = snapshot_fingerprint(programme, standards)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                logger.debug("Traceability cache hit for %s", key[:12])
                return copy.deepcopy(cached)

        report = self._compute(programme, standards)

        with self._lock:
            self._cache[key] = copy.deepcopy(report)
            self._cache.move_to_end(key)
            while len(self._cache) > max(self.config.cache_size, 0):
                self._cache.popitem(last=False)
        return report

    def clear_cache(self) -> None:
        """Drop every memoized report."""
        with self._lock:
            self._cache.clear()

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def _compute(
        self,
        programme: Programme,
        standards: Mapping[str, StandardDefinition],
    ) -> TraceabilityReport:
        result = self._builder.build(programme, standards)
        return TraceabilityReport(
            rows=result.rows,
            stats=result.stats,
            coverage=result.coverage,
            summary=self._analyzer.summarize(result.coverage),
            graph=self._aggregator.aggregate(result.rows),
        )


def snapshot_fingerprint(
    programme: Programme,
    standards: Mapping[str, StandardDefinition],
) -> str:
    """Return a stable SHA-256 fingerprint of a programme and its standards.

    Args:
        programme: The programme snapshot.
        standards: Award standard definitions keyed by ID.

    Returns:
        Hex digest identifying the inputs.
    """
    payload = {
        "programme": programme.to_dict(),
        "standards": {sid: d.to_dict() for sid, d in sorted(standards.items())},
    }
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def filter_rows(
    rows: Iterable[TraceRow],
    status: str | TraceStatus = ALL,
    module: str = ALL,
) -> list[TraceRow]:
    """Apply the traceability table's status and module filters.

    Args:
        rows: Trace rows to filter.
        status: A TraceStatus value, or "all".
        module: A module code, or "all".

    Returns:
        Matching rows in their original order.

    Raises:
        ValueError: If status is neither "all" nor a known status.
    """
    wanted_status = None if status == ALL else TraceStatus(status)
    return [
        r
        for r in rows
        if (wanted_status is None or r.status is wanted_status)
        and (module == ALL or r.module_code == module)
    ]


def group_rows_by_standard(rows: Iterable[TraceRow]) -> dict[str, list[TraceRow]]:
    """Group rows by award standard, in first-seen order.

    Rows without a standard are grouped under "unknown".

    Args:
        rows: Trace rows.

    Returns:
        Ordered mapping of award standard ID to its rows.
    """
    groups: dict[str, list[TraceRow]] = {}
    for row in rows:
        groups.setdefault(row.award_standard_id or UNKNOWN_STANDARD, []).append(row)
    return groups
