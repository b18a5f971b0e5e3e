"""Tests for the traceability engine facade."""

from __future__ import annotations

from typing import Any

import pytest

from weave.src.engine import (
    UNKNOWN_STANDARD,
    EngineConfig,
    TraceabilityEngine,
    filter_rows,
    group_rows_by_standard,
    snapshot_fingerprint,
)
from weave.src.models import Programme, StandardDefinition, TraceStatus


@pytest.fixture
def engine() -> TraceabilityEngine:
    return TraceabilityEngine()


class TestRun:
    """Tests for TraceabilityEngine.run."""

    def test_report_contents(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        report = engine.run(programme, standards)
        assert len(report.rows) == 5
        assert report.stats.total == 5
        assert report.coverage[0].standard_name == "Computing"
        assert report.summary.total_indicators == 4
        assert report.summary.covered_indicators == 2
        assert len(report.graph.node_labels) == 7

    def test_standards_optional(self, engine: TraceabilityEngine, programme: Programme) -> None:
        report = engine.run(programme)
        assert report.stats.uncovered_count == 0
        assert report.summary.unresolved_standards == 1

    def test_to_dict_is_plotly_shaped(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        data = engine.run(programme, standards).to_dict()
        assert set(data) == {"rows", "stats", "coverage", "summary", "graph"}
        assert set(data["graph"]) == {"node", "link"}


class TestMemoization:
    """Tests for the report cache."""

    def test_identical_snapshot_hits_cache(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        calls: list[int] = []
        compute = engine._compute

        def counting_compute(*args: Any) -> Any:
            calls.append(1)
            return compute(*args)

        monkeypatch.setattr(engine, "_compute", counting_compute)
        first = engine.run(programme, standards)
        second = engine.run(Programme.from_dict(programme.to_dict()), standards)
        assert len(calls) == 1
        assert second.to_dict() == first.to_dict()
        assert engine.cache_size == 1

    def test_mutating_returned_report_does_not_corrupt_cache(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        first = engine.run(programme, standards)
        first.rows.clear()
        first.coverage[0].uncovered_threads.clear()
        first.graph.node_labels.clear()

        second = engine.run(programme, standards)
        assert len(second.rows) == 5
        assert second.coverage[0].uncovered_threads == ["Kind", "Context"]
        assert len(second.graph.node_labels) == 7

        second.rows.clear()
        assert len(engine.run(programme, standards).rows) == 5

    def test_changed_snapshot_recomputes(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        first = engine.run(programme, standards)
        programme.plo_to_mimlos["plo_3"] = ["m1"]
        second = engine.run(programme, standards)
        assert second is not first
        assert second.stats.gap_count == 0

    def test_lru_eviction(self, programme: Programme) -> None:
        engine = TraceabilityEngine(EngineConfig(cache_size=1))
        engine.run(programme)
        engine.run(Programme())
        assert engine.cache_size == 1

    def test_memoize_disabled(
        self, programme: Programme, standards: dict[str, StandardDefinition]
    ) -> None:
        engine = TraceabilityEngine(EngineConfig(memoize=False))
        first = engine.run(programme, standards)
        second = engine.run(programme, standards)
        assert first is not second
        assert first.to_dict() == second.to_dict()
        assert engine.cache_size == 0

    def test_clear_cache(self, engine: TraceabilityEngine, programme: Programme) -> None:
        engine.run(programme)
        engine.clear_cache()
        assert engine.cache_size == 0

    def test_fingerprint_stable(
        self, programme: Programme, standards: dict[str, StandardDefinition]
    ) -> None:
        assert snapshot_fingerprint(programme, standards) == snapshot_fingerprint(
            Programme.from_dict(programme.to_dict()), dict(standards)
        )
        assert snapshot_fingerprint(programme, standards) != snapshot_fingerprint(programme, {})


class TestFilterRows:
    """Tests for the table's status and module filters."""

    def test_all_passes_everything(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        rows = engine.run(programme, standards).rows
        assert filter_rows(rows) == rows

    def test_by_status(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        rows = engine.run(programme, standards).rows
        assert len(filter_rows(rows, status="uncovered")) == 2
        assert len(filter_rows(rows, status=TraceStatus.OK)) == 1

    def test_by_module(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        rows = engine.run(programme, standards).rows
        filtered = filter_rows(rows, module="COMP101")
        assert [r.status for r in filtered] == [TraceStatus.OK, TraceStatus.WARNING]
        assert filter_rows(rows, status="warning", module="COMP101")[0].mimlo_num == 2

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError):
            filter_rows([], status="bogus")


class TestGroupRowsByStandard:
    def test_groups(
        self,
        engine: TraceabilityEngine,
        programme: Programme,
        standards: dict[str, StandardDefinition],
    ) -> None:
        rows = engine.run(programme, standards).rows
        groups = group_rows_by_standard(rows)
        assert list(groups) == ["std_comp"]
        assert len(groups["std_comp"]) == 5

    def test_rows_without_standard(
        self, engine: TraceabilityEngine, covered_chain: Programme
    ) -> None:
        groups = group_rows_by_standard(engine.run(covered_chain).rows)
        assert list(groups) == [UNKNOWN_STANDARD]
