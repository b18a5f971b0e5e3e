"""Tests for award standard coverage analysis."""

from __future__ import annotations

import logging

import pytest

from weave.src.coverage import CoverageAnalyzer, CoverageRecord, CoverageSummary
from weave.src.models import Programme, StandardDefinition, StandardIndicator

# --- Fixtures ---


@pytest.fixture
def analyzer() -> CoverageAnalyzer:
    return CoverageAnalyzer()


@pytest.fixture
def two_standards() -> dict[str, StandardDefinition]:
    """Two synthetic standards at level 7."""
    return {
        "s1": StandardDefinition(
            id="s1",
            name="Standard One",
            levels={
                7: [
                    StandardIndicator("Knowledge", "Breadth"),
                    StandardIndicator("Knowledge", "Kind"),
                    StandardIndicator("Skill", "Range"),
                ]
            },
        ),
        "s2": StandardDefinition(
            id="s2",
            name="Standard Two",
            levels={7: [StandardIndicator("Competence", "Context")]},
        ),
    }


# --- Per-standard analysis ---


class TestAnalyze:
    """Tests for CoverageAnalyzer.analyze."""

    def test_counts_and_uncovered_order(
        self, analyzer: CoverageAnalyzer, two_standards: dict[str, StandardDefinition]
    ) -> None:
        programme = Programme(nfq_level=7, award_standard_ids=["s1"])
        # Insertion order of the touched set must not matter.
        touched = {"s1": {"Range"}}
        records = analyzer.analyze(programme, two_standards, touched)
        assert len(records) == 1
        record = records[0]
        assert record.standard_id == "s1"
        assert record.standard_name == "Standard One"
        assert record.total_indicators == 3
        assert record.covered_indicators == 1
        assert record.uncovered_threads == ["Breadth", "Kind"]
        assert record.resolved is True
        assert not record.is_fully_covered

    def test_records_follow_programme_order(
        self, analyzer: CoverageAnalyzer, two_standards: dict[str, StandardDefinition]
    ) -> None:
        programme = Programme(nfq_level=7, award_standard_ids=["s2", "s1"])
        records = analyzer.analyze(programme, two_standards, {})
        assert [r.standard_id for r in records] == ["s2", "s1"]

    def test_coverage_conservation(
        self, analyzer: CoverageAnalyzer, two_standards: dict[str, StandardDefinition]
    ) -> None:
        programme = Programme(nfq_level=7, award_standard_ids=["s1", "s2"])
        touched = {"s1": {"Breadth", "Unknown"}, "s2": {"Context"}}
        for record in analyzer.analyze(programme, two_standards, touched):
            assert record.covered_indicators + len(record.uncovered_threads) == record.total_indicators

    def test_fully_covered(
        self, analyzer: CoverageAnalyzer, two_standards: dict[str, StandardDefinition]
    ) -> None:
        programme = Programme(nfq_level=7, award_standard_ids=["s2"])
        record = analyzer.analyze(programme, two_standards, {"s2": {"Context"}})[0]
        assert record.is_fully_covered
        assert record.coverage_ratio == 1.0

    def test_missing_standard_is_unresolved(
        self, analyzer: CoverageAnalyzer, caplog: pytest.LogCaptureFixture
    ) -> None:
        programme = Programme(nfq_level=7, award_standard_ids=["ghost"])
        with caplog.at_level(logging.WARNING, logger="weave.src.coverage"):
            record = analyzer.analyze(programme, {}, {})[0]
        assert record.total_indicators == 0
        assert record.covered_indicators == 0
        assert record.uncovered_threads == []
        assert record.resolved is False
        assert record.standard_name == "ghost"
        assert "ghost" in caplog.text

    def test_missing_level_is_unresolved(
        self, analyzer: CoverageAnalyzer, two_standards: dict[str, StandardDefinition]
    ) -> None:
        programme = Programme(nfq_level=9, award_standard_ids=["s1"])
        record = analyzer.analyze(programme, two_standards, {})[0]
        assert record.total_indicators == 0
        assert record.resolved is False

    def test_programme_name_preferred(
        self, analyzer: CoverageAnalyzer, two_standards: dict[str, StandardDefinition]
    ) -> None:
        programme = Programme(
            nfq_level=7, award_standard_ids=["s1"], award_standard_names=["Local Name"]
        )
        assert analyzer.analyze(programme, two_standards, {})[0].standard_name == "Local Name"


class TestUncoveredIndicators:
    def test_pure_function_of_inputs(self) -> None:
        indicators = [StandardIndicator("A", "x"), StandardIndicator("B", "y"), StandardIndicator("C", "z")]
        result = CoverageAnalyzer.uncovered_indicators(indicators, {"y"})
        assert [i.thread for i in result] == ["x", "z"]


# --- Summary ---


class TestSummarize:
    """Tests for programme-wide coverage totals."""

    def test_summary(self) -> None:
        records = [
            CoverageRecord("s1", "One", 4, 2, ["a", "b"]),
            CoverageRecord("s2", "Two", 2, 2, []),
            CoverageRecord("s3", "Three", 0, 0, [], resolved=False),
        ]
        summary = CoverageAnalyzer.summarize(records)
        assert summary == CoverageSummary(
            total_standards=3,
            fully_covered_standards=1,
            unresolved_standards=1,
            total_indicators=6,
            covered_indicators=4,
            overall_ratio=0.667,
        )

    def test_empty_summary(self) -> None:
        summary = CoverageAnalyzer.summarize([])
        assert summary.total_standards == 0
        assert summary.overall_ratio == 1.0

    def test_record_to_dict(self) -> None:
        data = CoverageRecord("s1", "One", 4, 3, ["a"]).to_dict()
        assert data["coverage_ratio"] == 0.75
        assert data["is_fully_covered"] is False
        assert data["uncovered_threads"] == ["a"]
