"""Award standard coverage analysis for programme learning outcomes.

Compares each award standard's reference indicator set at the
programme's NFQ level against the threads actually touched by PLO
mappings, and reports per-standard coverage plus the threads left
unaddressed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from weave.src.models import Programme, StandardDefinition, StandardIndicator
from weave.src.policy import nfq_level_or_zero, resolve_standard_name

logger = logging.getLogger(__name__)


@dataclass
class CoverageRecord:
    """Coverage status for a single award standard.

    Attributes:
        standard_id: ID of the award standard.
        standard_name: Human-readable name.
        total_indicators: Indicators the standard defines at the level.
        covered_indicators: Indicators whose thread some PLO touches.
        uncovered_threads: Threads no PLO touches, in the standard's order.
        resolved: False when the standard (or its data at the programme's
            level) was not available, so coverage could not be validated.
    """

    standard_id: str
    standard_name: str
    total_indicators: int
    covered_indicators: int
    uncovered_threads: list[str] = field(default_factory=list)
    resolved: bool = True

    @property
    def coverage_ratio(self) -> float:
        """Fraction of indicators covered (1.0 for an empty standard)."""
        if self.total_indicators == 0:
            return 1.0
        return round(self.covered_indicators / self.total_indicators, 3)

    @property
    def is_fully_covered(self) -> bool:
        return not self.uncovered_threads

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "standard_id": self.standard_id,
            "standard_name": self.standard_name,
            "total_indicators": self.total_indicators,
            "covered_indicators": self.covered_indicators,
            "uncovered_threads": list(self.uncovered_threads),
            "resolved": self.resolved,
            "coverage_ratio": self.coverage_ratio,
            "is_fully_covered": self.is_fully_covered,
        }


@dataclass
class CoverageSummary:
    """Aggregate coverage across every award standard of a programme.

    Attributes:
        total_standards: Number of award standards analysed.
        fully_covered_standards: Standards with no uncovered threads.
        unresolved_standards: Standards with no reference data at the level.
        total_indicators: Sum of indicators across standards.
        covered_indicators: Sum of covered indicators across standards.
        overall_ratio: covered_indicators / total_indicators (1.0 if none).
    """

    total_standards: int
    fully_covered_standards: int
    unresolved_standards: int
    total_indicators: int
    covered_indicators: int
    overall_ratio: float

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "total_standards": self.total_standards,
            "fully_covered_standards": self.fully_covered_standards,
            "unresolved_standards": self.unresolved_standards,
            "total_indicators": self.total_indicators,
            "covered_indicators": self.covered_indicators,
            "overall_ratio": self.overall_ratio,
        }


class CoverageAnalyzer:
    """Per-standard coverage engine.

    Stateless: the output of analyze() is a pure function of the
    programme, the standards map and the touched-thread sets.

    Example::

        analyzer = CoverageAnalyzer()
        records = analyzer.analyze(programme, standards, touched)
        for rec in records:
            print(f"{rec.standard_name}: {rec.covered_indicators}/{rec.total_indicators}")
    """

    def analyze(
        self,
        programme: Programme,
        standards: Mapping[str, StandardDefinition],
        touched_threads: Mapping[str, set[str]],
    ) -> list[CoverageRecord]:
        """Produce one coverage record per programme award standard.

        Args:
            programme: The programme snapshot.
            standards: Pre-loaded reference definitions keyed by ID.
            touched_threads: Threads touched by PLO mappings, per standard.

        Returns:
            Coverage records in award_standard_ids order.
        """
        nfq_level = nfq_level_or_zero(programme)
        records: list[CoverageRecord] = []

        for standard_id in programme.award_standard_ids:
            definition = standards.get(standard_id)
            indicators = self.indicators_for(definition, nfq_level)
            touched = touched_threads.get(standard_id, set())
            uncovered = self.uncovered_indicators(indicators, touched)
            resolved = bool(indicators)

            if not resolved:
                # Unresolved standards count as zero indicators, not as gaps.
                logger.warning(
                    "No reference data for award standard %s at NFQ level %s; "
                    "coverage cannot be validated",
                    standard_id,
                    nfq_level,
                )

            records.append(
                CoverageRecord(
                    standard_id=standard_id,
                    standard_name=resolve_standard_name(standard_id, programme, definition),
                    total_indicators=len(indicators),
                    covered_indicators=len(indicators) - len(uncovered),
                    uncovered_threads=[i.thread for i in uncovered],
                    resolved=resolved,
                )
            )

        return records

    @staticmethod
    def indicators_for(
        definition: StandardDefinition | None,
        nfq_level: int,
    ) -> list[StandardIndicator]:
        """Return a standard's indicators at a level (empty if unresolved).

        Args:
            definition: The reference definition, or None if not loaded.
            nfq_level: The programme's NFQ level (0 when unset).

        Returns:
            Ordered indicator list.
        """
        if definition is None:
            return []
        return definition.indicators_for_level(nfq_level)

    @staticmethod
    def uncovered_indicators(
        indicators: Iterable[StandardIndicator],
        touched: set[str],
    ) -> list[StandardIndicator]:
        """Return indicators whose thread is not in the touched set.

        Args:
            indicators: The standard's indicators, in reference order.
            touched: Threads touched by some PLO mapping.

        Returns:
            The failing indicators, preserving reference order.
        """
        return [i for i in indicators if i.thread not in touched]

    @staticmethod
    def summarize(records: list[CoverageRecord]) -> CoverageSummary:
        """Aggregate coverage records into programme-wide totals.

        Args:
            records: Per-standard coverage records.

        Returns:
            CoverageSummary across all standards.
        """
        total = sum(r.total_indicators for r in records)
        covered = sum(r.covered_indicators for r in records)
        return CoverageSummary(
            total_standards=len(records),
            fully_covered_standards=sum(1 for r in records if r.resolved and r.is_fully_covered),
            unresolved_standards=sum(1 for r in records if not r.resolved),
            total_indicators=total,
            covered_indicators=covered,
            overall_ratio=round(covered / total, 3) if total else 1.0,
        )
