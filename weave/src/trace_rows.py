"""Trace row derivation for the programme alignment chain.

Walks every PLO, its award standard mappings, the MIMLOs it maps onto
and the assessments claiming those MIMLOs, emitting one flat trace row
per observed link or per detected gap. Award standard indicators that
no PLO touches are folded back in as "uncovered" rows.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from weave.src.coverage import CoverageAnalyzer, CoverageRecord
from weave.src.models import (
    PLACEHOLDER,
    PLO,
    STATUS_LABELS,
    Mimlo,
    Module,
    Programme,
    StandardDefinition,
    TraceRow,
    TraceStatus,
)
from weave.src.policy import (
    effective_standard_mappings,
    format_weighting,
    nfq_level_or_zero,
    resolve_award_standard_id,
    standard_label,
)

logger = logging.getLogger(__name__)

NOT_MAPPED_TO_MIMLO = "(Not mapped to MIMLO)"
NOT_ASSESSED = "(Not assessed)"
NO_PLO_COVERS_STANDARD = "(No PLO covers this standard)"


@dataclass
class TraceStats:
    """Row counts by status.

    Attributes:
        covered_count: Rows with status ok.
        warning_count: Rows with status warning (assessment gaps).
        gap_count: Rows with status gap (PLO gaps).
        uncovered_count: Rows with status uncovered (standard gaps).
    """

    covered_count: int = 0
    warning_count: int = 0
    gap_count: int = 0
    uncovered_count: int = 0

    @property
    def total(self) -> int:
        return self.covered_count + self.warning_count + self.gap_count + self.uncovered_count

    @classmethod
    def from_rows(cls, rows: list[TraceRow]) -> TraceStats:
        """Count rows by status."""
        return cls(
            covered_count=sum(1 for r in rows if r.status is TraceStatus.OK),
            warning_count=sum(1 for r in rows if r.status is TraceStatus.WARNING),
            gap_count=sum(1 for r in rows if r.status is TraceStatus.GAP),
            uncovered_count=sum(1 for r in rows if r.status is TraceStatus.UNCOVERED),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "covered_count": self.covered_count,
            "warning_count": self.warning_count,
            "gap_count": self.gap_count,
            "uncovered_count": self.uncovered_count,
        }


@dataclass
class TraceResult:
    """Output of a single trace build.

    Attributes:
        rows: Trace rows, standard gap rows first.
        stats: Row counts by status.
        coverage: Per-standard coverage records.
        touched_threads: Threads touched by PLO mappings, per standard.
    """

    rows: list[TraceRow] = field(default_factory=list)
    stats: TraceStats = field(default_factory=TraceStats)
    coverage: list[CoverageRecord] = field(default_factory=list)
    touched_threads: dict[str, set[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "rows": [r.to_dict() for r in self.rows],
            "stats": self.stats.to_dict(),
            "coverage": [c.to_dict() for c in self.coverage],
        }


@dataclass(frozen=True)
class _MimloRef:
    module: Module
    mimlo: Mimlo
    index: int


class TraceRowBuilder:
    """Derives trace rows from a programme snapshot.

    Pure: no I/O and no mutation of its inputs. Runs in time
    proportional to PLO links plus MIMLOs and assessments.

    Args:
        analyzer: Coverage analyzer used for the standard gap step.

    Example::

        result = TraceRowBuilder().build(programme, standards)
        print(result.stats.gap_count, "PLO gaps")
    """

    def __init__(self, analyzer: CoverageAnalyzer | None = None) -> None:
        self._analyzer = analyzer or CoverageAnalyzer()

    def build(
        self,
        programme: Programme,
        standards: Mapping[str, StandardDefinition],
    ) -> TraceResult:
        """Build trace rows, stats and coverage for a programme.

        Args:
            programme: The programme snapshot.
            standards: Pre-loaded award standard definitions keyed by ID.

        Returns:
            TraceResult with rows, stats, coverage and touched threads.
        """
        lookup = self._index_mimlos(programme)
        touched: dict[str, set[str]] = {sid: set() for sid in programme.award_standard_ids}
        rows: list[TraceRow] = []

        for plo_idx, plo in enumerate(programme.plos):
            plo_num = plo_idx + 1
            mimlo_ids = programme.mimlo_ids_for(plo.id)

            for mapping in effective_standard_mappings(plo):
                award_id = resolve_award_standard_id(mapping, programme)
                label = standard_label(mapping.criteria, mapping.thread)

                if mapping.thread and award_id in touched:
                    touched[award_id].add(mapping.thread)

                if not mimlo_ids:
                    rows.append(self._plo_gap_row(award_id, label, plo_num, plo))
                    continue

                for mimlo_id in mimlo_ids:
                    ref = lookup.get(mimlo_id)
                    if ref is None:
                        logger.debug("PLO %s maps to unknown MIMLO %s; skipped", plo.id, mimlo_id)
                        continue
                    rows.extend(self._mimlo_rows(award_id, label, plo_num, plo, mimlo_id, ref))

        coverage = self._analyzer.analyze(programme, standards, touched)
        rows = self._standard_gap_rows(programme, standards, touched) + rows

        stats = TraceStats.from_rows(rows)
        logger.debug(
            "Built %d trace rows for %d PLOs (%d ok, %d warning, %d gap, %d uncovered)",
            len(rows),
            len(programme.plos),
            stats.covered_count,
            stats.warning_count,
            stats.gap_count,
            stats.uncovered_count,
        )
        return TraceResult(rows=rows, stats=stats, coverage=coverage, touched_threads=touched)

    # --- Private helpers ---

    @staticmethod
    def _index_mimlos(programme: Programme) -> dict[str, _MimloRef]:
        """Map every MIMLO ID to its owning module and 1-based position."""
        lookup: dict[str, _MimloRef] = {}
        for module in programme.modules:
            for idx, mimlo in enumerate(module.mimlos):
                lookup[mimlo.id] = _MimloRef(module=module, mimlo=mimlo, index=idx + 1)
        return lookup

    @staticmethod
    def _plo_gap_row(award_id: str | None, label: str, plo_num: int, plo: PLO) -> TraceRow:
        return TraceRow(
            award_standard_id=award_id,
            standard_label=label,
            plo_num=plo_num,
            plo_text=plo.text,
            module_code=PLACEHOLDER,
            module_title=NOT_MAPPED_TO_MIMLO,
            mimlo_num=PLACEHOLDER,
            status=TraceStatus.GAP,
            status_label=STATUS_LABELS[TraceStatus.GAP],
        )

    @staticmethod
    def _mimlo_rows(
        award_id: str | None,
        label: str,
        plo_num: int,
        plo: PLO,
        mimlo_id: str,
        ref: _MimloRef,
    ) -> list[TraceRow]:
        """Rows for one mapped MIMLO: one warning, or one per assessment."""
        base = {
            "award_standard_id": award_id,
            "standard_label": label,
            "plo_num": plo_num,
            "plo_text": plo.text,
            "module_code": ref.module.code,
            "module_title": ref.module.title,
            "mimlo_num": ref.index,
            "mimlo_text": ref.mimlo.text,
        }
        assessments = ref.module.assessments_for(mimlo_id)
        if not assessments:
            return [
                TraceRow(
                    **base,
                    assessment_title=PLACEHOLDER,
                    assessment_type=NOT_ASSESSED,
                    status=TraceStatus.WARNING,
                    status_label=STATUS_LABELS[TraceStatus.WARNING],
                )
            ]
        return [
            TraceRow(
                **base,
                assessment_title=asm.title,
                assessment_type=asm.type,
                assessment_weight=format_weighting(asm.weighting),
                status=TraceStatus.OK,
                status_label=STATUS_LABELS[TraceStatus.OK],
            )
            for asm in assessments
        ]

    def _standard_gap_rows(
        self,
        programme: Programme,
        standards: Mapping[str, StandardDefinition],
        touched: Mapping[str, set[str]],
    ) -> list[TraceRow]:
        """Rows for indicators no PLO touches, in final (prepended) order.

        Each gap row is pushed onto the front of the row list in discovery
        order, so the block reads in reverse discovery order.
        """
        nfq_level = nfq_level_or_zero(programme)
        gap_rows: list[TraceRow] = []
        for standard_id in programme.award_standard_ids:
            indicators = self._analyzer.indicators_for(standards.get(standard_id), nfq_level)
            for indicator in self._analyzer.uncovered_indicators(
                indicators, touched.get(standard_id, set())
            ):
                gap_rows.insert(
                    0,
                    TraceRow(
                        award_standard_id=standard_id,
                        standard_label=standard_label(indicator.criteria, indicator.thread),
                        plo_num=PLACEHOLDER,
                        plo_text=NO_PLO_COVERS_STANDARD,
                        module_code=PLACEHOLDER,
                        mimlo_num=PLACEHOLDER,
                        status=TraceStatus.UNCOVERED,
                        status_label=STATUS_LABELS[TraceStatus.UNCOVERED],
                    ),
                )
        return gap_rows
