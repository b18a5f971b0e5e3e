"""Weave data models for programme traceability.

Defines the programme snapshot consumed by the traceability engine
(programme, PLOs, modules, MIMLOs, assessments), the award standard
reference definitions, and the derived trace row. All models use
dataclasses with serialization support. Input models read the editor's
saved-document format (camelCase keys) so a programme JSON file can be
loaded without translation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Marks an absent PLO, module or MIMLO in a trace row.
PLACEHOLDER = "—"


class DocumentFormatError(ValueError):
    """Raised when a programme or standard document is structurally invalid."""


class TraceStatus(str, Enum):
    """Coverage status of a single trace row."""

    OK = "ok"
    WARNING = "warning"
    GAP = "gap"
    UNCOVERED = "uncovered"


STATUS_LABELS: dict[TraceStatus, str] = {
    TraceStatus.OK: "Covered",
    TraceStatus.WARNING: "Assessment Gap",
    TraceStatus.GAP: "PLO Gap",
    TraceStatus.UNCOVERED: "Standard Gap",
}


def _require_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DocumentFormatError(f"{kind} must be an object, got {type(data).__name__}")
    return data


def _require_id(data: Mapping[str, Any], kind: str) -> str:
    value = data.get("id")
    if value is None or value == "":
        raise DocumentFormatError(f"{kind} is missing an 'id'")
    return str(value)


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    raise DocumentFormatError(f"Expected a list, got {type(value).__name__}")


# ===================================================================
# Programme snapshot
# ===================================================================


@dataclass
class StandardMapping:
    """Link from a PLO to one award standard indicator.

    Attributes:
        criteria: Broad category within the standard (e.g. "Knowledge").
        thread: Specific indicator within the criteria (e.g. "Breadth").
            Empty for the synthetic unmapped placeholder.
        standard_id: Award standard the indicator belongs to. None means
            "the programme's default standard".
    """

    criteria: str
    thread: str = ""
    standard_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "criteria": self.criteria,
            "thread": self.thread,
            "standardId": self.standard_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StandardMapping:
        """Deserialize from dictionary."""
        data = _require_mapping(data, "Standard mapping")
        standard_id = data.get("standardId")
        return cls(
            criteria=str(data.get("criteria") or ""),
            thread=str(data.get("thread") or ""),
            standard_id=str(standard_id) if standard_id else None,
        )


@dataclass
class PLO:
    """A programme learning outcome.

    Attributes:
        id: Unique identifier within the programme.
        text: Outcome statement.
        standard_mappings: Award standard indicators this PLO addresses.
    """

    id: str
    text: str = ""
    standard_mappings: list[StandardMapping] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "standardMappings": [m.to_dict() for m in self.standard_mappings],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PLO:
        """Deserialize from dictionary."""
        data = _require_mapping(data, "PLO")
        return cls(
            id=_require_id(data, "PLO"),
            text=str(data.get("text") or ""),
            standard_mappings=[
                StandardMapping.from_dict(m) for m in _as_list(data.get("standardMappings"))
            ],
        )


@dataclass
class Mimlo:
    """A module intended minimum learning outcome.

    Attributes:
        id: Unique identifier across the programme.
        text: Outcome statement.
    """

    id: str
    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"id": self.id, "text": self.text}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Mimlo:
        """Deserialize from dictionary."""
        data = _require_mapping(data, "MIMLO")
        return cls(id=_require_id(data, "MIMLO"), text=str(data.get("text") or ""))


@dataclass
class Assessment:
    """An assessment owned by a module.

    Attributes:
        id: Unique identifier.
        title: Display title (e.g. "Assignment 1").
        type: Assessment type (e.g. "Report", "Exam").
        weighting: Percentage of the module grade; None when unset.
        mimlo_ids: MIMLOs this assessment claims to assess.
    """

    id: str
    title: str = ""
    type: str = ""
    weighting: float | None = None
    mimlo_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "weighting": self.weighting,
            "mimloIds": self.mimlo_ids,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Assessment:
        """Deserialize from dictionary."""
        data = _require_mapping(data, "Assessment")
        weighting = data.get("weighting")
        if weighting in (None, ""):
            weighting = None
        else:
            try:
                weighting = float(weighting)
            except (TypeError, ValueError) as exc:
                raise DocumentFormatError(
                    f"Assessment {data.get('id')!r} has a non-numeric weighting"
                ) from exc
        return cls(
            id=_require_id(data, "Assessment"),
            title=str(data.get("title") or ""),
            type=str(data.get("type") or ""),
            weighting=weighting,
            mimlo_ids=[str(m) for m in _as_list(data.get("mimloIds"))],
        )


@dataclass
class Module:
    """A module in the programme, owning its MIMLOs and assessments.

    Attributes:
        id: Unique identifier.
        code: Short module code (e.g. "COMP101").
        title: Module title.
        mimlos: Ordered learning outcomes owned by this module.
        assessments: Ordered assessments owned by this module.
    """

    id: str
    code: str = ""
    title: str = ""
    mimlos: list[Mimlo] = field(default_factory=list)
    assessments: list[Assessment] = field(default_factory=list)

    def assessments_for(self, mimlo_id: str) -> list[Assessment]:
        """Return assessments claiming the given MIMLO, in module order."""
        return [a for a in self.assessments if mimlo_id in a.mimlo_ids]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "code": self.code,
            "title": self.title,
            "mimlos": [m.to_dict() for m in self.mimlos],
            "assessments": [a.to_dict() for a in self.assessments],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Module:
        """Deserialize from dictionary."""
        data = _require_mapping(data, "Module")
        return cls(
            id=_require_id(data, "Module"),
            code=str(data.get("code") or ""),
            title=str(data.get("title") or ""),
            mimlos=[Mimlo.from_dict(m) for m in _as_list(data.get("mimlos"))],
            assessments=[Assessment.from_dict(a) for a in _as_list(data.get("assessments"))],
        )


@dataclass
class Programme:
    """Root aggregate of a programme snapshot.

    The engine only reads a programme; it never mutates one.

    Attributes:
        nfq_level: NFQ level (6-9), or None when unset.
        award_standard_ids: Ordered, unique award standard IDs.
        award_standard_names: Display names parallel to award_standard_ids.
        plos: Ordered programme learning outcomes.
        modules: Ordered modules.
        plo_to_mimlos: PLO ID to the MIMLO IDs it maps onto. May hold
            IDs of MIMLOs that no longer exist.
    """

    nfq_level: int | None = None
    award_standard_ids: list[str] = field(default_factory=list)
    award_standard_names: list[str] = field(default_factory=list)
    plos: list[PLO] = field(default_factory=list)
    modules: list[Module] = field(default_factory=list)
    plo_to_mimlos: dict[str, list[str]] = field(default_factory=dict)

    def mimlo_ids_for(self, plo_id: str) -> list[str]:
        """Return MIMLO IDs mapped from a PLO (empty when unmapped)."""
        return self.plo_to_mimlos.get(plo_id, [])

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "nfqLevel": self.nfq_level,
            "awardStandardIds": self.award_standard_ids,
            "awardStandardNames": self.award_standard_names,
            "plos": [p.to_dict() for p in self.plos],
            "modules": [m.to_dict() for m in self.modules],
            "ploToMimlos": self.plo_to_mimlos,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Programme:
        """Deserialize from an editor programme document.

        Raises:
            DocumentFormatError: If the document shape is invalid.
        """
        data = _require_mapping(data, "Programme")

        level = data.get("nfqLevel")
        if level in (None, ""):
            nfq_level = None
        else:
            try:
                nfq_level = int(level)
            except (TypeError, ValueError) as exc:
                raise DocumentFormatError(f"Invalid nfqLevel: {level!r}") from exc

        # Award standard IDs must stay unique; keep first occurrence order.
        # Names are parallel to IDs, so each name is dropped with its ID.
        raw_names = [str(n) for n in _as_list(data.get("awardStandardNames"))]
        standard_ids: list[str] = []
        standard_names: list[str] = []
        for idx, sid in enumerate(_as_list(data.get("awardStandardIds"))):
            if not sid or str(sid) in standard_ids:
                continue
            standard_ids.append(str(sid))
            if idx < len(raw_names):
                standard_names.append(raw_names[idx])

        raw_links = data.get("ploToMimlos") or {}
        links = _require_mapping(raw_links, "ploToMimlos")

        return cls(
            nfq_level=nfq_level,
            award_standard_ids=standard_ids,
            award_standard_names=standard_names,
            plos=[PLO.from_dict(p) for p in _as_list(data.get("plos"))],
            modules=[Module.from_dict(m) for m in _as_list(data.get("modules"))],
            plo_to_mimlos={
                str(plo_id): [str(m) for m in _as_list(mimlo_ids)]
                for plo_id, mimlo_ids in links.items()
            },
        )


# ===================================================================
# Award standards
# ===================================================================


@dataclass(frozen=True)
class StandardIndicator:
    """One criteria/thread pair of an award standard at a given level.

    Attributes:
        criteria: Broad category (e.g. "Knowledge").
        thread: Specific indicator (e.g. "Breadth").
        descriptor: Optional descriptor text for the level.
    """

    criteria: str
    thread: str
    descriptor: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"criteria": self.criteria, "thread": self.thread, "descriptor": self.descriptor}


@dataclass
class StandardDefinition:
    """Reference definition of an award standard.

    Attributes:
        id: Standard identifier.
        name: Display name.
        levels: NFQ level to the full ordered indicator list at that level.
    """

    id: str
    name: str = ""
    levels: dict[int, list[StandardIndicator]] = field(default_factory=dict)

    def indicators_for_level(self, nfq_level: int | None) -> list[StandardIndicator]:
        """Return the indicators at a level, or an empty list if absent."""
        if nfq_level is None:
            return []
        return list(self.levels.get(nfq_level, []))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (flat ``levels`` form)."""
        return {
            "id": self.id,
            "name": self.name,
            "levels": {
                str(level): [i.to_dict() for i in indicators]
                for level, indicators in sorted(self.levels.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], standard_id: str | None = None) -> StandardDefinition:
        """Deserialize from a standards reference document.

        Accepts the flat form ``{"levels": {"8": [{criteria, thread}]}}``
        and the hierarchical form ``{"nfqLevels": [{level,
        indicatorGroups: [{name, indicators: [{name, descriptor}]}]}]}``.
        When both are present the hierarchical form wins.

        Args:
            data: Raw standard document.
            standard_id: ID to use when the document carries none.

        Raises:
            DocumentFormatError: If the document shape is invalid.
        """
        data = _require_mapping(data, "Standard")
        sid = data.get("id") or data.get("standard_id") or standard_id
        if not sid:
            raise DocumentFormatError("Standard is missing an 'id'")

        levels: dict[int, list[StandardIndicator]] = {}
        raw_levels = data.get("levels") or {}
        for level, indicators in _require_mapping(raw_levels, "levels").items():
            levels[_level_key(level)] = [
                StandardIndicator(
                    criteria=str(ind.get("criteria") or ""),
                    thread=str(ind.get("thread") or ""),
                    descriptor=str(ind.get("descriptor") or ""),
                )
                for ind in (_require_mapping(i, "Indicator") for i in _as_list(indicators))
            ]

        for level_data in _as_list(data.get("nfqLevels")):
            level_data = _require_mapping(level_data, "nfqLevels entry")
            indicators: list[StandardIndicator] = []
            for group in _as_list(level_data.get("indicatorGroups")):
                group = _require_mapping(group, "Indicator group")
                for ind in _as_list(group.get("indicators")):
                    ind = _require_mapping(ind, "Indicator")
                    indicators.append(
                        StandardIndicator(
                            criteria=str(group.get("name") or ""),
                            thread=str(ind.get("name") or ""),
                            descriptor=str(ind.get("descriptor") or ""),
                        )
                    )
            levels[_level_key(level_data.get("level"))] = indicators

        return cls(id=str(sid), name=str(data.get("name") or data.get("title") or ""), levels=levels)


def _level_key(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DocumentFormatError(f"Invalid NFQ level key: {value!r}") from exc


def standards_from_dict(data: Mapping[str, Any] | None) -> dict[str, StandardDefinition]:
    """Build a standards map from ``{standard_id: document}``.

    Args:
        data: Mapping of standard ID to raw standard document.

    Returns:
        Mapping of standard ID to StandardDefinition.
    """
    if not data:
        return {}
    data = _require_mapping(data, "Standards map")
    return {str(sid): StandardDefinition.from_dict(doc, standard_id=str(sid)) for sid, doc in data.items()}


# ===================================================================
# Derived records
# ===================================================================


TABLE_COLUMNS = [
    "Award Standard",
    "PLO",
    "PLO Text",
    "Module",
    "Module Title",
    "MIMLO",
    "MIMLO Text",
    "Assessment",
    "Type",
    "Weight",
    "Status",
]


@dataclass(frozen=True)
class TraceRow:
    """One observed link, or one detected gap, in the alignment chain.

    Rows have no identity beyond their field values.

    Attributes:
        award_standard_id: Standard the row is attributed to (None when the
            programme has no award standards).
        standard_label: "criteria — thread", or just the criteria.
        plo_num: 1-based PLO index, or PLACEHOLDER for standard gap rows.
        plo_text: PLO statement.
        module_code: Module code, or PLACEHOLDER.
        module_title: Module title (or an explanatory note on gap rows).
        mimlo_num: 1-based MIMLO index within its module, or PLACEHOLDER.
        mimlo_text: MIMLO statement.
        assessment_title: Assessment title; PLACEHOLDER when unassessed.
        assessment_type: Assessment type.
        assessment_weight: Formatted weighting (e.g. "40%") or "".
        status: Coverage status.
        status_label: Human-readable status.
    """

    award_standard_id: str | None
    standard_label: str
    plo_num: int | str
    plo_text: str
    module_code: str = PLACEHOLDER
    module_title: str = ""
    mimlo_num: int | str = PLACEHOLDER
    mimlo_text: str = ""
    assessment_title: str = ""
    assessment_type: str = ""
    assessment_weight: str = ""
    status: TraceStatus = TraceStatus.GAP
    status_label: str = ""

    @property
    def has_plo(self) -> bool:
        return self.plo_num != PLACEHOLDER

    @property
    def has_module(self) -> bool:
        return bool(self.module_code) and self.module_code != PLACEHOLDER

    @property
    def has_mimlo(self) -> bool:
        return self.mimlo_num != PLACEHOLDER

    @property
    def has_assessment(self) -> bool:
        return bool(self.assessment_title) and self.assessment_title != PLACEHOLDER

    def to_table_cells(self) -> list[str]:
        """Project the row onto the traceability table columns.

        Returns:
            Cell values in TABLE_COLUMNS order.
        """
        return [
            self.standard_label,
            f"PLO {self.plo_num}" if self.has_plo else PLACEHOLDER,
            self.plo_text,
            self.module_code,
            self.module_title,
            f"MIMLO {self.mimlo_num}" if self.has_mimlo else PLACEHOLDER,
            self.mimlo_text,
            self.assessment_title,
            self.assessment_type,
            self.assessment_weight,
            self.status_label,
        ]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "award_standard_id": self.award_standard_id,
            "standard_label": self.standard_label,
            "plo_num": self.plo_num,
            "plo_text": self.plo_text,
            "module_code": self.module_code,
            "module_title": self.module_title,
            "mimlo_num": self.mimlo_num,
            "mimlo_text": self.mimlo_text,
            "assessment_title": self.assessment_title,
            "assessment_type": self.assessment_type,
            "assessment_weight": self.assessment_weight,
            "status": self.status.value,
            "status_label": self.status_label,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraceRow:
        """Deserialize from dictionary."""
        return cls(
            award_standard_id=data.get("award_standard_id"),
            standard_label=data.get("standard_label", ""),
            plo_num=data.get("plo_num", PLACEHOLDER),
            plo_text=data.get("plo_text", ""),
            module_code=data.get("module_code", PLACEHOLDER),
            module_title=data.get("module_title", ""),
            mimlo_num=data.get("mimlo_num", PLACEHOLDER),
            mimlo_text=data.get("mimlo_text", ""),
            assessment_title=data.get("assessment_title", ""),
            assessment_type=data.get("assessment_type", ""),
            assessment_weight=data.get("assessment_weight", ""),
            status=TraceStatus(data.get("status", "gap")),
            status_label=data.get("status_label", ""),
        )
