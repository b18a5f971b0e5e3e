"""Default-resolution rules for traceability.

Each fallback the engine applies when a programme is partially filled in
is product policy, so each lives here as a named function rather than as
inline coalescing in the builders. The builders call these and nothing
else decides a default.
"""

from __future__ import annotations

from weave.src.models import PLO, Programme, StandardDefinition, StandardMapping

NOT_MAPPED_CRITERIA = "(Not mapped)"


def effective_standard_mappings(plo: PLO) -> list[StandardMapping]:
    """Return the mappings the engine walks for a PLO.

    A PLO with no standard mappings still appears in the trace, under a
    single synthetic "(Not mapped)" mapping with no thread and no
    standard.

    Args:
        plo: The PLO being traced.

    Returns:
        The PLO's own mappings, or the synthetic placeholder mapping.
    """
    if plo.standard_mappings:
        return list(plo.standard_mappings)
    return [StandardMapping(criteria=NOT_MAPPED_CRITERIA, thread="", standard_id=None)]


def resolve_award_standard_id(mapping: StandardMapping, programme: Programme) -> str | None:
    """Return the award standard a mapping is attributed to.

    Resolution order: the mapping's own standard, then the programme's
    first award standard, then None.

    Args:
        mapping: A PLO standard mapping.
        programme: The programme snapshot.

    Returns:
        Award standard ID, or None if the programme has no standards.
    """
    if mapping.standard_id:
        return mapping.standard_id
    if programme.award_standard_ids:
        return programme.award_standard_ids[0]
    return None


def standard_label(criteria: str, thread: str) -> str:
    """Return the display label for a criteria/thread pair."""
    return f"{criteria} — {thread}" if thread else criteria


def format_weighting(weighting: float | None) -> str:
    """Format an assessment weighting for display.

    Zero and unset weightings render as an empty string. Whole numbers
    render without a decimal part ("40%", not "40.0%"); other values keep
    every stored digit.

    Args:
        weighting: Percentage weighting, or None.

    Returns:
        Display string such as "40%", or "".
    """
    if not weighting:
        return ""
    if float(weighting).is_integer():
        return f"{int(weighting)}%"
    return f"{float(weighting)}%"


def nfq_level_or_zero(programme: Programme) -> int:
    """Return the programme's NFQ level, treating "unset" as level 0.

    No standard defines indicators at level 0, so an unset level yields
    empty indicator sets downstream.
    """
    return programme.nfq_level or 0


def resolve_standard_name(
    standard_id: str,
    programme: Programme,
    definition: StandardDefinition | None,
) -> str:
    """Return the display name of an award standard.

    Resolution order: the programme's own name for the standard (parallel
    to award_standard_ids), the reference definition's name, the ID.

    Args:
        standard_id: The award standard ID.
        programme: The programme snapshot.
        definition: The reference definition, if loaded.

    Returns:
        Display name.
    """
    if standard_id in programme.award_standard_ids:
        idx = programme.award_standard_ids.index(standard_id)
        if idx < len(programme.award_standard_names) and programme.award_standard_names[idx]:
            return programme.award_standard_names[idx]
    if definition is not None and definition.name:
        return definition.name
    return standard_id
