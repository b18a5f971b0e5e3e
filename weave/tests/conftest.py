"""Shared fixtures for Weave tests."""

from __future__ import annotations

from typing import Any

import pytest

from weave.src.models import Programme, StandardDefinition, standards_from_dict


@pytest.fixture
def standards_doc() -> dict[str, Any]:
    """A synthetic award standard with four indicators at NFQ level 8."""
    return {
        "std_comp": {
            "id": "std_comp",
            "name": "Computing (QQI)",
            "levels": {
                "8": [
                    {"criteria": "Knowledge", "thread": "Breadth"},
                    {"criteria": "Knowledge", "thread": "Kind"},
                    {"criteria": "Skill", "thread": "Range"},
                    {"criteria": "Competence", "thread": "Context"},
                ],
            },
        }
    }


@pytest.fixture
def programme_doc() -> dict[str, Any]:
    """An editor programme document exercising every row status.

    PLO 1 reaches an assessed MIMLO, PLO 2 reaches an unassessed MIMLO
    and PLO 3 has neither standard mappings nor MIMLO links.
    """
    return {
        "nfqLevel": 8,
        "awardStandardIds": ["std_comp"],
        "awardStandardNames": ["Computing"],
        "plos": [
            {
                "id": "plo_1",
                "text": "Design software systems",
                "standardMappings": [{"criteria": "Knowledge", "thread": "Breadth"}],
            },
            {
                "id": "plo_2",
                "text": "Apply a range of tools",
                "standardMappings": [
                    {"criteria": "Skill", "thread": "Range", "standardId": "std_comp"}
                ],
            },
            {"id": "plo_3", "text": "Analyse problems", "standardMappings": []},
        ],
        "modules": [
            {
                "id": "mod_1",
                "code": "COMP101",
                "title": "Introduction to Programming",
                "mimlos": [
                    {"id": "m1", "text": "Write structured programs"},
                    {"id": "m2", "text": "Debug programs"},
                ],
                "assessments": [
                    {
                        "id": "asm_1",
                        "title": "Assignment 1",
                        "type": "Report",
                        "weighting": 40,
                        "mimloIds": ["m1"],
                    }
                ],
            }
        ],
        "ploToMimlos": {"plo_1": ["m1"], "plo_2": ["m2"]},
    }


@pytest.fixture
def programme(programme_doc: dict[str, Any]) -> Programme:
    """Parsed sample programme."""
    return Programme.from_dict(programme_doc)


@pytest.fixture
def standards(standards_doc: dict[str, Any]) -> dict[str, StandardDefinition]:
    """Parsed sample standards map."""
    return standards_from_dict(standards_doc)


@pytest.fixture
def covered_chain() -> Programme:
    """One PLO mapped to MIMLO m1 on COMP101, assessed by Assignment 1."""
    return Programme.from_dict(
        {
            "plos": [{"id": "p1", "text": "Write code"}],
            "modules": [
                {
                    "id": "mod_1",
                    "code": "COMP101",
                    "title": "Programming",
                    "mimlos": [{"id": "m1", "text": "Write programs"}],
                    "assessments": [
                        {"id": "a1", "title": "Assignment 1", "type": "Project", "mimloIds": ["m1"]}
                    ],
                }
            ],
            "ploToMimlos": {"p1": ["m1"]},
        }
    )
