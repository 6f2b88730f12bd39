"""Control coverage verification over drafted sections."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from policypilot.models import ControlCoverage, ControlCoverageEntry


class HasId(Protocol):
    id: str


class CoveringSection(Protocol):
    title: str
    controls_covered: list[str]


def verify_controls(
    controls: Sequence[HasId],
    sections: Sequence[CoveringSection],
) -> ControlCoverage:
    """Partition controls into covered and missing; every control lands in exactly one."""
    coverage = ControlCoverage()
    for control in controls:
        titles = [section.title for section in sections if control.id in section.controls_covered]
        if titles:
            coverage.covered.append(control.id)
            coverage.coverage_by_control[control.id] = ControlCoverageEntry(
                status="covered",
                sections=titles,
            )
        else:
            coverage.missing.append(control.id)
            coverage.coverage_by_control[control.id] = ControlCoverageEntry(status="missing")
    return coverage
