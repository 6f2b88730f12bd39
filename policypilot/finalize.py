"""Markdown document assembly, summary and provenance export."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from policypilot.models import ControlCoverage, PolicyDraftSection, PolicyPipelineRequest


@dataclass(frozen=True)
class FinalizedDocument:
    document: str
    summary: str
    provenance_json: dict[str, Any]


def render_header(request: PolicyPipelineRequest, effective_date: str) -> str:
    return (
        f"# {request.policy_type}\n\n"
        f"**Tenant:** {request.tenant_name}\n"
        f"**Jurisdiction:** {request.jurisdiction}\n"
        f"**Industry:** {request.industry}\n"
        f"**Effective Date:** {effective_date}\n\n"
    )


def render_sections(sections: list[PolicyDraftSection]) -> str:
    return "\n".join(
        f"## {idx}. {section.title}\n\n{section.content}\n"
        for idx, section in enumerate(sections, start=1)
    )


def render_coverage_summary(coverage: ControlCoverage) -> str:
    return (
        "## Control Coverage Summary\n\n"
        f"- Covered Controls: {len(coverage.covered)}\n"
        f"- Missing Controls: {len(coverage.missing)}\n\n"
    )


def build_summary(request: PolicyPipelineRequest, coverage: ControlCoverage) -> str:
    return (
        f"Generated {request.policy_type} for {request.tenant_name}, aligned to "
        f"{len(coverage.covered)} mapped controls with {len(coverage.missing)} remaining gaps."
    )


def build_provenance_json(
    request: PolicyPipelineRequest,
    sections: list[PolicyDraftSection],
    coverage: ControlCoverage,
    generated_at: datetime,
) -> dict[str, Any]:
    return {
        "generatedAt": generated_at.isoformat(),
        "policyType": request.policy_type,
        "tenantId": request.tenant_id,
        "sections": [
            {
                "id": section.id,
                "title": section.title,
                "controls": list(section.controls_covered),
                "provenance": [
                    tag.model_dump(mode="json", by_alias=True) for tag in section.provenance
                ],
            }
            for section in sections
        ],
        "coverage": coverage.model_dump(mode="json", by_alias=True),
    }


def finalize_document(
    request: PolicyPipelineRequest,
    sections: list[PolicyDraftSection],
    coverage: ControlCoverage,
    now: datetime | None = None,
) -> FinalizedDocument:
    # Effective date is the calendar day where the run happens; generatedAt is UTC.
    local_now = now or datetime.now().astimezone()
    generated_at = local_now.astimezone(UTC)
    document = (
        render_header(request, local_now.date().isoformat())
        + render_sections(sections)
        + render_coverage_summary(coverage)
    )
    return FinalizedDocument(
        document=document,
        summary=build_summary(request, coverage),
        provenance_json=build_provenance_json(request, sections, coverage, generated_at),
    )
