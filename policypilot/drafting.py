"""Templated section drafting with provenance tags."""

from __future__ import annotations

from policypilot.config import PROVENANCE_CONFIDENCE
from policypilot.models import (
    PolicyDraftSection,
    PolicyOutlineSection,
    PolicyPipelineRequest,
    ProvenanceTag,
    RetrievedContext,
    SourceChunk,
)


def render_paragraph(chunk: SourceChunk, request: PolicyPipelineRequest) -> str:
    return (
        f"Referencing {chunk.source.name} ({chunk.source.jurisdiction}), "
        f"we commit to {chunk.text}. "
        f"This applies to {request.tenant_name} operating in {request.jurisdiction}."
    )


def render_fallback_paragraph(section: PolicyOutlineSection, request: PolicyPipelineRequest) -> str:
    return (
        f"{request.tenant_name} documents {section.title.lower()} expectations in alignment "
        "with regional regulators and industry frameworks. "
        "Detailed procedures will be enriched as more evidence is captured."
    )


def provenance_for(chunk: SourceChunk, confidence: float = PROVENANCE_CONFIDENCE) -> ProvenanceTag:
    return ProvenanceTag(
        source_id=chunk.source.id,
        source_name=chunk.source.name,
        jurisdiction=chunk.source.jurisdiction,
        industry_tags=list(chunk.source.industries),
        citation=chunk.control.title if chunk.control else chunk.source.name,
        chunk_id=chunk.id,
        confidence=confidence,
    )


def draft_section(
    section: PolicyOutlineSection,
    context: list[RetrievedContext],
    request: PolicyPipelineRequest,
) -> PolicyDraftSection:
    paragraphs: list[str] = []
    provenance: list[ProvenanceTag] = []
    for entry in context:
        if entry.control_id not in section.controls:
            continue
        for chunk in entry.chunks:
            paragraphs.append(render_paragraph(chunk, request))
            provenance.append(provenance_for(chunk))

    if not paragraphs:
        paragraphs.append(render_fallback_paragraph(section, request))

    return PolicyDraftSection(
        id=section.id,
        title=section.title,
        content=f"{section.objective}\n\n" + "\n\n".join(paragraphs),
        controls_covered=list(section.controls),
        provenance=provenance,
    )


def draft_sections(
    outline: list[PolicyOutlineSection],
    context: list[RetrievedContext],
    request: PolicyPipelineRequest,
) -> list[PolicyDraftSection]:
    return [draft_section(section, context, request) for section in outline]
