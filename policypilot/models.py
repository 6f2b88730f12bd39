"""Shared data models for the policy-generation pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PipelineStepId = Literal[
    "ingest_sources",
    "build_control_mappings",
    "retrieve_context",
    "generate_outline",
    "draft_sections",
    "verify_controls",
    "finalize_document",
    "store_policy_version",
    "notify_frontend",
]
PipelineStepStatus = Literal["pending", "running", "complete", "error"]
CoverageStatus = Literal["covered", "missing"]
NotificationType = Literal["success", "error", "warning", "info"]


class CamelModel(BaseModel):
    """Serializes with camelCase keys (the frontend wire format) and accepts either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Reference data


class SourceControl(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    text: str
    tags: list[str] = Field(default_factory=list)


class SourceDocument(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    jurisdiction: str = Field(..., description='"Global" matches every jurisdiction.')
    industries: list[str] = Field(default_factory=list)
    policy_types: list[str] = Field(default_factory=list)
    excerpt: str
    controls: list[SourceControl] = Field(default_factory=list)


class ControlMapping(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    framework: str = ""
    policy_types: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class CorpusFile(CamelModel):
    """On-disk layout of a reference data file."""

    documents: list[SourceDocument] = Field(default_factory=list)
    templates: list[ControlMapping] = Field(default_factory=list)
    outlines: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Policy type to section titles; unlisted types keep their built-in outline.",
    )


# Per-run derived data


class SourceChunk(BaseModel):
    id: str
    source: SourceDocument
    control: SourceControl | None = None
    text: str
    tags: list[str]
    vector: dict[str, int] = Field(..., description="Term-frequency vector of the chunk text.")


class RetrievedContext(BaseModel):
    control_id: str
    chunks: list[SourceChunk]
    scores: list[float] = Field(default_factory=list)


class PolicyOutlineSection(CamelModel):
    id: str
    title: str
    objective: str
    controls: list[str]


class ProvenanceTag(CamelModel):
    source_id: str
    source_name: str
    jurisdiction: str
    industry_tags: list[str]
    citation: str
    chunk_id: str
    confidence: float


class PolicyDraftSection(CamelModel):
    id: str
    title: str
    content: str
    controls_covered: list[str]
    provenance: list[ProvenanceTag] = Field(default_factory=list)


class ControlCoverageEntry(CamelModel):
    status: CoverageStatus
    sections: list[str] = Field(default_factory=list)


class ControlCoverage(CamelModel):
    covered: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    coverage_by_control: dict[str, ControlCoverageEntry] = Field(default_factory=dict)


# Pipeline I/O


class PolicyPipelineRequest(CamelModel):
    tenant_id: str
    tenant_name: str
    user_id: str
    policy_type: str
    industry: str
    jurisdiction: str
    business_size: str | None = None
    profile_id: str | None = None


class PolicyPipelineResult(CamelModel):
    policy_id: str
    version_id: str
    outline: list[PolicyOutlineSection]
    sections: list[PolicyDraftSection]
    document: str
    summary: str
    provenance_json: dict[str, Any]
    control_coverage: ControlCoverage


class PipelineProgressUpdate(CamelModel):
    step: PipelineStepId
    status: PipelineStepStatus
    detail: str | None = None


# Persistence payloads


class PolicyRecord(CamelModel):
    id: str | None = None
    tenant_id: str
    type: str
    title: str
    content: str
    status: Literal["draft", "final"] = "draft"
    last_generated_at: datetime | None = None
    related_compliance_profile_id: str | None = None
    current_version_id: str | None = None
    summary: str | None = None
    control_coverage: ControlCoverage | None = None


class PolicyVersionRecord(CamelModel):
    id: str | None = None
    policy_id: str
    tenant_id: str
    version_number: int
    summary: str
    outline: list[PolicyOutlineSection]
    sections: list[PolicyDraftSection]
    control_coverage: ControlCoverage
    document: str
    provenance_json: dict[str, Any]
    created_at: datetime | None = None


class NotificationRecord(CamelModel):
    id: str | None = None
    tenant_id: str
    user_id: str
    type: NotificationType
    title: str
    description: str
    read: bool = False
    created_at: datetime | None = None
