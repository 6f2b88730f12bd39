"""End-to-end policy-generation pipeline: ingest, map, retrieve, draft, verify, store, notify."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from policypilot.controls import build_control_mappings
from policypilot.corpus import Corpus, default_corpus
from policypilot.coverage import verify_controls
from policypilot.drafting import draft_sections
from policypilot.finalize import FinalizedDocument, finalize_document
from policypilot.ingest import ingest_sources
from policypilot.models import (
    ControlCoverage,
    NotificationRecord,
    PipelineProgressUpdate,
    PipelineStepId,
    PipelineStepStatus,
    PolicyDraftSection,
    PolicyOutlineSection,
    PolicyPipelineRequest,
    PolicyPipelineResult,
    PolicyRecord,
    PolicyVersionRecord,
)
from policypilot.outline import generate_outline
from policypilot.retrieval import retrieve_context
from policypilot.store import PolicyStore

log = logging.getLogger(__name__)

ProgressCallback = Callable[[PipelineProgressUpdate], None]

PIPELINE_STEPS: tuple[PipelineStepId, ...] = (
    "ingest_sources",
    "build_control_mappings",
    "retrieve_context",
    "generate_outline",
    "draft_sections",
    "verify_controls",
    "finalize_document",
    "store_policy_version",
    "notify_frontend",
)

STEP_LABELS: dict[PipelineStepId, str] = {
    "ingest_sources": "Ingest public sources",
    "build_control_mappings": "Build control mappings",
    "retrieve_context": "Retrieve context",
    "generate_outline": "Generate outline",
    "draft_sections": "Draft sections",
    "verify_controls": "Verify controls",
    "finalize_document": "Finalize document",
    "store_policy_version": "Store version & provenance",
    "notify_frontend": "Notify team",
}


class ProgressRecorder:
    """
    Progress sink that keeps every update plus the latest state of each step.

    ``forward`` receives each update after it is recorded, so a display can
    read the recorder state from inside the callback.
    """

    def __init__(self, forward: ProgressCallback | None = None) -> None:
        self.updates: list[PipelineProgressUpdate] = []
        self.status: dict[PipelineStepId, PipelineStepStatus] = {}
        self.detail: dict[PipelineStepId, str | None] = {}
        self._forward = forward

    def __call__(self, update: PipelineProgressUpdate) -> None:
        self.updates.append(update)
        self.status[update.step] = update.status
        self.detail[update.step] = update.detail
        if self._forward is not None:
            self._forward(update)

    def transitions(self, step: PipelineStepId) -> list[PipelineStepStatus]:
        return [update.status for update in self.updates if update.step == step]

    def failed_steps(self) -> list[PipelineStepId]:
        return [step for step in PIPELINE_STEPS if self.status.get(step) == "error"]


class _StepTracker:
    def __init__(self, on_progress: ProgressCallback | None) -> None:
        self._on_progress = on_progress
        self.current: PipelineStepId | None = None

    def emit(self, step: PipelineStepId, status: PipelineStepStatus, detail: str | None = None) -> None:
        if self._on_progress is not None:
            self._on_progress(PipelineProgressUpdate(step=step, status=status, detail=detail))

    def start(self, step: PipelineStepId) -> None:
        self.current = step
        self.emit(step, "running")

    def complete(self, step: PipelineStepId, detail: str | None = None) -> None:
        self.emit(step, "complete", detail)
        self.current = None
        log.info("%s complete%s", step, f": {detail}" if detail else "")

    def fail(self) -> None:
        """Mark the in-flight step and the steps not yet reached (except notify) as errored."""
        if self.current is None:
            return
        start = PIPELINE_STEPS.index(self.current)
        self.emit(self.current, "error")
        for step in PIPELINE_STEPS[start + 1 :]:
            if step != "notify_frontend":
                self.emit(step, "error")


def policy_narrative(request: PolicyPipelineRequest) -> str:
    return f"{request.policy_type} {request.industry} {request.jurisdiction}"


def _store_policy_version(
    store: PolicyStore,
    request: PolicyPipelineRequest,
    outline: list[PolicyOutlineSection],
    sections: list[PolicyDraftSection],
    coverage: ControlCoverage,
    finalized: FinalizedDocument,
) -> tuple[str, str]:
    policy_id = store.create_policy(
        PolicyRecord(
            tenant_id=request.tenant_id,
            type=request.policy_type,
            title=f"{request.policy_type} ({request.jurisdiction})",
            content=finalized.document,
            status="draft",
            last_generated_at=datetime.now(UTC),
            related_compliance_profile_id=request.profile_id or None,
            current_version_id=None,
            summary=finalized.summary,
            control_coverage=coverage,
        )
    )

    latest = store.get_latest_policy_version(policy_id)
    version_number = (latest.version_number if latest else 0) + 1
    version_id = store.create_policy_version(
        PolicyVersionRecord(
            policy_id=policy_id,
            tenant_id=request.tenant_id,
            version_number=version_number,
            summary=finalized.summary,
            outline=outline,
            sections=sections,
            control_coverage=coverage,
            document=finalized.document,
            provenance_json=finalized.provenance_json,
        )
    )
    store.update_policy_current_version(
        policy_id, version_id, finalized.summary, coverage
    )
    return policy_id, version_id


def run_policy_generation_pipeline(
    request: PolicyPipelineRequest,
    store: PolicyStore,
    on_progress: ProgressCallback | None = None,
    corpus: Corpus | None = None,
) -> PolicyPipelineResult:
    """
    Run all nine steps in order and return the persisted result.

    ``on_progress`` is called synchronously for every status transition. A
    failure in any step marks that step and the remaining ones (except the
    final notification) as ``error`` and the exception propagates unchanged.
    """
    corpus = corpus or default_corpus()
    tracker = _StepTracker(on_progress)
    for step in PIPELINE_STEPS:
        tracker.emit(step, "pending")

    try:
        tracker.start("ingest_sources")
        chunks = ingest_sources(
            request.policy_type, request.industry, request.jurisdiction, corpus=corpus
        )
        tracker.complete("ingest_sources", f"{len(chunks)} chunks indexed")

        tracker.start("build_control_mappings")
        controls = build_control_mappings(request.policy_type, corpus=corpus)
        tracker.complete("build_control_mappings", f"{len(controls)} controls mapped")

        tracker.start("retrieve_context")
        context = retrieve_context(controls, chunks, policy_narrative(request))
        selected = sum(len(entry.chunks) for entry in context)
        tracker.complete("retrieve_context", f"{selected} context chunks selected")

        tracker.start("generate_outline")
        outline = generate_outline(request.policy_type, controls, corpus=corpus)
        tracker.complete("generate_outline")

        tracker.start("draft_sections")
        sections = draft_sections(outline, context, request)
        tracker.complete("draft_sections")

        tracker.start("verify_controls")
        coverage = verify_controls(controls, sections)
        tracker.complete(
            "verify_controls",
            f"{len(coverage.covered)} covered / {len(coverage.missing)} missing",
        )

        tracker.start("finalize_document")
        finalized = finalize_document(request, sections, coverage)
        tracker.complete("finalize_document")

        tracker.start("store_policy_version")
        policy_id, version_id = _store_policy_version(
            store, request, outline, sections, coverage, finalized
        )
        tracker.complete("store_policy_version")

        tracker.start("notify_frontend")
        store.create_notification(
            NotificationRecord(
                tenant_id=request.tenant_id,
                user_id=request.user_id,
                type="success",
                title=f"{request.policy_type} ready",
                description=(
                    f"{request.policy_type} was generated with "
                    f"{len(coverage.covered)} mapped controls."
                ),
                read=False,
                created_at=datetime.now(UTC),
            )
        )
        tracker.complete("notify_frontend")
    except Exception:
        log.error(
            "Policy pipeline failed at step %s for tenant %s (%s)",
            tracker.current,
            request.tenant_id,
            request.policy_type,
        )
        tracker.fail()
        raise

    return PolicyPipelineResult(
        policy_id=policy_id,
        version_id=version_id,
        outline=outline,
        sections=sections,
        document=finalized.document,
        summary=finalized.summary,
        provenance_json=finalized.provenance_json,
        control_coverage=coverage,
    )


def write_result_json(result: PolicyPipelineResult, output_json_path: str) -> Path:
    out_path = Path(output_json_path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(result.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=True),
        encoding="utf-8",
    )
    return out_path
