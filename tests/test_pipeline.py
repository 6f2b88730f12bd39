import json

import pytest

from policypilot.models import PolicyPipelineRequest
from policypilot.pipeline import (
    PIPELINE_STEPS,
    STEP_LABELS,
    ProgressRecorder,
    policy_narrative,
    run_policy_generation_pipeline,
    write_result_json,
)
from policypilot.store import InMemoryPolicyStore, StoreError


class FailingVersionStore(InMemoryPolicyStore):
    def create_policy_version(self, record):
        raise StoreError("database unavailable")


class FailingNotificationStore(InMemoryPolicyStore):
    def create_notification(self, record):
        raise RuntimeError("notification service down")


class IdRecordingStore(InMemoryPolicyStore):
    def __init__(self):
        super().__init__()
        self.issued = []

    def create_policy(self, record):
        policy_id = super().create_policy(record)
        self.issued.append(policy_id)
        return policy_id

    def create_policy_version(self, record):
        version_id = super().create_policy_version(record)
        self.issued.append(version_id)
        return version_id


class PreviousVersionStore(InMemoryPolicyStore):
    def get_latest_policy_version(self, policy_id):
        return type("VersionLike", (), {"version_number": 4})()


def test_privacy_policy_end_to_end(privacy_request) -> None:
    store = InMemoryPolicyStore()
    result = run_policy_generation_pipeline(privacy_request, store)

    assert [section.title for section in result.outline] == [
        "Purpose & Scope",
        "Lawful Basis and Collection",
        "Use and Sharing",
        "Data Subject Rights",
        "Security & Retention",
        "Governance & Contact",
    ]
    assert len(result.sections) == 6
    assert result.control_coverage.covered == ["CTRL-PRIVACY-03"]
    assert result.control_coverage.missing == []
    assert result.document.startswith("# Privacy Policy\n\n**Tenant:** Acme Corp\n")
    assert "## 6. Governance & Contact" in result.document
    assert result.summary == (
        "Generated Privacy Policy for Acme Corp, aligned to 1 mapped controls with "
        "0 remaining gaps."
    )
    assert result.provenance_json["tenantId"] == "tenant-1"
    assert len(result.sections[0].provenance) == 2


def test_pipeline_persists_policy_version_and_notification(privacy_request) -> None:
    store = InMemoryPolicyStore()
    result = run_policy_generation_pipeline(privacy_request, store)

    policy = store.get_policy(result.policy_id)
    assert policy is not None
    assert policy.title == "Privacy Policy (United Kingdom)"
    assert policy.status == "draft"
    assert policy.current_version_id == result.version_id
    assert policy.summary == result.summary
    assert policy.control_coverage == result.control_coverage

    version = store.versions[result.version_id]
    assert version.version_number == 1
    assert version.policy_id == result.policy_id
    assert version.document == result.document
    assert version.outline == result.outline

    [notification] = store.notifications_for("user-1", "tenant-1")
    assert notification.type == "success"
    assert notification.title == "Privacy Policy ready"
    assert notification.description == "Privacy Policy was generated with 1 mapped controls."
    assert notification.read is False


def test_version_number_increments_previous_version(privacy_request) -> None:
    store = PreviousVersionStore()
    result = run_policy_generation_pipeline(privacy_request, store)
    assert store.versions[result.version_id].version_number == 5


def test_result_carries_ids_issued_by_store(privacy_request) -> None:
    store = IdRecordingStore()
    result = run_policy_generation_pipeline(privacy_request, store)
    assert store.issued == [result.policy_id, result.version_id]
    assert store.versions[result.version_id].provenance_json == result.provenance_json


def test_progress_steps_transition_in_order(privacy_request) -> None:
    recorder = ProgressRecorder()
    run_policy_generation_pipeline(privacy_request, InMemoryPolicyStore(), on_progress=recorder)

    assert len(recorder.updates) == 27
    assert [(u.step, u.status) for u in recorder.updates[:9]] == [
        (step, "pending") for step in PIPELINE_STEPS
    ]
    expected = [(step, status) for step in PIPELINE_STEPS for status in ("running", "complete")]
    assert [(u.step, u.status) for u in recorder.updates[9:]] == expected
    for step in PIPELINE_STEPS:
        assert recorder.transitions(step) == ["pending", "running", "complete"]

    assert recorder.detail["ingest_sources"] == "13 chunks indexed"
    assert recorder.detail["build_control_mappings"] == "1 controls mapped"
    assert recorder.detail["retrieve_context"] == "2 context chunks selected"
    assert recorder.detail["verify_controls"] == "1 covered / 0 missing"
    assert recorder.detail["generate_outline"] is None


def test_persistence_failure_marks_remaining_steps_and_propagates(privacy_request) -> None:
    recorder = ProgressRecorder()
    with pytest.raises(StoreError, match="database unavailable"):
        run_policy_generation_pipeline(privacy_request, FailingVersionStore(), on_progress=recorder)

    assert recorder.status["finalize_document"] == "complete"
    assert recorder.status["store_policy_version"] == "error"
    assert recorder.status["notify_frontend"] == "pending"
    assert recorder.transitions("store_policy_version") == ["pending", "running", "error"]
    assert recorder.failed_steps() == ["store_policy_version"]


def test_notification_failure_marks_notify_step(privacy_request) -> None:
    recorder = ProgressRecorder()
    with pytest.raises(RuntimeError, match="notification service down"):
        run_policy_generation_pipeline(
            privacy_request, FailingNotificationStore(), on_progress=recorder
        )
    assert recorder.status["store_policy_version"] == "complete"
    assert recorder.status["notify_frontend"] == "error"


def test_stage_failure_marks_later_steps_except_notify(privacy_request, monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise ValueError("bad outline table")

    monkeypatch.setattr("policypilot.pipeline.generate_outline", _boom)
    recorder = ProgressRecorder()
    with pytest.raises(ValueError):
        run_policy_generation_pipeline(privacy_request, InMemoryPolicyStore(), on_progress=recorder)

    assert recorder.status["retrieve_context"] == "complete"
    for step in ["generate_outline", "draft_sections", "verify_controls", "finalize_document", "store_policy_version"]:
        assert recorder.status[step] == "error"
    assert recorder.status["notify_frontend"] == "pending"


def test_identical_requests_produce_identical_drafts(privacy_request) -> None:
    first = run_policy_generation_pipeline(privacy_request, InMemoryPolicyStore())
    second = run_policy_generation_pipeline(privacy_request, InMemoryPolicyStore())

    assert first.outline == second.outline
    assert [s.content for s in first.sections] == [s.content for s in second.sections]
    assert first.sections == second.sections
    assert first.control_coverage == second.control_coverage
    assert first.policy_id != second.policy_id


def test_unknown_policy_type_runs_with_fallbacks() -> None:
    request = PolicyPipelineRequest(
        tenant_id="t-2",
        tenant_name="Globex",
        user_id="u-2",
        policy_type="Code of Conduct",
        industry="retail",
        jurisdiction="Peru",
    )
    result = run_policy_generation_pipeline(request, InMemoryPolicyStore())
    assert [section.title for section in result.outline][:2] == ["Purpose", "Scope"]
    assert len(result.control_coverage.covered) == 3
    assert result.sections[3].content.startswith(
        "Detail the required controls, workflows, and safeguards.\n\nGlobex documents procedures"
    )


def test_step_labels_cover_every_step() -> None:
    assert set(STEP_LABELS) == set(PIPELINE_STEPS)
    assert STEP_LABELS["notify_frontend"] == "Notify team"


def test_policy_narrative_and_result_export(privacy_request, tmp_path) -> None:
    assert policy_narrative(privacy_request) == "Privacy Policy technology United Kingdom"
    result = run_policy_generation_pipeline(privacy_request, InMemoryPolicyStore())
    out = write_result_json(result, str(tmp_path / "nested" / "result.json"))
    parsed = json.loads(out.read_text(encoding="utf-8"))
    assert parsed["policyId"] == result.policy_id
    assert parsed["controlCoverage"]["covered"] == ["CTRL-PRIVACY-03"]
    assert parsed["sections"][0]["controlsCovered"] == ["CTRL-PRIVACY-03"]


def test_recorder_forwards_after_recording(privacy_request) -> None:
    seen = []

    def display(update):
        seen.append((update.step, update.status, recorder.status[update.step]))

    recorder = ProgressRecorder(forward=display)
    run_policy_generation_pipeline(privacy_request, InMemoryPolicyStore(), on_progress=recorder)
    assert len(seen) == len(recorder.updates) == 27
    assert all(status == recorded for _, status, recorded in seen)
