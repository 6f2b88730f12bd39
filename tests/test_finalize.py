import json
from datetime import UTC, date, datetime, timedelta, timezone

from policypilot.finalize import finalize_document
from policypilot.models import (
    ControlCoverage,
    ControlCoverageEntry,
    PolicyDraftSection,
    ProvenanceTag,
)

NOW = datetime(2026, 1, 15, 9, 30, tzinfo=UTC)


def _sections() -> list[PolicyDraftSection]:
    tag = ProvenanceTag(
        source_id="ico-guidance",
        source_name="UK ICO Accountability Framework",
        jurisdiction="United Kingdom",
        industry_tags=["technology"],
        citation="Leadership accountability",
        chunk_id="ico-guidance-ICO-A1-0",
        confidence=0.85,
    )
    return [
        PolicyDraftSection(
            id="privacy-policy-section-1",
            title="Purpose & Scope",
            content="Objective.\n\nBody one.",
            controls_covered=["CTRL-PRIVACY-03"],
            provenance=[tag],
        ),
        PolicyDraftSection(
            id="privacy-policy-section-2",
            title="Lawful Basis and Collection",
            content="Objective.\n\nBody two.",
            controls_covered=[],
        ),
    ]


def _coverage() -> ControlCoverage:
    return ControlCoverage(
        covered=["CTRL-PRIVACY-03"],
        missing=["CTRL-OTHER"],
        coverage_by_control={
            "CTRL-PRIVACY-03": ControlCoverageEntry(status="covered", sections=["Purpose & Scope"]),
            "CTRL-OTHER": ControlCoverageEntry(status="missing"),
        },
    )


def test_document_layout(privacy_request) -> None:
    final = finalize_document(privacy_request, _sections(), _coverage(), now=NOW)
    assert final.document == (
        "# Privacy Policy\n\n"
        "**Tenant:** Acme Corp\n"
        "**Jurisdiction:** United Kingdom\n"
        "**Industry:** technology\n"
        "**Effective Date:** 2026-01-15\n\n"
        "## 1. Purpose & Scope\n\nObjective.\n\nBody one.\n"
        "\n"
        "## 2. Lawful Basis and Collection\n\nObjective.\n\nBody two.\n"
        "## Control Coverage Summary\n\n"
        "- Covered Controls: 1\n"
        "- Missing Controls: 1\n\n"
    )


def test_summary_reports_counts(privacy_request) -> None:
    final = finalize_document(privacy_request, _sections(), _coverage(), now=NOW)
    assert final.summary == (
        "Generated Privacy Policy for Acme Corp, aligned to 1 mapped controls with "
        "1 remaining gaps."
    )


def test_provenance_json_is_serializable_with_camel_case_keys(privacy_request) -> None:
    final = finalize_document(privacy_request, _sections(), _coverage(), now=NOW)
    payload = json.loads(json.dumps(final.provenance_json))
    assert payload["generatedAt"] == "2026-01-15T09:30:00+00:00"
    assert payload["policyType"] == "Privacy Policy"
    assert payload["tenantId"] == "tenant-1"
    first = payload["sections"][0]
    assert first["id"] == "privacy-policy-section-1"
    assert first["controls"] == ["CTRL-PRIVACY-03"]
    assert first["provenance"][0]["sourceId"] == "ico-guidance"
    assert first["provenance"][0]["chunkId"] == "ico-guidance-ICO-A1-0"
    assert payload["coverage"]["coverageByControl"]["CTRL-OTHER"] == {
        "status": "missing",
        "sections": [],
    }


def test_effective_date_defaults_to_today(privacy_request) -> None:
    final = finalize_document(privacy_request, [], ControlCoverage())
    today = date.today().isoformat()
    assert f"**Effective Date:** {today}" in final.document
    assert "- Covered Controls: 0" in final.document


def test_effective_date_uses_local_day_and_generated_at_uses_utc(privacy_request) -> None:
    late_evening = datetime(2026, 1, 15, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    final = finalize_document(privacy_request, [], ControlCoverage(), now=late_evening)
    assert "**Effective Date:** 2026-01-15" in final.document
    assert final.provenance_json["generatedAt"] == "2026-01-16T04:30:00+00:00"
