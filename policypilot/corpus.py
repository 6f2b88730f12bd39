"""Built-in regulatory reference data and loading of additional corpora."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from policypilot.models import ControlMapping, CorpusFile, SourceControl, SourceDocument

log = logging.getLogger(__name__)


class CorpusError(ValueError):
    """Raised when reference data would break the non-empty fallback guarantees."""


PUBLIC_SOURCE_LIBRARY: tuple[SourceDocument, ...] = (
    SourceDocument(
        id="nist-csf",
        name="NIST Cybersecurity Framework 2.0",
        jurisdiction="United States",
        industries=["technology", "finance", "healthcare", "manufacturing"],
        policy_types=[
            "Information Security Policy",
            "Incident Response Policy",
            "Acceptable Use Policy",
            "Data Protection Policy",
        ],
        excerpt=(
            "NIST CSF 2.0 describes governance, identification, protection, detection, "
            "response, and recovery outcomes required for resilient cybersecurity programs."
        ),
        controls=[
            SourceControl(
                id="NIST-ID.GV-03",
                title="Documented security governance",
                text=(
                    "Organizations maintain a security governance program that defines policy "
                    "ownership, review cadences, and accountability at the executive level."
                ),
                tags=["governance", "policy-management"],
            ),
            SourceControl(
                id="NIST-PR.AC-01",
                title="Access control rules",
                text=(
                    "Role-based and least-privilege access control rules must be documented, "
                    "reviewed quarterly, and enforced through technical safeguards."
                ),
                tags=["access-control", "least-privilege"],
            ),
            SourceControl(
                id="NIST-RS.MI-01",
                title="Incident response improvements",
                text=(
                    "Incident response plans incorporate lessons learned, scenario testing, and "
                    "communication requirements for regulators and affected parties."
                ),
                tags=["incident-response", "testing"],
            ),
        ],
    ),
    SourceDocument(
        id="cis-controls-v8",
        name="CIS Critical Security Controls v8",
        jurisdiction="Global",
        industries=["technology", "finance", "retail", "public-sector"],
        policy_types=[
            "Information Security Policy",
            "Acceptable Use Policy",
            "Incident Response Policy",
        ],
        excerpt=(
            "CIS Controls provide prescriptive safeguards for asset inventory, secure "
            "configuration, vulnerability management, and awareness education."
        ),
        controls=[
            SourceControl(
                id="CIS-04",
                title="Secure configuration management",
                text=(
                    "Policies must define baseline configurations for servers, workstations, and "
                    "cloud workloads, including hardening and change control expectations."
                ),
                tags=["configuration", "change-management"],
            ),
            SourceControl(
                id="CIS-14",
                title="Security awareness and skills",
                text=(
                    "Organizations implement continuous security awareness training that aligns "
                    "to policy statements about acceptable behavior and reporting duties."
                ),
                tags=["training", "awareness"],
            ),
        ],
    ),
    SourceDocument(
        id="osha-1910",
        name="OSHA 29 CFR 1910",
        jurisdiction="United States",
        industries=["manufacturing", "energy", "construction", "healthcare"],
        policy_types=["Health and Safety Policy", "Employee Handbook"],
        excerpt=(
            "OSHA regulations outline employer obligations for hazard communication, worker "
            "training, incident logging, and workplace inspections."
        ),
        controls=[
            SourceControl(
                id="OSHA-1910.1200",
                title="Hazard communication",
                text=(
                    "Employers must maintain written programs describing how hazardous chemicals "
                    "are labeled, documented, and communicated to employees."
                ),
                tags=["hazard", "communication"],
            ),
            SourceControl(
                id="OSHA-1910.38",
                title="Emergency action planning",
                text=(
                    "Policies define evacuation routes, alarm systems, accountability procedures, "
                    "and responsibilities for medical assistance."
                ),
                tags=["emergency-response", "safety"],
            ),
        ],
    ),
    SourceDocument(
        id="ghana-dpc",
        name="Ghana Data Protection Commission Guidelines",
        jurisdiction="Ghana",
        industries=["finance", "telecom", "public-sector"],
        policy_types=["Privacy Policy", "Data Protection Policy"],
        excerpt=(
            "The DPC guidance clarifies consent, cross-border transfers, breach notification, "
            "and appointment of data protection officers for high-risk processing."
        ),
        controls=[
            SourceControl(
                id="GH-DPC-05",
                title="Data subject rights workflow",
                text=(
                    "Controllers document workflows for acknowledging, validating, and fulfilling "
                    "access, rectification, and objection requests within statutory timelines."
                ),
                tags=["data-rights", "workflow"],
            ),
            SourceControl(
                id="GH-DPC-11",
                title="Cross-border transfer assessment",
                text=(
                    "Policies require adequacy assessments, contractual safeguards, and board "
                    "approval before exporting personal data outside Ghana."
                ),
                tags=["cross-border", "governance"],
            ),
        ],
    ),
    SourceDocument(
        id="ico-guidance",
        name="UK ICO Accountability Framework",
        jurisdiction="United Kingdom",
        industries=["technology", "healthcare", "public-sector"],
        policy_types=["Privacy Policy", "Data Protection Policy", "Employee Handbook"],
        excerpt=(
            "The ICO accountability framework emphasizes governance reporting, DPIAs, lawful "
            "basis documentation, and staff awareness."
        ),
        controls=[
            SourceControl(
                id="ICO-A1",
                title="Leadership accountability",
                text=(
                    "Senior leadership must approve privacy policies, receive quarterly compliance "
                    "reporting, and evidence resource allocation for data protection."
                ),
                tags=["leadership", "governance"],
            ),
            SourceControl(
                id="ICO-T3",
                title="Training and awareness",
                text=(
                    "Policies specify onboarding and annual refresher training covering data "
                    "protection principles, rights, and incident escalation."
                ),
                tags=["training", "privacy"],
            ),
        ],
    ),
)

POLICY_CONTROL_TEMPLATES: tuple[ControlMapping, ...] = (
    ControlMapping(
        id="CTRL-ACCESS-01",
        title="Role-based access enforcement",
        description=(
            "Define how identities are provisioned, reviewed quarterly, and revoked when "
            "staff separate."
        ),
        framework="NIST-CSF PR.AC / CIS 5",
        policy_types=["Information Security Policy", "Acceptable Use Policy", "Employee Handbook"],
        tags=["access-control", "identity"],
    ),
    ControlMapping(
        id="CTRL-INCIDENT-02",
        title="Incident escalation and communication",
        description=(
            "Outline thresholds for incident declaration, responder roles, regulator "
            "notifications, and post-incident reporting."
        ),
        framework="NIST-RS.MI / CIS 17",
        policy_types=["Incident Response Policy", "Information Security Policy"],
        tags=["incident-response"],
    ),
    ControlMapping(
        id="CTRL-PRIVACY-03",
        title="Data subject rights fulfillment",
        description=(
            "Describe intake channels, validation steps, and service-level targets for privacy "
            "rights requests."
        ),
        framework="Ghana DPC / UK ICO",
        policy_types=["Privacy Policy", "Data Protection Policy"],
        tags=["privacy", "data-rights"],
    ),
    ControlMapping(
        id="CTRL-SAFETY-04",
        title="Hazard communication",
        description=(
            "Document how employees receive safety data sheets, labeling standards, and "
            "training frequency."
        ),
        framework="OSHA 1910.1200",
        policy_types=["Health and Safety Policy", "Employee Handbook"],
        tags=["safety"],
    ),
    ControlMapping(
        id="CTRL-TRAINING-05",
        title="Mandatory compliance training",
        description=(
            "Clarify required courses, cadence, tracking responsibilities, and consequences for "
            "overdue training."
        ),
        framework="CIS 14 / ICO-T3",
        policy_types=["Employee Handbook", "Information Security Policy", "Data Protection Policy"],
        tags=["training"],
    ),
)

POLICY_OUTLINES: dict[str, tuple[str, ...]] = {
    "Privacy Policy": (
        "Purpose & Scope",
        "Lawful Basis and Collection",
        "Use and Sharing",
        "Data Subject Rights",
        "Security & Retention",
        "Governance & Contact",
    ),
    "Data Protection Policy": (
        "Governance",
        "Data Inventory",
        "Processing Principles",
        "Third-Party Management",
        "Incident Management",
        "Continuous Improvement",
    ),
    "Information Security Policy": (
        "Program Overview",
        "Access Control",
        "Asset & Configuration Management",
        "Monitoring & Detection",
        "Incident Response",
        "Awareness & Measurement",
    ),
    "Incident Response Policy": (
        "Objectives",
        "Roles & Responsibilities",
        "Detection & Triage",
        "Containment & Eradication",
        "Communication & Reporting",
        "Lessons Learned",
    ),
    "Acceptable Use Policy": (
        "Scope",
        "Acceptable Behavior",
        "Prohibited Activities",
        "Monitoring & Privacy",
        "Enforcement",
    ),
    "Employee Handbook": (
        "Welcome & Values",
        "Employment Basics",
        "Workplace Conduct",
        "Health, Safety & Wellbeing",
        "Training & Development",
        "Reporting & Discipline",
    ),
    "Health and Safety Policy": (
        "Policy Statement",
        "Roles & Responsibilities",
        "Risk Assessment",
        "Training & Competency",
        "Emergency Response",
        "Auditing & Review",
    ),
}

DEFAULT_SECTIONS: tuple[str, ...] = (
    "Purpose",
    "Scope",
    "Responsibilities",
    "Procedures",
    "Monitoring",
    "Review",
)

SECTION_OBJECTIVES: dict[str, str] = {
    "Purpose": "Explain why the policy exists and what outcome it drives.",
    "Scope": "Describe the business units, systems, and geographies covered.",
    "Responsibilities": "Clarify accountable roles, approvers, and escalation paths.",
    "Procedures": "Detail the required controls, workflows, and safeguards.",
    "Monitoring": "Outline evidence, metrics, and inspection cadences.",
    "Review": "Explain review frequency, triggers, and ownership.",
}
DEFAULT_OBJECTIVE = "Detail the expectations for this policy chapter."

# Policy types offered by the generation form; "Code of Conduct" uses the default outline.
POLICY_TYPES: tuple[str, ...] = (
    "Privacy Policy",
    "Employee Handbook",
    "Data Protection Policy",
    "Information Security Policy",
    "Acceptable Use Policy",
    "Incident Response Policy",
    "Code of Conduct",
    "Health and Safety Policy",
)


@dataclass(frozen=True)
class Corpus:
    documents: tuple[SourceDocument, ...]
    templates: tuple[ControlMapping, ...]
    outlines: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(POLICY_OUTLINES))

    def outline_for(self, policy_type: str) -> tuple[str, ...]:
        return self.outlines.get(policy_type) or DEFAULT_SECTIONS


_DEFAULT_CORPUS = Corpus(documents=PUBLIC_SOURCE_LIBRARY, templates=POLICY_CONTROL_TEMPLATES)


def default_corpus() -> Corpus:
    return _DEFAULT_CORPUS


def load_corpus(path: str | Path) -> Corpus:
    """
    Load reference data from a JSON file.

    Expected keys: ``documents`` and ``templates`` (camelCase or snake_case
    fields) and an optional ``outlines`` mapping of policy type to section
    titles. Outlines not listed in the file keep their built-in definition.
    """
    corpus_path = Path(path).expanduser().resolve()
    if not corpus_path.exists() or not corpus_path.is_file():
        raise FileNotFoundError(f"Corpus file not found: {corpus_path}")

    try:
        payload = CorpusFile.model_validate_json(corpus_path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise CorpusError(f"Invalid reference data in {corpus_path}: {exc}") from exc

    documents = tuple(payload.documents)
    templates = tuple(payload.templates)

    if not documents:
        raise CorpusError(f"Corpus {corpus_path} defines no source documents.")
    if not templates:
        raise CorpusError(f"Corpus {corpus_path} defines no control templates.")

    outlines = dict(POLICY_OUTLINES)
    for policy_type, titles in payload.outlines.items():
        if not titles:
            raise CorpusError(f"Outline for {policy_type!r} has no sections.")
        outlines[policy_type] = tuple(titles)

    log.info(
        "Loaded corpus %s: documents=%d, templates=%d, outlines=%d",
        corpus_path.name,
        len(documents),
        len(templates),
        len(outlines),
    )
    return Corpus(documents=documents, templates=templates, outlines=outlines)
