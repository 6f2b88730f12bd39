from __future__ import annotations

import json
import logging
from datetime import datetime

import streamlit as st

from policypilot.config import CORPUS_PATH, bootstrap_runtime_dirs
from policypilot.corpus import POLICY_TYPES, load_corpus
from policypilot.models import PipelineProgressUpdate, PolicyPipelineRequest, PolicyPipelineResult
from policypilot.pipeline import (
    PIPELINE_STEPS,
    STEP_LABELS,
    ProgressRecorder,
    run_policy_generation_pipeline,
)
from policypilot.store import InMemoryPolicyStore

st.set_page_config(page_title="PolicyPilot Generator", layout="wide")
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
log = logging.getLogger("policypilot.portal")

STATUS_LABELS = {
    "pending": "Waiting",
    "running": "Running",
    "complete": "Complete",
    "error": "Error",
}
STATUS_ICONS = {
    "pending": "○",
    "running": "◔",
    "complete": "✓",
    "error": "✗",
}


def _init_state() -> None:
    st.session_state.setdefault("store", InMemoryPolicyStore())
    st.session_state.setdefault("result", None)
    st.session_state.setdefault("activity_logs", [])
    st.session_state.setdefault("steps", ProgressRecorder())


def _apply_ui_theme() -> None:
    st.markdown(
        """
        <style>
        .block-container {padding-top: 1.2rem; padding-bottom: 1rem;}
        [data-testid="stMetricValue"] {font-size: 1.6rem;}
        .stAlert {padding-top: 0.45rem; padding-bottom: 0.45rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )


def _log_event(message: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    st.session_state.activity_logs.append(f"{ts} | {message}")
    log.info(message)


def _render_sidebar() -> PolicyPipelineRequest:
    st.sidebar.title("Generation Settings")
    tenant_name = st.sidebar.text_input("Organization", value="Acme Corp")
    policy_type = st.sidebar.selectbox("Policy Type *", options=list(POLICY_TYPES), index=0)
    industry = st.sidebar.text_input("Industry", value="technology")
    jurisdiction = st.sidebar.text_input("Jurisdiction", value="United Kingdom")
    business_size = st.sidebar.selectbox(
        "Business size",
        options=["small", "medium", "large"],
        index=1,
    )
    return PolicyPipelineRequest(
        tenant_id=tenant_name.strip().lower().replace(" ", "-") or "tenant",
        tenant_name=tenant_name,
        user_id="portal-user",
        policy_type=policy_type,
        industry=industry,
        jurisdiction=jurisdiction,
        business_size=business_size,
    )


def _render_steps(placeholder) -> None:
    rows = []
    progress = st.session_state.steps
    for step in PIPELINE_STEPS:
        status = progress.status.get(step, "pending")
        rows.append(
            {
                "": STATUS_ICONS[status],
                "Step": STEP_LABELS[step],
                "Status": STATUS_LABELS[status],
                "Detail": progress.detail.get(step) or "",
            }
        )
    placeholder.dataframe(rows, hide_index=True, use_container_width=True)


def _render_notifications(request: PolicyPipelineRequest) -> None:
    notes = st.session_state.store.notifications_for(request.user_id, request.tenant_id)
    st.sidebar.subheader(f"Notifications ({len(notes)})")
    for note in reversed(notes[-5:]):
        st.sidebar.caption(f"{note.title}: {note.description}")


def _render_result(result: PolicyPipelineResult) -> None:
    coverage = result.control_coverage
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Sections", len(result.sections))
    with col2:
        st.metric("Controls covered", len(coverage.covered))
    with col3:
        st.metric("Gaps tracked", len(coverage.missing))
    st.markdown(f"**Executive summary:** {result.summary}")
    st.warning("Draft output. Legal review is required before publication.")

    doc_tab, evidence_tab, coverage_tab, versions_tab = st.tabs(
        ["Document", "Sections & Provenance", "Coverage", "Versions"]
    )
    with doc_tab:
        st.markdown(result.document)
    with evidence_tab:
        for section in result.sections:
            label = f"{section.title} ({len(section.provenance)} citations)"
            with st.expander(label, expanded=False):
                st.caption("Controls: " + (", ".join(section.controls_covered) or "none"))
                for tag in section.provenance:
                    st.code(
                        f"[{tag.source_name} | {tag.jurisdiction}] {tag.citation} "
                        f"chunk={tag.chunk_id} confidence={tag.confidence:.2f}",
                        language="text",
                    )
    with coverage_tab:
        for control_id, entry in coverage.coverage_by_control.items():
            sections = ", ".join(entry.sections) or "-"
            st.write(f"- **{control_id}**: {entry.status} ({sections})")
    with versions_tab:
        for version in st.session_state.store.get_policy_versions(result.policy_id):
            marker = " (current)" if version.id == result.version_id else ""
            st.write(f"- v{version.version_number}{marker}: {version.summary}")

    st.download_button(
        "Download result JSON",
        data=json.dumps(result.model_dump(mode="json", by_alias=True), indent=2),
        file_name=f"{result.policy_id}.json",
        mime="application/json",
        use_container_width=True,
    )


def main() -> None:
    bootstrap_runtime_dirs()
    _init_state()
    _apply_ui_theme()
    st.title("Automated Policy Generation")
    st.caption(
        "Launch the ingestion, retrieval, drafting, and verification pipeline for a selected "
        "policy type."
    )

    request = _render_sidebar()
    steps_placeholder = st.empty()
    _render_steps(steps_placeholder)

    if st.button("Generate Policy", use_container_width=True):
        st.session_state.activity_logs = []

        def _on_progress(update: PipelineProgressUpdate) -> None:
            _render_steps(steps_placeholder)

        st.session_state.steps = ProgressRecorder(forward=_on_progress)

        try:
            _log_event(f"Run started: {request.policy_type} for {request.tenant_name}.")
            corpus = load_corpus(CORPUS_PATH) if CORPUS_PATH else None
            result = run_policy_generation_pipeline(
                request,
                st.session_state.store,
                on_progress=st.session_state.steps,
                corpus=corpus,
            )
            st.session_state.result = result
            _log_event(f"Run completed: policy={result.policy_id}, version={result.version_id}.")
            st.success(result.summary)
        except Exception as exc:  # pragma: no cover - streamlit UI guard
            failed = ", ".join(STEP_LABELS[step] for step in st.session_state.steps.failed_steps())
            _log_event(f"Pipeline failed at {failed or 'setup'}: {exc}")
            st.error("Failed to generate policy. Please try again.")
            st.exception(exc)

    _render_notifications(request)

    with st.expander("Pipeline activity", expanded=False):
        if st.session_state.activity_logs:
            st.code("\n".join(st.session_state.activity_logs[-30:]), language="text")
        else:
            st.caption("No activity yet.")

    st.divider()
    if st.session_state.result is None:
        st.info("Choose a policy type in the sidebar and press 'Generate Policy' to begin.")
        return
    _render_result(st.session_state.result)


if __name__ == "__main__":
    main()
