"""CLI entrypoint for generating a policy draft."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from policypilot.config import CORPUS_PATH, LOG_LEVEL, OUTPUTS_DIR, bootstrap_runtime_dirs
from policypilot.corpus import POLICY_TYPES

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Draft a compliance policy from the regulatory source corpus."
    )
    parser.add_argument(
        "--policy-type",
        required=True,
        help=f"Policy to draft, e.g. {', '.join(POLICY_TYPES[:3])}.",
    )
    parser.add_argument("--industry", default="technology", help="Tenant industry.")
    parser.add_argument("--jurisdiction", default="United Kingdom", help="Tenant jurisdiction.")
    parser.add_argument("--tenant-name", default="Acme Corp", help="Name used in drafted text.")
    parser.add_argument("--tenant-id", default="tenant-local")
    parser.add_argument("--user-id", default="user-local")
    parser.add_argument("--business-size", default=None)
    parser.add_argument(
        "--corpus",
        default=CORPUS_PATH or None,
        help="Optional JSON corpus replacing the built-in reference data.",
    )
    parser.add_argument(
        "--output",
        default=str(OUTPUTS_DIR / "policy_result.json"),
        help="Path for JSON result output.",
    )
    parser.add_argument(
        "--document",
        default=None,
        help="Optional path for the Markdown document.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the result JSON.",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else LOG_LEVEL,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    bootstrap_runtime_dirs()

    from policypilot.corpus import load_corpus
    from policypilot.models import PipelineProgressUpdate, PolicyPipelineRequest
    from policypilot.pipeline import (
        STEP_LABELS,
        ProgressRecorder,
        run_policy_generation_pipeline,
        write_result_json,
    )
    from policypilot.store import InMemoryPolicyStore

    def _print_progress(update: PipelineProgressUpdate) -> None:
        if args.quiet or update.status == "pending":
            return
        suffix = f" ({update.detail})" if update.detail else ""
        print(f"[{update.status:>8}] {STEP_LABELS[update.step]}{suffix}")

    request = PolicyPipelineRequest(
        tenant_id=args.tenant_id,
        tenant_name=args.tenant_name,
        user_id=args.user_id,
        policy_type=args.policy_type,
        industry=args.industry,
        jurisdiction=args.jurisdiction,
        business_size=args.business_size,
    )
    corpus = load_corpus(args.corpus) if args.corpus else None
    progress = ProgressRecorder(forward=_print_progress)
    try:
        result = run_policy_generation_pipeline(
            request,
            InMemoryPolicyStore(),
            on_progress=progress,
            corpus=corpus,
        )
    except Exception:
        log.error(
            "Generation aborted; steps marked as failed: %s",
            ", ".join(STEP_LABELS[step] for step in progress.failed_steps()),
        )
        raise
    write_result_json(result, args.output)
    if args.document:
        doc_path = Path(args.document).expanduser().resolve()
        doc_path.parent.mkdir(parents=True, exist_ok=True)
        doc_path.write_text(result.document, encoding="utf-8")
    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=True))


if __name__ == "__main__":
    main()
