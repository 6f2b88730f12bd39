# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from policypilot.corpus import POLICY_TYPES, load_corpus
from policypilot.models import PolicyPipelineRequest, PolicyPipelineResult
from policypilot.pipeline import run_policy_generation_pipeline
from policypilot.store import InMemoryPolicyStore

log = logging.getLogger("policypilot.pack")


def _slug(policy_type: str) -> str:
    return "-".join(policy_type.lower().split())


def _build_coverage_report(results: dict[str, PolicyPipelineResult]) -> dict[str, Any]:
    rows = []
    for policy_type, result in results.items():
        coverage = result.control_coverage
        rows.append(
            {
                "policy_type": policy_type,
                "policy_id": result.policy_id,
                "version_id": result.version_id,
                "covered": coverage.covered,
                "missing": coverage.missing,
                "citations": sum(len(section.provenance) for section in result.sections),
                "fallback_sections": [
                    section.title for section in result.sections if not section.provenance
                ],
            }
        )
    return {
        "generated_at": datetime.now(UTC).isoformat(),
        "policies": rows,
        "total_missing": sum(len(row["missing"]) for row in rows),
    }


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a draft for every supported policy type and bundle the results."
    )
    parser.add_argument("--tenant-name", default="Acme Corp")
    parser.add_argument("--tenant-id", default="tenant-local")
    parser.add_argument("--industry", default="technology")
    parser.add_argument("--jurisdiction", default="United Kingdom")
    parser.add_argument("--corpus", default=None, help="Optional JSON corpus file.")
    parser.add_argument("--workers", type=int, default=1, help="Pipelines to run in parallel.")
    parser.add_argument("--output-dir", default="outputs")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    corpus = load_corpus(args.corpus) if args.corpus else None
    store = InMemoryPolicyStore()

    def _run(policy_type: str) -> PolicyPipelineResult:
        request = PolicyPipelineRequest(
            tenant_id=args.tenant_id,
            tenant_name=args.tenant_name,
            user_id="pack-generator",
            policy_type=policy_type,
            industry=args.industry,
            jurisdiction=args.jurisdiction,
        )
        return run_policy_generation_pipeline(request, store, corpus=corpus)

    with ThreadPoolExecutor(max_workers=max(1, args.workers)) as pool:
        results = dict(zip(POLICY_TYPES, pool.map(_run, POLICY_TYPES), strict=True))

    ts = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    bundle_dir = Path(args.output_dir) / f"{_slug(args.tenant_name)}-policies-{ts}"
    bundle_dir.mkdir(parents=True, exist_ok=True)

    for policy_type, result in results.items():
        slug = _slug(policy_type)
        (bundle_dir / f"{slug}.md").write_text(result.document, encoding="utf-8")
        (bundle_dir / f"{slug}.json").write_text(
            json.dumps(result.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=True),
            encoding="utf-8",
        )
    report = _build_coverage_report(results)
    (bundle_dir / "coverage_report.json").write_text(
        json.dumps(report, indent=2, ensure_ascii=True),
        encoding="utf-8",
    )
    log.info("Wrote %d policies to %s (%d open gaps)", len(results), bundle_dir, report["total_missing"])


if __name__ == "__main__":
    main()
