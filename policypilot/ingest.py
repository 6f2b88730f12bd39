"""Source selection and chunking over the reference corpus."""

from __future__ import annotations

import logging

from policypilot.config import CHUNK_SIZE_TOKENS
from policypilot.corpus import Corpus, default_corpus
from policypilot.models import SourceChunk, SourceDocument
from policypilot.vectorize import build_vector, chunk_text

log = logging.getLogger(__name__)

OVERVIEW_TAG = "overview"


def _matches_industry(source: SourceDocument, industry: str) -> bool:
    wanted = industry.strip().lower()
    if not wanted:
        return False
    return any(
        candidate == wanted or candidate in wanted or wanted in candidate
        for candidate in (item.lower() for item in source.industries)
    )


def _matches_jurisdiction(source: SourceDocument, jurisdiction: str) -> bool:
    source_jurisdiction = source.jurisdiction.lower()
    return source_jurisdiction == jurisdiction.lower() or "global" in source_jurisdiction


def is_relevant_source(
    source: SourceDocument,
    policy_type: str,
    industry: str,
    jurisdiction: str,
) -> bool:
    return (
        policy_type in source.policy_types
        or _matches_industry(source, industry)
        or _matches_jurisdiction(source, jurisdiction)
    )


def select_sources(
    policy_type: str,
    industry: str,
    jurisdiction: str,
    corpus: Corpus | None = None,
) -> list[SourceDocument]:
    """Relevant documents, or the whole corpus when nothing matches."""
    library = (corpus or default_corpus()).documents
    relevant = [
        source
        for source in library
        if is_relevant_source(source, policy_type, industry, jurisdiction)
    ]
    if not relevant:
        log.warning(
            "No source matched policy_type=%r industry=%r jurisdiction=%r; using all %d sources.",
            policy_type,
            industry,
            jurisdiction,
            len(library),
        )
        return list(library)
    return relevant


def chunk_source(source: SourceDocument, chunk_size: int = CHUNK_SIZE_TOKENS) -> list[SourceChunk]:
    chunks: list[SourceChunk] = []
    for idx, text in enumerate(chunk_text(source.excerpt, chunk_size)):
        chunks.append(
            SourceChunk(
                id=f"{source.id}-excerpt-{idx}",
                source=source,
                text=text,
                tags=[OVERVIEW_TAG],
                vector=build_vector(text),
            )
        )
    for control in source.controls:
        for idx, text in enumerate(chunk_text(control.text, chunk_size)):
            chunks.append(
                SourceChunk(
                    id=f"{source.id}-{control.id}-{idx}",
                    source=source,
                    control=control,
                    text=text,
                    tags=list(control.tags),
                    vector=build_vector(text),
                )
            )
    return chunks


def ingest_sources(
    policy_type: str,
    industry: str,
    jurisdiction: str,
    corpus: Corpus | None = None,
    chunk_size: int = CHUNK_SIZE_TOKENS,
) -> list[SourceChunk]:
    sources = select_sources(policy_type, industry, jurisdiction, corpus)
    all_chunks: list[SourceChunk] = []
    for source in sources:
        all_chunks.extend(chunk_source(source, chunk_size))
    log.info(
        "Ingested %d chunks from %d sources (%s)",
        len(all_chunks),
        len(sources),
        ", ".join(source.id for source in sources),
    )
    return all_chunks
