"""Weighted term-vector retrieval of supporting chunks per control."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from policypilot.config import CONTROL_WEIGHT, NARRATIVE_WEIGHT, RETRIEVAL_TOP_K
from policypilot.models import ControlMapping, RetrievedContext, SourceChunk
from policypilot.vectorize import TermVector, build_vector, cosine_similarity

log = logging.getLogger(__name__)


@dataclass
class RetrievedChunk:
    chunk: SourceChunk
    score: float


def control_query(control: ControlMapping) -> str:
    return f"{control.title} {control.description} {' '.join(control.tags)}"


class ContextRetriever:
    """
    Ranks chunks against a control, blending control specificity with the
    overall policy narrative (policy type, industry, jurisdiction).
    """

    def __init__(
        self,
        chunks: list[SourceChunk],
        policy_narrative: str,
        control_weight: float = CONTROL_WEIGHT,
        narrative_weight: float = NARRATIVE_WEIGHT,
    ) -> None:
        self._chunks = chunks
        self._control_weight = control_weight
        self._narrative_weight = narrative_weight
        narrative_vector = build_vector(policy_narrative)
        # The narrative term is identical for every control, so score it once per chunk.
        self._narrative_scores = [
            cosine_similarity(narrative_vector, chunk.vector) for chunk in chunks
        ]

    def score(self, control_vector: TermVector) -> list[float]:
        return [
            self._control_weight * cosine_similarity(control_vector, chunk.vector)
            + self._narrative_weight * narrative_score
            for chunk, narrative_score in zip(self._chunks, self._narrative_scores, strict=True)
        ]

    def search(self, control: ControlMapping, top_k: int = RETRIEVAL_TOP_K) -> list[RetrievedChunk]:
        if top_k < 0:
            raise ValueError(f"top_k must not be negative, got {top_k}.")
        scores = self.score(build_vector(control_query(control)))
        # sorted() is stable, so equal scores keep corpus order.
        best_idx = sorted(range(len(scores)), key=lambda idx: scores[idx], reverse=True)[:top_k]
        return [RetrievedChunk(chunk=self._chunks[idx], score=scores[idx]) for idx in best_idx]


def retrieve_context(
    controls: list[ControlMapping],
    chunks: list[SourceChunk],
    policy_narrative: str,
    top_k: int = RETRIEVAL_TOP_K,
) -> list[RetrievedContext]:
    retriever = ContextRetriever(chunks, policy_narrative)
    retrieved: list[RetrievedContext] = []
    for control in controls:
        ranked = retriever.search(control, top_k=top_k)
        retrieved.append(
            RetrievedContext(
                control_id=control.id,
                chunks=[item.chunk for item in ranked],
                scores=[item.score for item in ranked],
            )
        )
        log.debug(
            "Control %s matched %s",
            control.id,
            ", ".join(f"{item.chunk.id}={item.score:.4f}" for item in ranked) or "nothing",
        )
    return retrieved
