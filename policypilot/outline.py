"""Canonical section outlines and control assignment."""

from __future__ import annotations

import re

from policypilot.corpus import DEFAULT_OBJECTIVE, SECTION_OBJECTIVES, Corpus, default_corpus
from policypilot.models import ControlMapping, PolicyOutlineSection


_WHITESPACE = re.compile(r"\s+")


def section_id(policy_type: str, position: int) -> str:
    slug = _WHITESPACE.sub("-", policy_type).lower()
    return f"{slug}-section-{position}"


def generate_outline(
    policy_type: str,
    controls: list[ControlMapping],
    corpus: Corpus | None = None,
) -> list[PolicyOutlineSection]:
    """
    Build the ordered outline for ``policy_type``.

    Controls are dealt out round-robin by index: control ``j`` lands in
    section ``j % len(sections)``. This is positional, not semantic.
    """
    titles = (corpus or default_corpus()).outline_for(policy_type)
    count = len(titles)
    return [
        PolicyOutlineSection(
            id=section_id(policy_type, idx + 1),
            title=title,
            objective=SECTION_OBJECTIVES.get(title, DEFAULT_OBJECTIVE),
            controls=[
                control.id
                for control_idx, control in enumerate(controls)
                if control_idx % count == idx % count
            ],
        )
        for idx, title in enumerate(titles)
    ]
