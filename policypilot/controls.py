"""Policy type to control mapping."""

from __future__ import annotations

import logging

from policypilot.corpus import Corpus, default_corpus
from policypilot.models import ControlMapping

log = logging.getLogger(__name__)

FALLBACK_CONTROL_COUNT = 3


def build_control_mappings(policy_type: str, corpus: Corpus | None = None) -> list[ControlMapping]:
    templates = (corpus or default_corpus()).templates
    mapped = [control for control in templates if policy_type in control.policy_types]
    if mapped:
        return mapped

    # Thin template coverage: borrow the first templates and scope them to this policy type.
    log.warning(
        "No control template lists %r; falling back to the first %d templates.",
        policy_type,
        FALLBACK_CONTROL_COUNT,
    )
    return [
        control.model_copy(update={"policy_types": [policy_type]})
        for control in templates[:FALLBACK_CONTROL_COUNT]
    ]
