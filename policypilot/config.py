"""Centralized configuration for the policy-generation pipeline."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

OUTPUTS_DIR = Path(os.getenv("OUTPUTS_DIR", str(PROJECT_ROOT / "outputs")))


def bootstrap_runtime_dirs() -> None:
    OUTPUTS_DIR.mkdir(parents=True, exist_ok=True)

# Reference data
CORPUS_PATH = os.getenv("CORPUS_PATH", "")

# Chunking and retrieval
CHUNK_SIZE_TOKENS = int(os.getenv("CHUNK_SIZE_TOKENS", "70"))
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "2"))
CONTROL_WEIGHT = float(os.getenv("CONTROL_WEIGHT", "0.6"))
NARRATIVE_WEIGHT = float(os.getenv("NARRATIVE_WEIGHT", "0.4"))

# Drafting
PROVENANCE_CONFIDENCE = float(os.getenv("PROVENANCE_CONFIDENCE", "0.85"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
