"""Tokenization, term-frequency vectors and chunking."""

from __future__ import annotations

import math
import re
from collections import Counter

from policypilot.config import CHUNK_SIZE_TOKENS

TermVector = dict[str, int]

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")


def tokenize(text: str) -> list[str]:
    """Lowercase, replace punctuation with spaces and split on whitespace."""
    return _NON_ALPHANUMERIC.sub(" ", text.lower()).split()


def build_vector(text: str) -> TermVector:
    return dict(Counter(tokenize(text)))


def _squared_magnitude(vector: TermVector) -> int:
    return sum(value * value for value in vector.values())


def cosine_similarity(a: TermVector, b: TermVector) -> float:
    """
    Cosine of two sparse term vectors, 0.0 when either is empty.

    The magnitudes are multiplied before the square root so that a vector
    compared with itself scores exactly 1.0.
    """
    denom = math.sqrt(_squared_magnitude(a) * _squared_magnitude(b))
    if not denom:
        return 0.0
    if len(b) < len(a):
        a, b = b, a
    dot = sum(count * b[token] for token, count in a.items() if token in b)
    return min(1.0, dot / denom)


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE_TOKENS) -> list[str]:
    """
    Split text into runs of at most ``chunk_size`` tokens.

    Text without any token is returned verbatim as a single chunk so that
    nothing is lost for punctuation-only or empty input.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}.")
    words = tokenize(text)
    chunks = [
        " ".join(words[start : start + chunk_size])
        for start in range(0, len(words), chunk_size)
    ]
    if not chunks:
        chunks.append(text)
    return chunks
