"""Lightweight local embedder used for the vector index."""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import Dict, Iterable, List, Mapping

_WORD_PATTERN = re.compile(r"[A-Za-z0-9_]+")


def tokenize(text: str) -> List[str]:
    return [token.lower() for token in _WORD_PATTERN.findall(text)]


class LocalEmbedder:
    """Produces L2-normalised bag-of-words vectors."""

    def embed(self, text: str) -> Dict[str, float]:
        tokens = tokenize(text)
        if not tokens:
            return {}
        counts = Counter(tokens)
        norm = math.sqrt(sum(value * value for value in counts.values())) or 1.0
        return {token: value / norm for token, value in counts.items()}

    def embed_many(self, texts: Iterable[str]) -> List[Dict[str, float]]:
        return [self.embed(text) for text in texts]


def cosine_similarity(left: Mapping[str, float], right: Mapping[str, float]) -> float:
    """Dot product of two normalised sparse vectors."""
    if len(left) > len(right):
        left, right = right, left
    return sum(value * right.get(token, 0.0) for token, value in left.items())
