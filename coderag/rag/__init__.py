"""Embedding and vector index collaborators."""

from __future__ import annotations

from .embedder import LocalEmbedder, cosine_similarity
from .store import JsonVectorStore, VectorSink

__all__ = ["JsonVectorStore", "LocalEmbedder", "VectorSink", "cosine_similarity"]
