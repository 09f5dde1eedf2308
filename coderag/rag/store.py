"""Vector sink that embeds, persists and searches chunk documents."""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from ..logging import get_logger
from ..models import SearchResult, UseCase, VectorDocument
from .embedder import LocalEmbedder, cosine_similarity, tokenize

logger = get_logger("rag.store")

_STORE_VERSION = 1


class VectorSink(ABC):
    """Contract for the index that receives chunk documents."""

    @abstractmethod
    def init_index(self) -> bool:
        """Create the index when missing. Returns True once it is usable."""

    @abstractmethod
    def index_documents(self, documents: Sequence[VectorDocument]) -> int:
        """Embed and upsert a batch, returning the number stored."""

    @abstractmethod
    def delete_by_repository(self, repository_url: str) -> int:
        """Remove every document extracted from ``repository_url``."""

    @abstractmethod
    def search(
        self,
        query: str,
        use_case: UseCase,
        *,
        limit: int = 10,
        filters: Mapping[str, Any] | None = None,
        min_score: float | None = None,
    ) -> SearchResult:
        """Return the documents closest to ``query`` for ``use_case``."""


class JsonVectorStore(VectorSink):
    """Keeps documents in memory and persists them as a JSON file."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        embedder: LocalEmbedder | None = None,
        index_name: str = "coderag",
        load_existing: bool = True,
    ) -> None:
        self._path = path
        self.embedder = embedder if embedder is not None else LocalEmbedder()
        self.index_name = index_name
        self._documents: Dict[str, Dict[str, Any]] = {}
        # Guards _documents and the index file across worker threads.
        self._lock = threading.RLock()
        if path is not None and load_existing:
            self._load(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def init_index(self) -> bool:
        with self._lock:
            if self._path is None or self._path.exists():
                logger.debug("Index %s already exists", self.index_name)
                return True
            self.persist()
        logger.info("Index %s created at %s", self.index_name, self._path)
        return True

    def index_documents(self, documents: Sequence[VectorDocument]) -> int:
        if not documents:
            return 0
        entries: List[Dict[str, Any]] = []
        for document in documents:
            vector = document.embedding
            if vector is None:
                try:
                    vector = self.embedder.embed(document.text)
                except Exception:
                    logger.exception("Failed to create embedding for document %s", document.id)
                    vector = {}
            entries.append(
                {
                    "id": document.id,
                    "text": document.text,
                    "vector": vector,
                    "metadata": dict(document.metadata),
                }
            )
        with self._lock:
            for entry in entries:
                self._documents[entry["id"]] = entry
            self.persist()
        return len(entries)

    def delete_by_repository(self, repository_url: str) -> int:
        with self._lock:
            doomed = [
                doc_id
                for doc_id, entry in self._documents.items()
                if _lookup(entry["metadata"], "repositoryInfo.url") == repository_url
            ]
            for doc_id in doomed:
                del self._documents[doc_id]
            if doomed:
                self.persist()
        logger.debug("Deleted %d documents for %s", len(doomed), repository_url)
        return len(doomed)

    def search(
        self,
        query: str,
        use_case: UseCase,
        *,
        limit: int = 10,
        filters: Mapping[str, Any] | None = None,
        min_score: float | None = None,
    ) -> SearchResult:
        with self._lock:
            snapshot = list(self._documents.values())
        candidates = [
            entry for entry in snapshot if _matches(entry["metadata"], use_case, filters or {})
        ]

        query_vector = self.embedder.embed(query)
        if query_vector:
            scored = [
                (cosine_similarity(query_vector, entry.get("vector") or {}), entry)
                for entry in candidates
            ]
        else:
            scored = [(_text_score(query, entry["text"]), entry) for entry in candidates]

        threshold = 0.0 if min_score is None else min_score
        hits: List[Tuple[float, Dict[str, Any]]] = [
            (score, entry) for score, entry in scored if score > 0 and score >= threshold
        ]
        hits.sort(key=lambda item: item[0], reverse=True)
        hits = hits[: max(0, limit)]

        return SearchResult(
            chunks=[_to_chunk_payload(entry) for _, entry in hits],
            scores=[round(score, 6) for score, _ in hits],
        )

    def ids(self) -> Iterable[str]:
        with self._lock:
            return list(self._documents.keys())

    def persist(self) -> None:
        if self._path is None:
            return
        with self._lock:
            payload = {
                "version": _STORE_VERSION,
                "index": self.index_name,
                "documents": list(self._documents.values()),
            }
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable index %s: %s", path, exc)
            return
        if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
            return
        for entry in data.get("documents") or []:
            if not isinstance(entry, dict):
                continue
            if not isinstance(entry.get("id"), str) or "text" not in entry:
                continue
            if not isinstance(entry.get("metadata"), dict):
                continue
            vector = entry.get("vector")
            entry["vector"] = (
                {str(key): float(value) for key, value in vector.items()}
                if isinstance(vector, dict)
                else {}
            )
            self._documents[entry["id"]] = entry


def _lookup(metadata: Mapping[str, Any], key: str) -> Any:
    current: Any = metadata
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _matches(metadata: Mapping[str, Any], use_case: UseCase, filters: Mapping[str, Any]) -> bool:
    if use_case.value not in (metadata.get("useCases") or []):
        return False
    for key, expected in filters.items():
        actual = _lookup(metadata, key)
        if isinstance(actual, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


def _text_score(query: str, text: str) -> float:
    terms = set(tokenize(query)) or {query.lower().strip()}
    terms.discard("")
    if not terms:
        return 0.0
    haystack = text.lower()
    found = sum(1 for term in terms if term in haystack)
    return found / len(terms)


def _to_chunk_payload(entry: Mapping[str, Any]) -> Dict[str, Any]:
    metadata = entry["metadata"]
    return {
        "id": entry["id"],
        "content": entry["text"],
        "type": metadata.get("type"),
        "useCases": metadata.get("useCases", []),
        "metadata": metadata,
    }


__all__ = ["JsonVectorStore", "VectorSink"]
