"""Pipeline orchestration: clone, chunk, purge, index and search."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .chunking import CodeChunker
from .config import CodeRagConfig, load_config
from .logging import get_logger
from .models import Chunk, RepositoryRef, SearchResult, UseCase, VectorDocument
from .rag.store import JsonVectorStore, VectorSink
from .repository import GitRepository, collect_source_files

RepositoryFactory = Callable[[RepositoryRef, Path], GitRepository]
ChunkerFactory = Callable[[RepositoryRef], CodeChunker]


class PipelineError(RuntimeError):
    """Raised when a repository cannot be processed end to end."""


def prepare_documents(chunks: Sequence[Chunk]) -> List[VectorDocument]:
    """Convert chunks into the document shape accepted by the vector sink."""
    documents: List[VectorDocument] = []
    for chunk in chunks:
        metadata = chunk.metadata.to_dict()
        metadata["type"] = chunk.kind.value
        metadata["useCases"] = [case.value for case in chunk.ordered_use_cases()]
        documents.append(VectorDocument(id=chunk.id, text=chunk.content, metadata=metadata))
    return documents


class Pipeline:
    """Coordinates repository ingestion and retrieval."""

    def __init__(
        self,
        config: CodeRagConfig | None = None,
        *,
        store: VectorSink | None = None,
        repository_factory: RepositoryFactory | None = None,
        chunker_factory: ChunkerFactory | None = None,
    ) -> None:
        self.config = config if config is not None else load_config(Path.cwd())
        self.store = (
            store
            if store is not None
            else JsonVectorStore(self.config.store.path, index_name=self.config.store.index)
        )
        self._repository_factory = (
            repository_factory if repository_factory is not None else GitRepository
        )
        self._chunker_factory = chunker_factory if chunker_factory is not None else CodeChunker
        self.logger = get_logger("pipeline")
        # Purge and reindex of one repository must not interleave with another run.
        self._ingest_lock = threading.Lock()

    def initialize_index(self) -> bool:
        return self.store.init_index()

    def process_repository(self, repository_url: str, branch: str | None = None) -> int:
        """Index ``repository_url`` and return the number of stored documents."""
        ingest = self.config.ingest
        try:
            self.logger.info("Processing repository: %s", repository_url)
            ref = RepositoryRef.from_url(repository_url, branch)
            repo = self._repository_factory(ref, ingest.work_dir)
            repo.clone_or_pull()

            files = repo.get_files(ingest.extensions or None)
            self.logger.info("Got %d files from repository", len(files))

            chunks = self._chunker_factory(ref).process_files(files)
            self.logger.info("Created %d chunks from repository files", len(chunks))

            documents = prepare_documents(chunks)
            with self._ingest_lock:
                deleted = self.store.delete_by_repository(repository_url)
                self.logger.debug("Purged %d stale documents", deleted)
                indexed = self._index_in_batches(documents, ingest.batch_size)
            self.logger.info(
                "Completed processing repository %s. Indexed %d documents.",
                repository_url,
                indexed,
            )

            repo.cleanup(remove=not ingest.keep_clones)
            return indexed
        except Exception as exc:
            self.logger.exception("Failed to process repository %s", repository_url)
            raise PipelineError(f"Failed to process repository {repository_url}: {exc}") from exc

    def chunk_directory(self, path: str | Path, url: str | None = None) -> List[Chunk]:
        """Chunk a local checkout without touching git or the vector sink."""
        root = Path(path).expanduser().resolve()
        ref = RepositoryRef.from_url(url or root.as_uri())
        files = collect_source_files(root, self.config.ingest.extensions or None)
        return self._chunker_factory(ref).process_files(files)

    def search(
        self,
        query: str,
        use_case: UseCase,
        *,
        limit: int = 10,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> SearchResult:
        return self.store.search(query, use_case, limit=limit, filters=filters)

    def _index_in_batches(self, documents: Sequence[VectorDocument], batch_size: int) -> int:
        indexed = 0
        for start in range(0, len(documents), batch_size):
            batch = documents[start : start + batch_size]
            result = self.store.index_documents(batch)
            indexed += result
            self.logger.info(
                "Indexed batch of %d documents (%d/%d)", result, indexed, len(documents)
            )
        return indexed


__all__ = ["Pipeline", "PipelineError", "prepare_documents"]
