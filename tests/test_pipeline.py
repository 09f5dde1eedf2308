"""Tests for the ingestion pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import pytest

from coderag.chunking import CodeChunker
from coderag.config import CodeRagConfig, IngestConfig
from coderag.models import ChunkKind, RepositoryRef, SourceFile, UseCase, VectorDocument
from coderag.pipeline import Pipeline, PipelineError, prepare_documents
from coderag.rag.store import JsonVectorStore

FILES = [
    SourceFile("README.md", "# Widgets\nWidgets explain themselves.\n", None, 36),
    SourceFile(
        "src/widget.ts",
        "export function createWidget() {\n  return {};\n}\n",
        "typescript",
        48,
    ),
    SourceFile("yarn.lock", "lockfile v1\n", None, 12),
]


class _FakeRepository:
    instances: List["_FakeRepository"] = []

    def __init__(self, ref: RepositoryRef, work_dir: Path, files: Sequence[SourceFile] = FILES) -> None:
        self.ref = ref
        self.work_dir = work_dir
        self.files = list(files)
        self.events: List[str] = []
        _FakeRepository.instances.append(self)

    def clone_or_pull(self) -> Path:
        self.events.append("clone")
        return self.work_dir

    def get_files(self, extensions=None) -> List[SourceFile]:
        self.events.append(f"files:{extensions}")
        return self.files

    def cleanup(self, *, remove: bool = False) -> None:
        self.events.append(f"cleanup:{remove}")


class _SpyStore(JsonVectorStore):
    def __init__(self) -> None:
        super().__init__()
        self.batches: List[int] = []
        self.events: List[str] = []

    def index_documents(self, documents: Sequence[VectorDocument]) -> int:
        self.batches.append(len(documents))
        self.events.append("index")
        return super().index_documents(documents)

    def delete_by_repository(self, repository_url: str) -> int:
        self.events.append("delete")
        return super().delete_by_repository(repository_url)


@pytest.fixture(autouse=True)
def _reset_fake_repositories() -> None:
    _FakeRepository.instances.clear()


def _pipeline(tmp_path: Path, store: JsonVectorStore, *, batch_size: int = 100, keep_clones: bool = True) -> Pipeline:
    config = CodeRagConfig(
        root=tmp_path,
        ingest=IngestConfig(work_dir=tmp_path / "work", batch_size=batch_size, keep_clones=keep_clones),
    )
    return Pipeline(config, store=store, repository_factory=_FakeRepository)


def test_process_repository_indexes_chunks(tmp_path: Path) -> None:
    store = _SpyStore()
    pipeline = _pipeline(tmp_path, store)

    indexed = pipeline.process_repository("https://github.com/octo/widgets.git", "main")

    # README file + summary, widget file + function; the lockfile is filtered.
    assert indexed == 4
    assert len(store) == 4
    assert store.events[0] == "delete"
    repo = _FakeRepository.instances[0]
    assert repo.ref == RepositoryRef("https://github.com/octo/widgets.git", "octo", "widgets", "main")
    assert repo.work_dir == tmp_path / "work"
    assert repo.events == ["clone", "files:None", "cleanup:False"]


def test_reprocessing_replaces_previous_documents(tmp_path: Path) -> None:
    store = _SpyStore()
    pipeline = _pipeline(tmp_path, store)
    url = "https://github.com/octo/widgets"

    pipeline.process_repository(url)
    first_ids = set(store.ids())
    pipeline.process_repository(url)

    assert len(store) == 4
    assert first_ids.isdisjoint(store.ids())


def test_documents_are_indexed_in_batches(tmp_path: Path) -> None:
    store = _SpyStore()
    pipeline = _pipeline(tmp_path, store, batch_size=3, keep_clones=False)

    assert pipeline.process_repository("https://github.com/octo/widgets") == 4
    assert store.batches == [3, 1]
    assert _FakeRepository.instances[0].events[-1] == "cleanup:True"


def test_failures_surface_as_single_pipeline_error(tmp_path: Path) -> None:
    class _BrokenRepository(_FakeRepository):
        def clone_or_pull(self) -> Path:
            raise RuntimeError("network unreachable")

    config = CodeRagConfig(root=tmp_path, ingest=IngestConfig(work_dir=tmp_path))
    pipeline = Pipeline(config, store=JsonVectorStore(), repository_factory=_BrokenRepository)

    with pytest.raises(PipelineError, match="network unreachable"):
        pipeline.process_repository("https://github.com/octo/widgets")


def test_prepare_documents_flattens_metadata(sequential_ids) -> None:
    ref = RepositoryRef.from_url("https://github.com/octo/widgets")
    chunks = CodeChunker(ref, id_factory=sequential_ids).process_files(FILES[1:2])

    documents = prepare_documents(chunks)

    assert [doc.id for doc in documents] == ["file-0", "function-1"]
    function_doc = documents[1]
    assert function_doc.text == chunks[1].content
    assert function_doc.metadata["type"] == "function"
    assert function_doc.metadata["useCases"] == ["code_generation"]
    assert function_doc.metadata["symbolName"] == "createWidget"
    assert function_doc.metadata["repositoryInfo"]["url"] == ref.url


def test_search_after_processing(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path, JsonVectorStore())
    pipeline.process_repository("https://github.com/octo/widgets")

    result = pipeline.search("widgets explain", UseCase.EXPLANATION)

    assert result.chunks
    assert {chunk["metadata"]["filePath"] for chunk in result.chunks} == {"README.md"}


def test_chunk_directory_reads_local_checkout(repo_builder) -> None:
    repo_builder.write(
        {
            "README.md": "# Local\n",
            "src/main.py": "def main():\n    print('hi')\n",
        }
    )
    pipeline = Pipeline(CodeRagConfig(root=repo_builder.path()), store=JsonVectorStore())

    chunks = pipeline.chunk_directory(repo_builder.path(), url="https://github.com/octo/local")

    assert [(chunk.metadata.file_path, chunk.kind) for chunk in chunks] == [
        ("README.md", ChunkKind.FILE),
        ("README.md", ChunkKind.SUMMARY),
        ("src/main.py", ChunkKind.FILE),
        ("src/main.py", ChunkKind.FUNCTION),
    ]
    assert chunks[0].metadata.repository.name == "local"


def test_injected_empty_store_is_kept(tmp_path: Path) -> None:
    store = JsonVectorStore()
    pipeline = Pipeline(CodeRagConfig(root=tmp_path), store=store)

    assert len(store) == 0
    assert pipeline.store is store
