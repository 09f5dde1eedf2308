"""Tests for the JSON vector store."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import List

from coderag.models import UseCase, VectorDocument
from coderag.rag.embedder import LocalEmbedder, cosine_similarity
from coderag.rag.store import JsonVectorStore


def _doc(doc_id: str, text: str, *, repo: str = "https://github.com/octo/widgets", use_cases=("bug_fixing",), **extra) -> VectorDocument:
    metadata = {
        "repositoryInfo": {"url": repo, "owner": "octo", "name": repo.rsplit("/", 1)[-1]},
        "filePath": extra.pop("path", "src/app.py"),
        "type": extra.pop("type", "file"),
        "useCases": list(use_cases),
    }
    metadata.update(extra)
    return VectorDocument(id=doc_id, text=text, metadata=metadata)


def test_embedder_vectors_are_normalised() -> None:
    embedder = LocalEmbedder()
    vector = embedder.embed("Parse parse tokens")

    assert set(vector) == {"parse", "tokens"}
    assert abs(cosine_similarity(vector, vector) - 1.0) < 1e-9
    assert embedder.embed("   ") == {}


def test_search_ranks_by_similarity_within_use_case() -> None:
    store = JsonVectorStore()
    store.index_documents(
        [
            _doc("a", "def parse_config(path): load yaml config"),
            _doc("b", "def render_page(): html template"),
            _doc("c", "parse config for explanation", use_cases=("explanation",)),
        ]
    )

    result = store.search("parse config", UseCase.BUG_FIXING)

    assert [chunk["id"] for chunk in result.chunks] == ["a"]
    assert result.chunks[0]["content"].startswith("def parse_config")
    assert result.chunks[0]["useCases"] == ["bug_fixing"]
    assert result.scores[0] > 0


def test_search_applies_limit_filters_and_min_score() -> None:
    store = JsonVectorStore()
    store.index_documents(
        [
            _doc("a", "token token parser", language="python"),
            _doc("b", "token lexer", language="go"),
            _doc("c", "token", language="python", repo="https://github.com/octo/other"),
        ]
    )

    assert len(store.search("token", UseCase.BUG_FIXING, limit=2).chunks) == 2

    python_only = store.search("token", UseCase.BUG_FIXING, filters={"language": "python"})
    assert {chunk["id"] for chunk in python_only.chunks} == {"a", "c"}

    by_repo = store.search(
        "token",
        UseCase.BUG_FIXING,
        filters={"repositoryInfo.url": "https://github.com/octo/other"},
    )
    assert [chunk["id"] for chunk in by_repo.chunks] == ["c"]

    strict = store.search("token", UseCase.BUG_FIXING, min_score=0.99)
    assert [chunk["id"] for chunk in strict.chunks] == ["c"]


def test_search_falls_back_to_text_matching_when_query_has_no_words() -> None:
    store = JsonVectorStore()
    store.index_documents([_doc("a", "if (a) { b(); }"), _doc("b", "plain words")])

    result = store.search("();", UseCase.BUG_FIXING)
    assert [chunk["id"] for chunk in result.chunks] == ["a"]
    assert result.scores == [1.0]

    assert store.search("{}", UseCase.BUG_FIXING).chunks == []


def test_delete_by_repository_only_removes_that_repository() -> None:
    store = JsonVectorStore()
    store.index_documents(
        [
            _doc("a", "alpha"),
            _doc("b", "beta"),
            _doc("c", "gamma", repo="https://github.com/octo/other"),
        ]
    )

    assert store.delete_by_repository("https://github.com/octo/widgets") == 2
    assert list(store.ids()) == ["c"]
    assert store.delete_by_repository("https://github.com/octo/widgets") == 0


def test_store_persists_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "index" / "store.json"
    store = JsonVectorStore(path, index_name="widgets")
    assert store.init_index() is True
    assert path.exists()

    store.index_documents([_doc("a", "persist me please")])

    reloaded = JsonVectorStore(path)
    assert len(reloaded) == 1
    assert reloaded.search("persist", UseCase.BUG_FIXING).chunks[0]["id"] == "a"


def test_unreadable_store_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    assert len(JsonVectorStore(path)) == 0


def test_index_documents_with_empty_batch() -> None:
    assert JsonVectorStore().index_documents([]) == 0


def test_search_during_concurrent_indexing(tmp_path: Path) -> None:
    store = JsonVectorStore(tmp_path / "index.json")
    errors: List[BaseException] = []
    done = threading.Event()

    def _index() -> None:
        try:
            for batch in range(40):
                store.index_documents(
                    [_doc(f"{batch}-{n}", f"def handle_{n}(): pass") for n in range(25)]
                )
        except BaseException as exc:  # pragma: no cover - surfaced by the assertion
            errors.append(exc)
        finally:
            done.set()

    def _search() -> None:
        try:
            while not done.is_set():
                store.search("handle", UseCase.BUG_FIXING)
                store.delete_by_repository("https://github.com/octo/other")
        except BaseException as exc:  # pragma: no cover - surfaced by the assertion
            errors.append(exc)

    threads = [threading.Thread(target=_index), threading.Thread(target=_search)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert len(store) == 1000
    assert len(JsonVectorStore(tmp_path / "index.json")) == 1000
