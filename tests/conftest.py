from __future__ import annotations

import itertools
from pathlib import Path
from typing import Callable

import pytest

from coderag.models import ChunkKind, RepositoryRef
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def repo_ref() -> RepositoryRef:
    return RepositoryRef.from_url("https://github.com/octo/widgets.git", "main")


@pytest.fixture
def sequential_ids() -> Callable[[ChunkKind], str]:
    """Deterministic chunk id source: ``<kind>-<n>``."""
    counter = itertools.count()

    def _next(kind: ChunkKind) -> str:
        return f"{kind.value}-{next(counter)}"

    return _next
