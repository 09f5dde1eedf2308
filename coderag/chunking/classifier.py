"""Use-case tagging for files and symbols.

Labels are deliberately over-inclusive: a chunk that matches no heuristic is
tagged with every use case rather than none, so it stays reachable from any
search.
"""

from __future__ import annotations

import posixpath
from typing import FrozenSet, Set

from ..models import ALL_USE_CASES, ChunkKind, SourceFile, UseCase
from .constants import (
    API_NAME_MARKERS,
    API_NAME_SUFFIXES,
    BUG_FIXING_SYMBOL_MARKERS,
    CODE_GENERATION_SYMBOL_MARKERS,
    CODE_GENERATION_SYMBOL_PREFIXES,
    DOC_EXTENSIONS,
    DOC_NAME_MARKERS,
    EXAMPLE_NAME_MARKERS,
    HIDDEN_SYMBOL_MARKERS,
    HIDDEN_SYMBOL_PREFIXES,
    PUBLIC_PATH_MARKERS,
    PUBLIC_SYMBOL_MARKERS,
    PUBLIC_SYMBOL_PATH_MARKERS,
    TEST_NAME_MARKERS,
    TEST_PATH_MARKERS,
)


def _contains_any(value: str, markers: tuple[str, ...]) -> bool:
    return any(marker in value for marker in markers)


def _finalise(use_cases: Set[UseCase]) -> FrozenSet[UseCase]:
    if not use_cases:
        return ALL_USE_CASES
    return frozenset(use_cases)


def is_test_file(path: str) -> bool:
    filename = posixpath.basename(path).lower()
    return _contains_any(filename, TEST_NAME_MARKERS) or _contains_any(path, TEST_PATH_MARKERS)


def is_doc_file(path: str) -> bool:
    filename = posixpath.basename(path).lower()
    if _contains_any(filename, DOC_NAME_MARKERS):
        return True
    return posixpath.splitext(path)[1] in DOC_EXTENSIONS


def is_api_file(path: str) -> bool:
    filename = posixpath.basename(path).lower()
    return _contains_any(filename, API_NAME_MARKERS) or filename.endswith(API_NAME_SUFFIXES)


def classify_file(file: SourceFile) -> FrozenSet[UseCase]:
    """Return the use cases a whole file is relevant for."""
    path = file.path
    filename = posixpath.basename(path).lower()
    is_test = is_test_file(path)
    is_doc = is_doc_file(path)
    is_api = is_api_file(path)

    use_cases: Set[UseCase] = set()
    if not is_test and not is_doc:
        use_cases.add(UseCase.BUG_FIXING)
    if is_api or is_test or _contains_any(filename, EXAMPLE_NAME_MARKERS):
        use_cases.add(UseCase.CODE_GENERATION)
    if is_doc or is_api or _contains_any(path, PUBLIC_PATH_MARKERS):
        use_cases.add(UseCase.EXPLANATION)
    return _finalise(use_cases)


def classify_symbol(name: str, kind: ChunkKind, file: SourceFile) -> FrozenSet[UseCase]:
    """Return the use cases a class or function is relevant for."""
    lowered = name.lower()
    is_class = kind is ChunkKind.CLASS

    use_cases: Set[UseCase] = set()
    if _contains_any(lowered, BUG_FIXING_SYMBOL_MARKERS):
        use_cases.add(UseCase.BUG_FIXING)

    if (
        _contains_any(lowered, CODE_GENERATION_SYMBOL_MARKERS)
        or lowered.startswith(CODE_GENERATION_SYMBOL_PREFIXES)
        or is_class
    ):
        use_cases.add(UseCase.CODE_GENERATION)

    hidden = lowered.startswith(HIDDEN_SYMBOL_PREFIXES) or _contains_any(
        lowered, HIDDEN_SYMBOL_MARKERS
    )
    exposed = (
        _contains_any(lowered, PUBLIC_SYMBOL_MARKERS)
        or _contains_any(file.path, PUBLIC_SYMBOL_PATH_MARKERS)
        or is_class
    )
    if not hidden and exposed:
        use_cases.add(UseCase.EXPLANATION)

    return _finalise(use_cases)


__all__ = [
    "classify_file",
    "classify_symbol",
    "is_api_file",
    "is_doc_file",
    "is_test_file",
]
