"""Eligibility checks applied before a file is chunked."""

from __future__ import annotations

from typing import Sequence

from ..models import SourceFile
from .constants import (
    BINARY_CONTROL_RATIO,
    CONTROL_CHAR_PATTERN,
    MAX_FILE_BYTES,
    SKIP_PATH_FRAGMENTS,
    SKIP_PATH_SUFFIXES,
)


def is_likely_binary(content: str) -> bool:
    """Return True when text looks like decoded binary data."""
    if "\0" in content:
        return True
    control_chars = len(CONTROL_CHAR_PATTERN.findall(content))
    return control_chars > len(content) * BINARY_CONTROL_RATIO


class FileFilter:
    """Decides whether a file is worth chunking at all."""

    def __init__(
        self,
        *,
        max_bytes: int = MAX_FILE_BYTES,
        skip_fragments: Sequence[str] = SKIP_PATH_FRAGMENTS,
        skip_suffixes: Sequence[str] = SKIP_PATH_SUFFIXES,
    ) -> None:
        self.max_bytes = max_bytes
        self.skip_fragments = tuple(skip_fragments)
        self.skip_suffixes = tuple(skip_suffixes)

    def should_skip(self, file: SourceFile) -> bool:
        if not file.content.strip():
            return True
        if file.size > self.max_bytes:
            return True
        if is_likely_binary(file.content):
            return True
        return self.is_ignored_path(file.path)

    def is_ignored_path(self, path: str) -> bool:
        if any(fragment in path for fragment in self.skip_fragments):
            return True
        return path.endswith(self.skip_suffixes)


_DEFAULT_FILTER = FileFilter()


def should_skip(file: SourceFile) -> bool:
    """Apply the default filter to ``file``."""
    return _DEFAULT_FILTER.should_skip(file)


__all__ = ["FileFilter", "is_likely_binary", "should_skip"]
