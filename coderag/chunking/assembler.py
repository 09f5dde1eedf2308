"""Assembles file, summary and symbol chunks for a repository file set."""

from __future__ import annotations

import posixpath
import uuid
from typing import AbstractSet, Callable, Iterable, List

from ..logging import get_logger
from ..models import Chunk, ChunkKind, ChunkMetadata, RepositoryRef, SourceFile, UseCase
from .boundaries import BoundaryDetector, HeuristicBoundaryDetector
from .classifier import classify_file, classify_symbol
from .constants import PROGRAMMING_LANGUAGES, README_NAMES
from .filters import FileFilter

IdFactory = Callable[[ChunkKind], str]

logger = get_logger("chunking.assembler")


def default_chunk_id(kind: ChunkKind) -> str:
    return f"{kind.value}-{uuid.uuid4()}"


def is_readme(path: str) -> bool:
    """Return True for README files that deserve a summary chunk."""
    filename = posixpath.basename(path).lower()
    if filename in README_NAMES:
        return True
    return "readme" in filename and posixpath.splitext(path)[1] == ".md"


class CodeChunker:
    """Turns repository files into chunks tagged with use cases."""

    def __init__(
        self,
        repository: RepositoryRef,
        *,
        detector: BoundaryDetector | None = None,
        file_filter: FileFilter | None = None,
        id_factory: IdFactory | None = None,
        languages: AbstractSet[str] = PROGRAMMING_LANGUAGES,
    ) -> None:
        self.repository = repository
        self.detector = detector or HeuristicBoundaryDetector()
        self.file_filter = file_filter or FileFilter()
        self.id_factory = id_factory or default_chunk_id
        self.languages = languages

    def process_files(self, files: Iterable[SourceFile]) -> List[Chunk]:
        """Chunk every file, keeping per-file chunks contiguous and in input order."""
        chunks: List[Chunk] = []
        for file in files:
            chunks.extend(self.process_file(file))
        return chunks

    def process_file(self, file: SourceFile) -> List[Chunk]:
        if self.file_filter.should_skip(file):
            logger.debug("Skipping %s", file.path)
            return []
        chunks = self.create_file_chunks(file)
        if self.is_programming_file(file):
            chunks.extend(self.create_symbol_chunks(file))
        return chunks

    def is_programming_file(self, file: SourceFile) -> bool:
        return bool(file.language) and file.language in self.languages

    def create_file_chunks(self, file: SourceFile) -> List[Chunk]:
        """Return the whole-file chunk, plus a summary chunk for READMEs."""
        metadata = self._metadata(file)
        chunks = [
            Chunk(
                id=self.id_factory(ChunkKind.FILE),
                content=file.content,
                kind=ChunkKind.FILE,
                use_cases=classify_file(file),
                metadata=metadata,
            )
        ]
        if is_readme(file.path):
            chunks.append(
                Chunk(
                    id=self.id_factory(ChunkKind.SUMMARY),
                    content=file.content,
                    kind=ChunkKind.SUMMARY,
                    use_cases=frozenset({UseCase.EXPLANATION}),
                    metadata=metadata,
                )
            )
        return chunks

    def create_symbol_chunks(self, file: SourceFile) -> List[Chunk]:
        """Return one chunk per class or function region found in the file."""
        chunks: List[Chunk] = []
        try:
            lines = file.content.split("\n")
            for symbol in self.detector.detect(lines):
                chunks.append(
                    Chunk(
                        id=self.id_factory(symbol.kind),
                        content=symbol.content,
                        kind=symbol.kind,
                        use_cases=classify_symbol(symbol.name, symbol.kind, file),
                        metadata=self._metadata(
                            file,
                            start_line=symbol.start_line,
                            end_line=symbol.end_line,
                            symbol_name=symbol.name,
                        ),
                    )
                )
        except Exception:
            logger.exception("Error creating symbol chunks for %s", file.path)
        return chunks

    def _metadata(
        self,
        file: SourceFile,
        *,
        start_line: int | None = None,
        end_line: int | None = None,
        symbol_name: str | None = None,
    ) -> ChunkMetadata:
        return ChunkMetadata(
            repository=self.repository,
            file_path=file.path,
            language=file.language,
            start_line=start_line,
            end_line=end_line,
            symbol_name=symbol_name,
        )


__all__ = ["CodeChunker", "IdFactory", "default_chunk_id", "is_readme"]
