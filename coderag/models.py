"""Core data models shared across coderag components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional


class ChunkKind(str, Enum):
    """Granularity of a chunk."""

    FILE = "file"
    CLASS = "class"
    FUNCTION = "function"
    SUMMARY = "summary"


class UseCase(str, Enum):
    """Downstream consumer intents a chunk can serve."""

    BUG_FIXING = "bug_fixing"
    CODE_GENERATION = "code_generation"
    EXPLANATION = "explanation"

    @classmethod
    def parse(cls, value: str) -> "UseCase":
        """Return the member for ``value`` or raise ``ValueError``."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(case.value for case in cls)
            raise ValueError(f"Unknown use case '{value}'. Expected one of: {valid}") from None


ALL_USE_CASES: FrozenSet[UseCase] = frozenset(UseCase)


@dataclass(frozen=True)
class RepositoryRef:
    """Identifies the repository a chunk was extracted from."""

    url: str
    owner: str
    name: str
    branch: Optional[str] = None

    @classmethod
    def from_url(
        cls,
        url: str,
        branch: str | None = None,
        *,
        owner: str | None = None,
        name: str | None = None,
    ) -> "RepositoryRef":
        """Build a reference, deriving owner and name from the URL when absent."""
        if not owner or not name:
            parts = url.rstrip("/").split("/")
            if len(parts) >= 2:
                derived_name = parts[-1]
                if derived_name.endswith(".git"):
                    derived_name = derived_name[: -len(".git")]
                owner = owner or parts[-2]
                name = name or derived_name
        return cls(url=url, owner=owner or "", name=name or "", branch=branch)

    def to_dict(self) -> Dict[str, str]:
        payload = {"url": self.url, "owner": self.owner, "name": self.name}
        if self.branch:
            payload["branch"] = self.branch
        return payload


@dataclass(frozen=True)
class SourceFile:
    """A repository file handed to the chunker."""

    path: str
    content: str
    language: Optional[str] = None
    size: int = 0


@dataclass(frozen=True)
class ChunkMetadata:
    """Location and provenance of a chunk."""

    repository: RepositoryRef
    file_path: str
    language: Optional[str] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    symbol_name: Optional[str] = None

    @property
    def has_line_range(self) -> bool:
        return self.start_line is not None or self.end_line is not None

    def to_dict(self) -> Dict[str, Any]:
        """Render metadata with the field names used by the vector index."""
        payload: Dict[str, Any] = {
            "repositoryInfo": self.repository.to_dict(),
            "filePath": self.file_path,
        }
        if self.language is not None:
            payload["language"] = self.language
        if self.start_line is not None:
            payload["startLine"] = self.start_line
        if self.end_line is not None:
            payload["endLine"] = self.end_line
        if self.symbol_name is not None:
            payload["symbolName"] = self.symbol_name
        return payload


@dataclass(frozen=True)
class Chunk:
    """A retrievable unit of text plus the metadata describing where it came from."""

    id: str
    content: str
    kind: ChunkKind
    use_cases: FrozenSet[UseCase]
    metadata: ChunkMetadata

    def __post_init__(self) -> None:
        if not self.use_cases:
            raise ValueError(f"Chunk {self.id} must carry at least one use case")
        meta = self.metadata
        if self.kind in (ChunkKind.FILE, ChunkKind.SUMMARY):
            if meta.has_line_range:
                raise ValueError(f"{self.kind.value} chunk {self.id} must not carry a line range")
        elif meta.start_line is None or meta.end_line is None:
            raise ValueError(f"{self.kind.value} chunk {self.id} requires a line range")
        elif not 0 <= meta.start_line <= meta.end_line:
            raise ValueError(
                f"Invalid line range {meta.start_line}-{meta.end_line} for chunk {self.id}"
            )

    def ordered_use_cases(self) -> List[UseCase]:
        return ordered_use_cases(self.use_cases)


@dataclass
class VectorDocument:
    """Document shape accepted by the vector sink."""

    id: str
    text: str
    metadata: Dict[str, Any]
    embedding: Optional[Dict[str, float]] = None


@dataclass
class SearchResult:
    """Chunks matched by a search, paired index-wise with their scores."""

    chunks: List[Dict[str, Any]] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"chunks": list(self.chunks), "scores": list(self.scores)}


def ordered_use_cases(use_cases: Iterable[UseCase]) -> List[UseCase]:
    """Return use cases in declaration order."""
    selected = set(use_cases)
    return [case for case in UseCase if case in selected]
