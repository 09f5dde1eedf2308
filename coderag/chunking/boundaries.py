"""Line-based detection of top-level class and function regions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..models import ChunkKind
from .constants import CLASS_PATTERN, CLOSING_BRACE_PATTERN, FUNCTION_PATTERN

logger = get_logger("chunking.boundaries")


@dataclass
class DetectedSymbol:
    """A class or function region, with 0-indexed inclusive line bounds."""

    name: str
    kind: ChunkKind
    start_line: int
    end_line: int
    lines: List[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        return "\n".join(self.lines)


class BoundaryDetector(ABC):
    """Contract for components that partition file lines into symbol regions."""

    @abstractmethod
    def detect(self, lines: Sequence[str]) -> List[DetectedSymbol]:
        """Return detected regions ordered by start line."""


@dataclass
class _OpenRegion:
    name: str
    kind: ChunkKind
    start_line: int
    lines: List[str]

    def close(self, end_line: int) -> DetectedSymbol:
        return DetectedSymbol(
            name=self.name,
            kind=self.kind,
            start_line=self.start_line,
            end_line=end_line,
            lines=self.lines,
        )


class HeuristicBoundaryDetector(BoundaryDetector):
    """Single-pass scanner that tracks at most one open region.

    A region opens on a line that looks like a class/interface or function
    declaration and closes on the next line holding only ``}``. Nested
    declarations are absorbed into the enclosing region; a region still open
    at end of file closes on the last line.
    """

    def detect(self, lines: Sequence[str]) -> List[DetectedSymbol]:
        symbols: List[DetectedSymbol] = []
        current: Optional[_OpenRegion] = None
        try:
            for index, line in enumerate(lines):
                if current is not None:
                    current.lines.append(line)
                    if CLOSING_BRACE_PATTERN.match(line):
                        symbols.append(current.close(index))
                        current = None
                    continue
                current = self._open_region(line, index)
            if current is not None:
                symbols.append(current.close(len(lines) - 1))
        except Exception:
            logger.exception("Symbol detection aborted after %d symbols", len(symbols))
        return symbols

    @staticmethod
    def _open_region(line: str, index: int) -> Optional[_OpenRegion]:
        class_match = CLASS_PATTERN.search(line)
        if class_match:
            return _OpenRegion(class_match.group(1), ChunkKind.CLASS, index, [line])
        function_match = FUNCTION_PATTERN.search(line)
        if function_match:
            return _OpenRegion(function_match.group(1), ChunkKind.FUNCTION, index, [line])
        return None


def detect_symbols(
    lines: Sequence[str], detector: BoundaryDetector | None = None
) -> List[DetectedSymbol]:
    """Run ``detector`` (the heuristic scanner by default) over ``lines``."""
    return (detector or HeuristicBoundaryDetector()).detect(lines)


__all__ = [
    "BoundaryDetector",
    "DetectedSymbol",
    "HeuristicBoundaryDetector",
    "detect_symbols",
]
