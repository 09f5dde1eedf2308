"""Chunking and use-case classification engine."""

from __future__ import annotations

from .assembler import CodeChunker, IdFactory, default_chunk_id, is_readme
from .boundaries import BoundaryDetector, DetectedSymbol, HeuristicBoundaryDetector, detect_symbols
from .classifier import classify_file, classify_symbol
from .filters import FileFilter, is_likely_binary, should_skip

__all__ = [
    "BoundaryDetector",
    "CodeChunker",
    "DetectedSymbol",
    "FileFilter",
    "HeuristicBoundaryDetector",
    "IdFactory",
    "classify_file",
    "classify_symbol",
    "default_chunk_id",
    "detect_symbols",
    "is_likely_binary",
    "is_readme",
    "should_skip",
]
