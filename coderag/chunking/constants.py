"""Heuristic tables for file filtering, boundary detection and use-case tagging."""

from __future__ import annotations

import re
from typing import FrozenSet, Pattern, Tuple

MAX_FILE_BYTES = 2 * 1024 * 1024

# Share of control characters above which text is treated as binary.
BINARY_CONTROL_RATIO = 0.1

CONTROL_CHAR_PATTERN: Pattern[str] = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

# Path fragments that disqualify a file wherever they appear.
SKIP_PATH_FRAGMENTS: Tuple[str, ...] = (
    ".git/",
    "node_modules/",
)

# Path suffixes that disqualify a file.
SKIP_PATH_SUFFIXES: Tuple[str, ...] = (
    ".DS_Store",
    ".env",
    ".log",
    ".lock",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
)

PROGRAMMING_LANGUAGES: FrozenSet[str] = frozenset(
    {
        "typescript",
        "javascript",
        "python",
        "java",
        "c_cpp",
        "csharp",
        "go",
        "ruby",
        "php",
        "swift",
        "rust",
        "kotlin",
    }
)

README_NAMES: FrozenSet[str] = frozenset({"readme.md", "readme"})

CLASS_PATTERN: Pattern[str] = re.compile(
    r"(?:class|interface)\s+(\w+)(?:\s+extends|\s+implements|\s*{)?",
    re.ASCII,
)

FUNCTION_PATTERN: Pattern[str] = re.compile(
    r"(?:function|def|public|private|protected)?\s*(\w+)\s*\([^)]*\)\s*(?::\s*\w+)?\s*{?",
    re.ASCII,
)

CLOSING_BRACE_PATTERN: Pattern[str] = re.compile(r"^\s*}\s*$")

# File classification
TEST_NAME_MARKERS: Tuple[str, ...] = ("test", "spec")
TEST_PATH_MARKERS: Tuple[str, ...] = ("test/", "tests/", "__tests__/")
DOC_NAME_MARKERS: Tuple[str, ...] = ("readme", "documentation", "docs")
DOC_EXTENSIONS: Tuple[str, ...] = (".md",)
API_NAME_MARKERS: Tuple[str, ...] = ("api", "interface", "contract")
API_NAME_SUFFIXES: Tuple[str, ...] = (".d.ts",)
EXAMPLE_NAME_MARKERS: Tuple[str, ...] = ("example",)
PUBLIC_PATH_MARKERS: Tuple[str, ...] = ("public/",)
# Symbols count as exposed when "public" appears anywhere in the path.
PUBLIC_SYMBOL_PATH_MARKERS: Tuple[str, ...] = ("public",)

# Symbol classification
BUG_FIXING_SYMBOL_MARKERS: Tuple[str, ...] = (
    "error",
    "exception",
    "handle",
    "process",
    "validate",
)
CODE_GENERATION_SYMBOL_MARKERS: Tuple[str, ...] = (
    "create",
    "build",
    "new",
    "get",
    "generate",
)
CODE_GENERATION_SYMBOL_PREFIXES: Tuple[str, ...] = ("to", "from")
HIDDEN_SYMBOL_PREFIXES: Tuple[str, ...] = ("_",)
HIDDEN_SYMBOL_MARKERS: Tuple[str, ...] = ("internal", "private")
PUBLIC_SYMBOL_MARKERS: Tuple[str, ...] = ("public",)
