"""Repository fetching and source file collection."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from .logging import get_logger
from .models import RepositoryRef, SourceFile

_EXCLUDED_DIRS = {
    ".git",
    "node_modules",
    "dist",
}

_LANGUAGE_BY_SUFFIX = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
    ".java": "java",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".c": "c_cpp",
    ".cpp": "c_cpp",
    ".cc": "c_cpp",
    ".h": "c_cpp",
    ".hpp": "c_cpp",
    ".cs": "csharp",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".kts": "kotlin",
}

_CONTENT_MARKERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("<?php",), "php"),
    (("<?xml",), "xml"),
    (("<!DOCTYPE html>", "<html>"), "html"),
)

GitRunner = Callable[..., str]

logger = get_logger("repository")


class GitError(RuntimeError):
    """Raised when a git command fails."""


def detect_language(path: str, content: str = "") -> Optional[str]:
    """Return the language key for ``path``, sniffing ``content`` for unknown suffixes."""
    suffix = Path(path).suffix.lower()
    if suffix in _LANGUAGE_BY_SUFFIX:
        return _LANGUAGE_BY_SUFFIX[suffix]
    for markers, language in _CONTENT_MARKERS:
        if any(marker in content for marker in markers):
            return language
    return None


def _iter_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            yield current_dir / filename


def collect_source_files(
    root: Path, extensions: Sequence[str] | None = None
) -> List[SourceFile]:
    """Read every text file under ``root`` into a ``SourceFile``."""
    root_path = Path(root).expanduser().resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"Repository path not found: {root}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Repository path is not a directory: {root}")

    allowed = {ext.lower() for ext in extensions} if extensions else None
    files: List[SourceFile] = []
    for path in _iter_files(root_path):
        if allowed is not None and path.suffix.lower() not in allowed:
            continue
        rel_path = path.relative_to(root_path).as_posix()
        try:
            content = path.read_text(encoding="utf-8")
            size = path.stat().st_size
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping file %s: %s", rel_path, exc)
            continue
        files.append(
            SourceFile(
                path=rel_path,
                content=content,
                language=detect_language(rel_path, content),
                size=size,
            )
        )
    return files


class GitRepository:
    """Local checkout of a remote repository."""

    def __init__(
        self,
        ref: RepositoryRef,
        work_dir: Path | None = None,
        *,
        runner: GitRunner | None = None,
    ) -> None:
        self.ref = ref
        self._runner = runner or self._default_runner
        base_dir = Path(work_dir) if work_dir else Path(tempfile.gettempdir()) / "coderag"
        self.local_path = base_dir / ref.owner / ref.name

    def clone_or_pull(self) -> Path:
        """Clone the repository, or pull when a checkout already exists."""
        self.local_path.mkdir(parents=True, exist_ok=True)
        if (self.local_path / ".git").exists():
            logger.info("Repository already exists at %s, pulling latest changes", self.local_path)
            self._run(["git", "pull"], cwd=self.local_path)
        else:
            logger.info("Cloning repository %s to %s", self.ref.url, self.local_path)
            self._run(["git", "clone", self.ref.url, str(self.local_path)], cwd=self.local_path.parent)

        if self.ref.branch:
            self._run(["git", "checkout", self.ref.branch], cwd=self.local_path)
        return self.local_path

    def get_files(self, extensions: Sequence[str] | None = None) -> List[SourceFile]:
        return collect_source_files(self.local_path, extensions)

    def cleanup(self, *, remove: bool = False) -> None:
        if not remove:
            logger.debug("Keeping checkout at %s", self.local_path)
            return
        logger.info("Removing checkout at %s", self.local_path)
        shutil.rmtree(self.local_path, ignore_errors=True)

    def _run(self, args: Iterable[str], *, cwd: Path) -> str:
        command = list(args)
        try:
            return self._runner(command, cwd=cwd)
        except subprocess.CalledProcessError as exc:
            raise GitError(
                f"{' '.join(command[:2])} failed with exit code {exc.returncode}"
            ) from exc
        except FileNotFoundError as exc:
            raise GitError("git executable not found on PATH") from exc

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = [
    "GitError",
    "GitRepository",
    "GitRunner",
    "collect_source_files",
    "detect_language",
]
