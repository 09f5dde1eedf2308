"""Tests for coderag.repository."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from coderag.models import RepositoryRef
from coderag.repository import GitError, GitRepository, collect_source_files, detect_language


def test_collect_source_files_reads_text_and_detects_language(repo_builder) -> None:
    repo_builder.write(
        {
            "src/app.ts": "export const a = 1;\n",
            "src/util.py": "def f():\n    return 1\n",
            "lib/native.hpp": "int f();\n",
            "web/page": "<!DOCTYPE html>\n<html></html>\n",
            "web/legacy": "<?php echo 1; ?>\n",
            "README.md": "# Repo\n",
            "node_modules/pkg/index.js": "module.exports = 1;\n",
            "dist/bundle.js": "var a;\n",
        }
    )
    (repo_builder.path() / ".git").mkdir()
    (repo_builder.path() / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")

    files = {file.path: file for file in repo_builder.files()}

    assert sorted(files) == ["README.md", "lib/native.hpp", "src/app.ts", "src/util.py", "web/legacy", "web/page"]
    assert files["src/app.ts"].language == "typescript"
    assert files["src/util.py"].language == "python"
    assert files["lib/native.hpp"].language == "c_cpp"
    assert files["web/page"].language == "html"
    assert files["web/legacy"].language == "php"
    assert files["README.md"].language is None
    assert files["src/app.ts"].size == len("export const a = 1;\n")
    assert files["src/app.ts"].content == "export const a = 1;\n"


def test_collect_source_files_skips_undecodable_files(repo_builder) -> None:
    repo_builder.write({"src/main.go": "package main\n"})
    repo_builder.write_bytes("assets/logo.png", b"\x89PNG\r\n\x1a\n\xff\xfe\xfa")

    paths = [file.path for file in repo_builder.files()]

    assert paths == ["src/main.go"]


def test_collect_source_files_filters_extensions(repo_builder) -> None:
    repo_builder.write({"a.py": "x = 1\n", "b.ts": "let b;\n", "c.md": "# c\n"})

    files = collect_source_files(repo_builder.path(), [".PY", ".ts"])

    assert [file.path for file in files] == ["a.py", "b.ts"]


def test_collect_source_files_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        collect_source_files(tmp_path / "missing")


def test_detect_language_prefers_suffix() -> None:
    assert detect_language("Main.KT") == "kotlin"
    assert detect_language("build.kts", "<?xml") == "kotlin"
    assert detect_language("pom", "<?xml version='1.0'?>") == "xml"
    assert detect_language("notes.txt", "plain") is None


class _RecordingRunner:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[list[str], Path]] = []
        self.fail_on = fail_on

    def __call__(self, args, *, cwd):
        self.calls.append((list(args), Path(cwd)))
        if self.fail_on and self.fail_on in args:
            raise subprocess.CalledProcessError(128, list(args))
        return ""


def test_clone_when_no_checkout_exists(tmp_path: Path) -> None:
    ref = RepositoryRef.from_url("https://github.com/octo/widgets.git", "develop")
    runner = _RecordingRunner()
    repo = GitRepository(ref, tmp_path / "work", runner=runner)

    local = repo.clone_or_pull()

    assert local == tmp_path / "work" / "octo" / "widgets"
    assert runner.calls[0][0] == ["git", "clone", ref.url, str(local)]
    assert runner.calls[1] == (["git", "checkout", "develop"], local)


def test_pull_when_checkout_exists(tmp_path: Path) -> None:
    ref = RepositoryRef.from_url("https://github.com/octo/widgets")
    runner = _RecordingRunner()
    repo = GitRepository(ref, tmp_path, runner=runner)
    (repo.local_path / ".git").mkdir(parents=True)

    repo.clone_or_pull()

    assert runner.calls == [(["git", "pull"], repo.local_path)]


def test_git_failures_raise_git_error(tmp_path: Path) -> None:
    ref = RepositoryRef.from_url("https://github.com/octo/widgets")
    repo = GitRepository(ref, tmp_path, runner=_RecordingRunner(fail_on="clone"))

    with pytest.raises(GitError, match="git clone"):
        repo.clone_or_pull()


def test_cleanup_only_removes_when_asked(tmp_path: Path) -> None:
    ref = RepositoryRef.from_url("https://github.com/octo/widgets")
    repo = GitRepository(ref, tmp_path, runner=_RecordingRunner())
    repo.local_path.mkdir(parents=True)

    repo.cleanup()
    assert repo.local_path.exists()

    repo.cleanup(remove=True)
    assert not repo.local_path.exists()
