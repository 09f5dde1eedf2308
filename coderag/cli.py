"""CLI entrypoints for coderag commands."""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import List

from .config import CodeRagConfig, ConfigError, apply_env_overrides, load_config
from .logging import configure_logging
from .models import Chunk, UseCase
from .pipeline import Pipeline, PipelineError


def _add_common_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--config",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Path to a .coderag.yml file or the directory holding it.",
    )
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log records to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coderag",
        description="Chunk source repositories into use-case tagged retrieval units.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser(
        "process",
        help="Clone a repository, chunk it and index the chunks.",
    )
    _add_common_options(process_parser, suppress_default=True)
    process_parser.add_argument("url", help="Repository URL to clone.")
    process_parser.add_argument("--branch", default=None, help="Branch to check out.")

    chunk_parser = subparsers.add_parser(
        "chunk",
        help="Chunk a local checkout and report what would be indexed.",
    )
    _add_common_options(chunk_parser, suppress_default=True)
    chunk_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    chunk_parser.add_argument(
        "--json",
        action="store_true",
        help="Print every chunk as JSON instead of a summary.",
    )

    search_parser = subparsers.add_parser("search", help="Search indexed chunks.")
    _add_common_options(search_parser, suppress_default=True)
    search_parser.add_argument("query", help="Natural language query.")
    search_parser.add_argument(
        "--use-case",
        required=True,
        choices=[case.value for case in UseCase],
        help="Consumer intent to search for.",
    )
    search_parser.add_argument("--limit", type=int, default=10, help="Maximum results.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_common_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default=None, help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind.")

    return parser


def _load(args: argparse.Namespace) -> CodeRagConfig:
    location = Path(args.config) if getattr(args, "config", None) else Path.cwd()
    return apply_env_overrides(load_config(location))


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for coderag commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = getattr(args, "log_file", None)
    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        log_file=Path(log_file) if log_file else None,
    )

    try:
        config = _load(args)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "process":
        pipeline = Pipeline(config)
        try:
            pipeline.initialize_index()
            indexed = pipeline.process_repository(args.url, args.branch)
        except PipelineError as exc:
            parser.exit(1, f"{exc}\nRun with --verbose for more details.\n")
        print(f"Indexed {indexed} chunks from {args.url}")
    elif args.command == "chunk":
        try:
            chunks = Pipeline(config).chunk_directory(args.path)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        if args.json:
            print(json.dumps([_chunk_payload(chunk) for chunk in chunks], indent=2))
        else:
            print(_summarise(chunks))
    elif args.command == "search":
        result = Pipeline(config).search(args.query, UseCase(args.use_case), limit=args.limit)
        if not result.chunks:
            print("No matching chunks")
        for chunk, score in zip(result.chunks, result.scores):
            metadata = chunk.get("metadata", {})
            location = metadata.get("filePath", "?")
            if "startLine" in metadata:
                location += f":{metadata['startLine'] + 1}-{metadata['endLine'] + 1}"
            print(f"{score:.3f}  {chunk.get('type')}  {location}")
    elif args.command == "serve":
        from .service import run_service

        run_service(
            host=args.host or config.service.host,
            port=args.port or config.service.port,
            pipeline_factory=lambda: Pipeline(config),
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _chunk_payload(chunk: Chunk) -> dict[str, object]:
    return {
        "id": chunk.id,
        "type": chunk.kind.value,
        "useCases": [case.value for case in chunk.ordered_use_cases()],
        "metadata": chunk.metadata.to_dict(),
        "content": chunk.content,
    }


def _summarise(chunks: List[Chunk]) -> str:
    counts = Counter(chunk.kind.value for chunk in chunks)
    files = len({chunk.metadata.file_path for chunk in chunks})
    parts = ", ".join(f"{kind}={count}" for kind, count in sorted(counts.items()))
    return f"{len(chunks)} chunks from {files} files ({parts or 'none'})"


if __name__ == "__main__":
    main(sys.argv[1:])
