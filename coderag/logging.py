"""Logging for ingestion runs and the HTTP service.

Every module logs through ``get_logger("<component>")`` so records land under
the ``coderag`` hierarchy (``coderag.pipeline``, ``coderag.chunking.assembler``
and so on). Console output tags each line with that component.
"""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "coderag"
CONSOLE_FORMAT = "[coderag:%(component)s] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(component)s: %(message)s"

# Per-file chunking chatter is only useful with --verbose.
_NOISY_COMPONENTS = ("chunking",)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the logger for a component, e.g. ``get_logger("rag.store")``."""
    full_name = f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER
    return logging.getLogger(full_name)


class ComponentFormatter(logging.Formatter):
    """Formatter exposing ``%(component)s``: the logger name without the root prefix."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = f"{ROOT_LOGGER}."
        name = record.name
        record.component = name[len(prefix) :] if name.startswith(prefix) else name
        return super().format(record)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console (and optional file) handlers to the ``coderag`` logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(ComponentFormatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(ComponentFormatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    for component in _NOISY_COMPONENTS:
        get_logger(component).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


__all__ = ["ComponentFormatter", "configure_logging", "get_logger"]
