"""Configuration loading for coderag (.coderag.yml plus environment overrides)."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".coderag.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class StoreConfig:
    """Vector index location."""

    path: Path = field(default_factory=lambda: Path(".coderag") / "index.json")
    index: str = "coderag"


@dataclass
class IngestConfig:
    """Repository fetch and batching settings."""

    work_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "coderag")
    batch_size: int = 100
    keep_clones: bool = True
    extensions: List[str] = field(default_factory=list)


@dataclass
class ServiceConfig:
    """HTTP service binding."""

    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class CodeRagConfig:
    """Represents the settings defined in .coderag.yml."""

    root: Path
    store: StoreConfig = field(default_factory=StoreConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)

    def __post_init__(self) -> None:
        # Relative locations are anchored to the config root, not the process cwd.
        self.root = Path(self.root)
        self.store.path = _resolve_path(self.root, str(self.store.path))
        self.ingest.work_dir = _resolve_path(self.root, str(self.ingest.work_dir))


ENV_STORE_PATH_KEYS = ("CODERAG_STORE_PATH",)
ENV_INDEX_KEYS = ("CODERAG_INDEX",)
ENV_WORK_DIR_KEYS = ("CODERAG_WORK_DIR",)
ENV_BATCH_SIZE_KEYS = ("CODERAG_BATCH_SIZE",)
ENV_HOST_KEYS = ("CODERAG_HOST",)
ENV_PORT_KEYS = ("CODERAG_PORT", "PORT")


def load_config(config_path: Path) -> CodeRagConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CodeRagConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    store = StoreConfig()
    store_data = _as_dict(data.get("store"))
    if store_data:
        store_path = _as_str(store_data.get("path"))
        if store_path:
            store.path = _resolve_path(root, store_path)
        store.index = _as_str(store_data.get("index")) or store.index

    ingest = IngestConfig()
    ingest_data = _as_dict(data.get("ingest"))
    if ingest_data:
        work_dir = _as_str(ingest_data.get("work_dir"))
        if work_dir:
            ingest.work_dir = _resolve_path(root, work_dir)
        batch_size = _as_int(ingest_data.get("batch_size"))
        if batch_size is not None:
            if batch_size <= 0:
                raise ConfigError("ingest.batch_size must be a positive integer")
            ingest.batch_size = batch_size
        keep_clones = _as_bool(ingest_data.get("keep_clones"))
        if keep_clones is not None:
            ingest.keep_clones = keep_clones
        ingest.extensions = _as_str_list(ingest_data.get("extensions"))

    service = ServiceConfig()
    service_data = _as_dict(data.get("service"))
    if service_data:
        service.host = _as_str(service_data.get("host")) or service.host
        port = _as_int(service_data.get("port"))
        if port is not None:
            service.port = port

    return CodeRagConfig(root=root, store=store, ingest=ingest, service=service)


def apply_env_overrides(
    config: CodeRagConfig, environ: Mapping[str, str] | None = None
) -> CodeRagConfig:
    """Overlay environment variables onto ``config`` in place and return it."""
    env = os.environ if environ is None else environ

    store_path = _first_env(env, ENV_STORE_PATH_KEYS)
    if store_path:
        config.store.path = Path(store_path).expanduser()
    index = _first_env(env, ENV_INDEX_KEYS)
    if index:
        config.store.index = index
    work_dir = _first_env(env, ENV_WORK_DIR_KEYS)
    if work_dir:
        config.ingest.work_dir = Path(work_dir).expanduser()
    batch_size = _as_int(_first_env(env, ENV_BATCH_SIZE_KEYS))
    if batch_size is not None and batch_size > 0:
        config.ingest.batch_size = batch_size
    host = _first_env(env, ENV_HOST_KEYS)
    if host:
        config.service.host = host
    port = _as_int(_first_env(env, ENV_PORT_KEYS))
    if port is not None:
        config.service.port = port
    return config


def _first_env(env: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value:
            return value
    return None


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
