"""
shadercrawl configuration (YAML defaults, project overlay, env overrides).

Configuration sources (highest to lowest priority):
1. Environment variables: SHADERCRAWL_<section>__<key>
2. Project overlay: <repo_root>/.shadercrawl.yaml
3. Bundled defaults: shadercrawl.data/config/defaults.yaml

The merged result is validated against the bundled JSON Schema
(shadercrawl.data/schemas/config.schema.yaml).
"""
from __future__ import annotations

import json
import logging
import os
import re
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from shadercrawl.data import read_yaml

from .exceptions import ConfigError
from .merge import deep_merge

logger = logging.getLogger(__name__)

ENV_PREFIX = "SHADERCRAWL_"
PROJECT_CONFIG_FILENAME = ".shadercrawl.yaml"


def _as_bool(v: str) -> Optional[bool]:
    low = v.strip().lower()
    if low in {"true", "false"}:
        return low == "true"
    return None


def _as_int(v: str) -> Optional[int]:
    if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
        return int(v)
    return None


def _as_json(v: str) -> Optional[Any]:
    s = v.strip()
    if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
        try:
            return json.loads(s)
        except ValueError:
            return None
    return None


def _coerce_type(value: str) -> Any:
    for caster in (_as_bool, _as_int, _as_json):
        result = caster(value)
        if result is not None:
            return result
    return value.strip()


def _iter_env_overrides() -> Iterator[Tuple[List[str], Any]]:
    for key in sorted(os.environ.keys()):
        if not key.startswith(ENV_PREFIX):
            continue
        raw = key[len(ENV_PREFIX) :]
        segs = raw.split("__")
        if not raw or any(seg == "" for seg in segs):
            raise ConfigError(
                f"Malformed {ENV_PREFIX}* key: empty segment in '{key}'.",
                context={"key": key},
            )
        yield [seg.lower() for seg in segs], _coerce_type(os.environ[key])


def apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``cfg`` with SHADERCRAWL_* overrides applied (input is not mutated)."""
    for path, value in _iter_env_overrides():
        nested: Dict[str, Any] = {path[-1]: value}
        for part in reversed(path[:-1]):
            nested = {part: nested}
        cfg = deep_merge(cfg, nested)
    return cfg


def load_project_overlay(repo_root: Optional[Path]) -> Dict[str, Any]:
    if repo_root is None:
        return {}
    path = Path(repo_root) / PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return {}
    logger.debug("Loading project config overlay %s", path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"{path} must contain a YAML mapping, got {type(data).__name__}",
            context={"path": str(path)},
        )
    return data


def validate_config(cfg: Dict[str, Any]) -> None:
    """Validate merged configuration against the bundled schema."""
    schema = read_yaml("schemas", "config.schema.yaml")
    try:
        jsonschema.validate(instance=cfg, schema=schema)
    except jsonschema.ValidationError as exc:
        location = ".".join(str(p) for p in exc.path) or "<root>"
        raise ConfigError(
            f"Invalid shadercrawl configuration at {location}: {exc.message}",
            context={"path": location},
        ) from exc


def load_config(repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load, merge, and validate configuration."""
    cfg = deep_merge(read_yaml("config", "defaults.yaml"), load_project_overlay(repo_root))
    cfg = apply_env_overrides(cfg)
    validate_config(cfg)
    return cfg


class CrawlerConfig:
    """Typed accessor for crawler and provider settings.

    Usage:
        cfg = CrawlerConfig(repo_root=Path("/path/to/project"))
        print(cfg.max_depth)
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = repo_root
        self._config = load_config(repo_root)

    @cached_property
    def crawler(self) -> Dict[str, Any]:
        return self._config.get("crawler", {}) or {}

    @cached_property
    def provider(self) -> Dict[str, Any]:
        return self._config.get("provider", {}) or {}

    @property
    def max_depth(self) -> int:
        return int(self.crawler.get("max_depth", 32))

    @property
    def detect_cycles(self) -> bool:
        return bool(self.crawler.get("detect_cycles", True))

    @property
    def pragma_once(self) -> bool:
        return bool(self.crawler.get("pragma_once", False))

    @property
    def encoding(self) -> str:
        return str(self.provider.get("encoding", "utf-8"))

    @property
    def include_dirs(self) -> List[Path]:
        dirs = [Path(d) for d in self.provider.get("include_dirs", []) or []]
        if self.repo_root is not None:
            dirs = [d if d.is_absolute() else Path(self.repo_root) / d for d in dirs]
        return dirs


__all__ = [
    "CrawlerConfig",
    "load_config",
    "validate_config",
    "apply_env_overrides",
    "ENV_PREFIX",
    "PROJECT_CONFIG_FILENAME",
]
