"""Include providers.

The crawler never touches the filesystem itself. Every include is fetched
through an ``IncludeProvider``, which turns an include path plus the context of
the including file into the included text and the context for that text's own
includes. This enables virtual filesystems, include search paths, and
dependency tracking in build systems.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class IncludeProvider(ABC):
    """User-supplied include reader.

    Example:
        class StaticProvider(IncludeProvider):
            def get_include(self, path, context):
                return LIBRARY[path], context
    """

    @abstractmethod
    def get_include(self, path: str, context: Any) -> Tuple[str, Any]:
        """Return ``(source, child_context)`` for ``path`` included under ``context``.

        Any exception raised here aborts the crawl and is reported wrapped in
        ``IncludeProviderError``.
        """
        ...

    def resolve_name(self, path: str, context: Any) -> str:
        """Name recorded as the origin of the content behind ``path``.

        Used for ``SourceChunk.file``, cycle detection, and diagnostics.
        Defaults to the include path as written.
        """
        return path


class MappingIncludeProvider(IncludeProvider):
    """In-memory provider backed by a ``{path: source}`` mapping.

    The context is passed through unchanged.
    """

    def __init__(self, sources: Mapping[str, str]) -> None:
        self.sources = dict(sources)

    def get_include(self, path: str, context: Any) -> Tuple[str, Any]:
        try:
            return self.sources[path], context
        except KeyError:
            raise FileNotFoundError(f"Include not found: {path}") from None


class CallableIncludeProvider(IncludeProvider):
    """Adapt a plain ``fn(path, context) -> (source, context)`` callable."""

    def __init__(self, fn: Callable[[str, Any], Tuple[str, Any]]) -> None:
        self.fn = fn

    def get_include(self, path: str, context: Any) -> Tuple[str, Any]:
        return self.fn(path, context)


class FileIncludeProvider(IncludeProvider):
    """Read includes from disk.

    The context is the directory of the including file (``None`` at the root,
    meaning the current working directory). Relative paths are searched in the
    including file's directory first, then in ``include_dirs`` in order. The
    child context is the directory of the resolved file.
    """

    def __init__(
        self,
        include_dirs: Iterable[Path | str] | None = None,
        *,
        encoding: Optional[str] = None,
        repo_root: Optional[Path] = None,
    ) -> None:
        if include_dirs is None or encoding is None:
            from .config import CrawlerConfig

            cfg = CrawlerConfig(repo_root=repo_root)
            if include_dirs is None:
                include_dirs = cfg.include_dirs
            if encoding is None:
                encoding = cfg.encoding
        self.include_dirs: List[Path] = [Path(d) for d in include_dirs]
        self.encoding = encoding

    def _candidates(self, path: str, context: Any) -> List[Path]:
        target = Path(path)
        if target.is_absolute():
            return [target]
        current = Path(context) if context is not None else Path.cwd()
        return [base / target for base in (current, *self.include_dirs)]

    def _resolve(self, path: str, context: Any) -> Path:
        candidates = self._candidates(path, context)
        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()
        searched = "\n".join(f"- {c}" for c in candidates)
        raise FileNotFoundError(f"Include not found: {path}\nSearched:\n{searched}")

    def resolve_name(self, path: str, context: Any) -> str:
        try:
            return self._resolve(path, context).as_posix()
        except FileNotFoundError:
            # Report the unresolved path; get_include raises the real error.
            return path

    def get_include(self, path: str, context: Any) -> Tuple[str, Any]:
        resolved = self._resolve(path, context)
        logger.debug("Reading include %s from %s", path, resolved)
        # newline="" keeps \r\n intact
        with open(resolved, encoding=self.encoding, newline="") as handle:
            return handle.read(), resolved.parent


__all__ = [
    "IncludeProvider",
    "MappingIncludeProvider",
    "CallableIncludeProvider",
    "FileIncludeProvider",
]
