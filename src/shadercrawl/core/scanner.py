"""Include scanning and recursive crawling.

Only ``#include`` is interpreted. Every other line, including other
preprocessor directives, is copied verbatim so the shader compiler can handle
it. Recognition is line-oriented:

- ``#include "path"`` and ``#include <path>``, with optional leading
  whitespace, blanks between ``#`` and ``include``, and a trailing ``//`` or
  ``/* */`` comment; a trailing ``/*`` may stay open across later lines
- lines starting inside a ``/* */`` block comment are not directives
- lines ending in a backslash continuation, and the lines they continue, are
  not directives

Each directive line is replaced by the chunks of the included file, so the
joined output never contains the directive itself.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Set, Tuple

from .chunks import SourceChunk
from .exceptions import (
    IncludeDepthError,
    IncludeParseError,
    IncludeProviderError,
    RecursiveIncludeError,
)
from .provider import IncludeProvider

if TYPE_CHECKING:
    from .config import CrawlerConfig

logger = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r"[ \t\f\v]*#[ \t]*include(?![A-Za-z0-9_])")
_TRAILER_RE = re.compile(r"[ \t]*(?:/\*.*?\*/[ \t]*)*(?://.*|/\*(?:(?!\*/).)*)?")
_PRAGMA_ONCE_RE = re.compile(r"^[ \t]*#[ \t]*pragma[ \t]+once\b", re.MULTILINE)

_CLOSING = {'"': '"', "<": ">"}


@dataclass(frozen=True)
class Directive:
    """A parsed ``#include`` line."""

    path: str
    delimiter: str
    line: int
    # True when a trailing /* comment is still open at the end of the line.
    opens_comment: bool = field(default=False, compare=False)


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` keeping terminators; ``"".join`` restores ``text``."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def parse_directive(body: str, file: str, line: int) -> Optional[Directive]:
    """Parse one line (without terminator).

    Returns None when the line is not an include directive and raises
    ``IncludeParseError`` when it is one but is malformed.
    """
    match = _KEYWORD_RE.match(body)
    if match is None:
        return None

    rest = body[match.end():].lstrip(" \t")
    if not rest:
        raise IncludeParseError(file, line, "missing include path")

    closing = _CLOSING.get(rest[0])
    if closing is None:
        raise IncludeParseError(file, line, 'expected "path" or <path>')

    end = rest.find(closing, 1)
    if end < 0:
        raise IncludeParseError(file, line, "unterminated include path")

    path = rest[1:end]
    if not path.strip():
        raise IncludeParseError(file, line, "empty include path")

    trailer = rest[end + 1:]
    if _TRAILER_RE.fullmatch(trailer) is None:
        raise IncludeParseError(file, line, "unexpected text after include path")

    return Directive(
        path=path,
        delimiter=rest[0],
        line=line,
        opens_comment=_in_block_comment_after(trailer, False),
    )


def _in_block_comment_after(body: str, in_comment: bool) -> bool:
    """Whether a block comment is still open at the end of ``body``."""
    i = 0
    while i < len(body):
        if in_comment:
            close = body.find("*/", i)
            if close < 0:
                return True
            i = close + 2
            in_comment = False
        else:
            opened = body.find("/*", i)
            line_comment = body.find("//", i)
            if opened < 0 or 0 <= line_comment < opened:
                return False
            i = opened + 2
            in_comment = True
    return in_comment


def has_pragma_once(source: str) -> bool:
    return _PRAGMA_ONCE_RE.search(source) is not None


class _Crawl:
    """State for one crawl: the active include stack and pragma-once set."""

    def __init__(
        self,
        provider: IncludeProvider,
        *,
        max_depth: int,
        detect_cycles: bool,
        pragma_once: bool,
    ) -> None:
        self.provider = provider
        self.max_depth = max_depth
        self.detect_cycles = detect_cycles
        self.pragma_once = pragma_once
        self.stack: List[str] = []
        self.included_once: Set[str] = set()

    def _call(
        self,
        method: Callable[[str, Any], Any],
        path: str,
        context: Any,
        from_file: Optional[str],
        from_line: Optional[int],
    ) -> Any:
        try:
            return method(path, context)
        except Exception as exc:
            raise IncludeProviderError(
                path,
                from_file=from_file,
                from_line=from_line,
                chain=self.stack + [path],
                cause=exc,
            ) from exc

    def _get_include(self, path: str, context: Any) -> Tuple[str, Any]:
        source, child_context = self.provider.get_include(path, context)
        if not isinstance(source, str):
            raise TypeError(f"get_include returned {type(source).__name__}, expected str")
        return source, child_context

    def fetch(
        self,
        path: str,
        context: Any,
        *,
        name: Optional[str] = None,
        from_file: Optional[str] = None,
        from_line: Optional[int] = None,
    ) -> Tuple[str, str, Any]:
        """Return ``(name, source, child_context)`` for ``path``."""
        if name is None:
            name = self._call(self.provider.resolve_name, path, context, from_file, from_line)
        source, child_context = self._call(self._get_include, path, context, from_file, from_line)
        if self.pragma_once and has_pragma_once(source):
            self.included_once.add(name)
        return name, source, child_context

    def run(self, source: str, name: str, context: Any, depth: int) -> List[SourceChunk]:
        self.stack.append(name)
        try:
            return self._scan(source, name, context, depth)
        finally:
            self.stack.pop()

    def _include(self, directive: Directive, parent: str, context: Any, depth: int) -> List[SourceChunk]:
        name = self._call(self.provider.resolve_name, directive.path, context, parent, directive.line)

        if name in self.included_once:
            logger.debug("Skipping %s (pragma once) included from %s:%d", name, parent, directive.line)
            return []
        if self.detect_cycles and name in self.stack:
            raise RecursiveIncludeError(
                name, from_file=parent, from_line=directive.line, chain=self.stack + [name]
            )
        if depth + 1 > self.max_depth:
            raise IncludeDepthError(name, max_depth=self.max_depth, chain=self.stack + [name])

        name, source, child_context = self.fetch(
            directive.path, context, name=name, from_file=parent, from_line=directive.line
        )
        logger.debug("Including %s from %s:%d (depth %d)", name, parent, directive.line, depth + 1)
        return self.run(source, name, child_context, depth + 1)

    def _scan(self, source: str, name: str, context: Any, depth: int) -> List[SourceChunk]:
        chunks: List[SourceChunk] = []
        pending: List[str] = []
        pending_start = 1
        in_comment = False
        continued = False

        def flush() -> None:
            if pending:
                chunks.append(SourceChunk("".join(pending), name, pending_start, context))
                pending.clear()

        for lineno, line in enumerate(split_lines(source), start=1):
            body = _strip_eol(line)
            directive = None
            if not (in_comment or continued or body.endswith("\\")):
                directive = parse_directive(body, name, lineno)

            if directive is None:
                if not pending:
                    pending_start = lineno
                pending.append(line)
                in_comment = _in_block_comment_after(body, in_comment)
                continued = body.endswith("\\")
                continue

            flush()
            chunks.extend(self._include(directive, name, context, depth))
            in_comment = directive.opens_comment

        flush()
        return chunks


class IncludeCrawler:
    """Expand ``#include`` directives into an ordered list of ``SourceChunk``.

    The crawler keeps no state between calls; it can be reused and shared as
    long as the provider allows it.

    Args:
        provider: Supplies the content of every include (and of the root in
            ``process_file``).
        max_depth: Maximum include nesting depth. Defaults to configuration.
        detect_cycles: Raise ``RecursiveIncludeError`` when a file is included
            while already being expanded. Defaults to configuration.
        pragma_once: Expand files containing ``#pragma once`` at most once per
            crawl. Defaults to configuration.
        config: Configuration to take defaults from; loaded when omitted and
            any option is left unset.
    """

    def __init__(
        self,
        provider: IncludeProvider,
        *,
        max_depth: Optional[int] = None,
        detect_cycles: Optional[bool] = None,
        pragma_once: Optional[bool] = None,
        config: Optional[CrawlerConfig] = None,
    ) -> None:
        if None in (max_depth, detect_cycles, pragma_once) and config is None:
            from .config import CrawlerConfig

            config = CrawlerConfig()
        self.provider = provider
        self.max_depth = max_depth if max_depth is not None else config.max_depth
        self.detect_cycles = detect_cycles if detect_cycles is not None else config.detect_cycles
        self.pragma_once = pragma_once if pragma_once is not None else config.pragma_once

    def _new_crawl(self) -> _Crawl:
        return _Crawl(
            self.provider,
            max_depth=self.max_depth,
            detect_cycles=self.detect_cycles,
            pragma_once=self.pragma_once,
        )

    def process_file(self, path: str, context: Any = None) -> List[SourceChunk]:
        """Fetch ``path`` through the provider, then crawl it."""
        crawl = self._new_crawl()
        name, source, child_context = crawl.fetch(path, context)
        return crawl.run(source, name, child_context, 0)

    def process_source(self, source: str, name: str = "<source>", context: Any = None) -> List[SourceChunk]:
        """Crawl already-loaded root ``source`` under the logical ``name``."""
        crawl = self._new_crawl()
        if self.pragma_once and has_pragma_once(source):
            crawl.included_once.add(name)
        return crawl.run(source, name, context, 0)


def process_file(path: str, provider: IncludeProvider, context: Any = None, **options: Any) -> List[SourceChunk]:
    """Process a single file, and then any code recursively referenced.

    ``provider`` is used to read all of the files, including the one at ``path``.
    """
    return IncludeCrawler(provider, **options).process_file(path, context)


def process_source(
    source: str,
    provider: IncludeProvider,
    context: Any = None,
    *,
    name: str = "<source>",
    **options: Any,
) -> List[SourceChunk]:
    """Process already-loaded root ``source``; only its includes go through ``provider``."""
    return IncludeCrawler(provider, **options).process_source(source, name, context)


__all__ = [
    "Directive",
    "IncludeCrawler",
    "parse_directive",
    "process_file",
    "process_source",
    "split_lines",
]
