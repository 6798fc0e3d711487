"""Source chunks and location remapping.

A crawl never concatenates files. It returns an ordered list of
``SourceChunk`` values, each tagged with the file it came from and the line
in that file at which it starts. ``join_chunks`` produces the single string a
compiler expects; ``SourceMap`` maps positions in that string back to the
originating files.
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class SourceChunk:
    """Chunk of source code along with information pointing back at its origin."""

    source: str
    file: str
    line: int = 1  # 1-based line in ``file`` at which ``source`` starts
    context: Any = field(default=None, compare=False, repr=False)

    @property
    def line_offset(self) -> int:
        """Zero-based line offset of this chunk within its file."""
        return self.line - 1

    @property
    def line_count(self) -> int:
        """Number of lines this chunk touches (a trailing partial line counts)."""
        if not self.source:
            return 0
        return self.source.count("\n") + (0 if self.source.endswith("\n") else 1)

    @classmethod
    def from_file_source(cls, file: str, source: str) -> "SourceChunk":
        return cls(source=source, file=file, line=1)


def join_chunks(chunks: Iterable[SourceChunk]) -> str:
    """Concatenate chunk sources into one compilable string."""
    return "".join(chunk.source for chunk in chunks)


class SourceMap:
    """Map positions in the joined text of ``chunks`` back to their origins.

    Lines are 1-based; character offsets are 0-based. Positions past the end
    of the joined text raise ``IndexError``. A chunk that does not end
    with a newline shares its last line with the start of the next chunk; such
    a line is attributed to the chunk it starts in.
    """

    def __init__(self, chunks: Sequence[SourceChunk]) -> None:
        self.chunks: List[SourceChunk] = list(chunks)
        self._line_starts: List[int] = []
        self._char_starts: List[int] = []
        line = 1
        offset = 0
        for chunk in self.chunks:
            self._line_starts.append(line)
            self._char_starts.append(offset)
            line += chunk.source.count("\n")
            offset += len(chunk.source)
        self._total_chars = offset
        # A trailing partial line still counts as a line.
        text = join_chunks(self.chunks)
        self._total_lines = line - 1 + (1 if text and not text.endswith("\n") else 0)

    @property
    def files(self) -> List[str]:
        """Distinct origin files in first-seen order."""
        seen: dict[str, None] = {}
        for chunk in self.chunks:
            seen.setdefault(chunk.file, None)
        return list(seen)

    def _chunk_for_line(self, line: int) -> int:
        # Chunks with no newline do not advance the line counter; pick the first
        # chunk starting on ``line`` so a shared line maps to where it began.
        idx = bisect_right(self._line_starts, line) - 1
        while idx > 0 and self._line_starts[idx - 1] == line:
            idx -= 1
        return idx

    def locate(self, line: int) -> Tuple[str, int]:
        """Return ``(file, line)`` for a 1-based line of the joined text."""
        if line < 1 or line > self._total_lines:
            raise IndexError(f"line {line} is outside the mapped source")
        idx = self._chunk_for_line(line)
        chunk = self.chunks[idx]
        return chunk.file, chunk.line + (line - self._line_starts[idx])

    def locate_offset(self, offset: int) -> Tuple[str, int, int]:
        """Return ``(file, line, column)`` for a 0-based character offset.

        ``column`` is 0-based.
        """
        if offset < 0 or offset >= self._total_chars:
            raise IndexError(f"offset {offset} is outside the mapped source")
        idx = bisect_right(self._char_starts, offset) - 1
        # Skip empty chunks sharing the same start offset.
        while idx < len(self.chunks) - 1 and not self.chunks[idx].source:
            idx += 1
        chunk = self.chunks[idx]
        local = offset - self._char_starts[idx]
        before = chunk.source[:local]
        line = chunk.line + before.count("\n")
        column = local - (before.rfind("\n") + 1)
        return chunk.file, line, column


__all__ = ["SourceChunk", "SourceMap", "join_chunks"]
