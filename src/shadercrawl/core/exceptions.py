from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence


def format_chain(chain: Sequence[str]) -> str:
    return " -> ".join(chain)


class ShaderCrawlError(Exception):
    """Base exception for shadercrawl."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class IncludeParseError(ShaderCrawlError):
    """Raised when an include directive is malformed."""

    def __init__(self, file: str, line: int, reason: str = "malformed include directive") -> None:
        self.file = file
        self.line = line
        super().__init__(
            f"Parse error: {reason} in {file} ({line})",
            context={"file": file, "line": line, "reason": reason},
        )


class IncludeProviderError(ShaderCrawlError):
    """Raised when the include provider fails to deliver an include."""

    def __init__(
        self,
        file: str,
        *,
        from_file: Optional[str] = None,
        from_line: Optional[int] = None,
        chain: Sequence[str] = (),
        cause: BaseException | None = None,
    ) -> None:
        self.file = file
        self.from_file = from_file
        self.from_line = from_line
        self.chain = list(chain)
        self.cause = cause
        where = f"{from_file} ({from_line})" if from_file is not None else "the crawl root"
        message = f"Include provider error: {cause!r} when trying to include {file!r} from {where}"
        if self.chain:
            message += f". Chain: {format_chain(self.chain)}"
        super().__init__(
            message,
            context={
                "file": file,
                "from_file": from_file,
                "from_line": from_line,
                "chain": self.chain,
                "cause": str(cause) if cause is not None else None,
            },
        )


class RecursiveIncludeError(ShaderCrawlError):
    """Raised when a file is included while it is already being expanded."""

    def __init__(self, file: str, *, from_file: str, from_line: int, chain: Sequence[str]) -> None:
        self.file = file
        self.from_file = from_file
        self.from_line = from_line
        self.chain = list(chain)
        super().__init__(
            f"File {file!r} is recursively included; triggered in {from_file!r} ({from_line}). "
            f"Chain: {format_chain(self.chain)}",
            context={"file": file, "from_file": from_file, "from_line": from_line, "chain": self.chain},
        )


class IncludeDepthError(ShaderCrawlError):
    """Raised when include nesting exceeds the configured maximum depth."""

    def __init__(self, file: str, *, max_depth: int, chain: Sequence[str]) -> None:
        self.file = file
        self.max_depth = max_depth
        self.chain = list(chain)
        super().__init__(
            f"Include depth exceeded (>{max_depth}) while including {file!r}. "
            f"Chain: {format_chain(self.chain)}",
            context={"file": file, "max_depth": max_depth, "chain": self.chain},
        )


class ConfigError(ShaderCrawlError, ValueError):
    """Raised when configuration fails to load or validate."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ShaderCrawlError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "ShaderCrawlError",
    "IncludeParseError",
    "IncludeProviderError",
    "RecursiveIncludeError",
    "IncludeDepthError",
    "ConfigError",
    "format_chain",
]
