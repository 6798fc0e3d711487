"""
shadercrawl - #include crawler for GLSL-like shaders

Expands ``#include`` directives into an ordered list of source chunks, each
tagged with the file and line it came from, so compiler errors can be mapped
back to the original files. Include content is fetched through a pluggable
provider; every other preprocessor directive is left for the shader compiler.
"""

from .core.chunks import SourceChunk, SourceMap, join_chunks
from .core.compiler import ShaderCompilerOutput, compile_shader
from .core.exceptions import (
    ConfigError,
    IncludeDepthError,
    IncludeParseError,
    IncludeProviderError,
    RecursiveIncludeError,
    ShaderCrawlError,
)
from .core.provider import (
    CallableIncludeProvider,
    FileIncludeProvider,
    IncludeProvider,
    MappingIncludeProvider,
)
from .core.scanner import IncludeCrawler, process_file, process_source

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "SourceChunk",
    "SourceMap",
    "join_chunks",
    "ShaderCompilerOutput",
    "compile_shader",
    "ShaderCrawlError",
    "IncludeParseError",
    "IncludeProviderError",
    "RecursiveIncludeError",
    "IncludeDepthError",
    "ConfigError",
    "IncludeProvider",
    "MappingIncludeProvider",
    "CallableIncludeProvider",
    "FileIncludeProvider",
    "IncludeCrawler",
    "process_file",
    "process_source",
]
