"""Compile shaders from chunks and map compiler logs back to files.

OpenGL has no notion of include files. It compiles an array of source strings
and reports errors as indices into that array, in a vendor-specific format.

``compile_shader`` turns each ``SourceChunk`` into one source string, tagging
every string after the first with a ``#line 0 <n>`` directive (desktop GLSL
numbering: the next line is line 1 of source string ``n``), hands the strings
to a caller-supplied compiler callback, and rewrites the locations in the
returned log to ``file(line)``.

Example:
    def compile_fn(sources):
        handle = gl.glCreateShader(gl.GL_FRAGMENT_SHADER)
        gl.glShaderSource(handle, sources)
        gl.glCompileShader(handle)
        if not gl.glGetShaderiv(handle, gl.GL_COMPILE_STATUS):
            log = gl.glGetShaderInfoLog(handle).decode()
            gl.glDeleteShader(handle)
            return ShaderCompilerOutput(artifact=None, log=log)
        return ShaderCompilerOutput(artifact=handle)

    output = compile_shader(process_file("main.frag", provider), compile_fn)
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from .chunks import SourceChunk

logger = logging.getLogger(__name__)

Artifact = TypeVar("Artifact")

# Intel / AMD: "ERROR: 2:14: ..."
INTEL_AMD_ERROR_RE = re.compile(r"^ERROR:\s*(\d+):(\d+)", re.MULTILINE)
# NVIDIA: "2(14) : error C0000: ..."
NV_ERROR_RE = re.compile(r"^(\d+)\((\d+)\)\s*", re.MULTILINE)


@dataclass
class ShaderCompilerOutput(Generic[Artifact]):
    """Output of the user's shader compiler, along with an info log."""

    artifact: Optional[Artifact]
    log: Optional[str] = None


def build_sources(chunks: Iterable[SourceChunk]) -> List[str]:
    """One source string per chunk, tagged with ``#line`` after the first."""
    sources: List[str] = []
    for index, chunk in enumerate(chunks):
        if index == 0:
            sources.append(chunk.source)
            continue
        # #line must start a line of its own.
        sep = "" if sources[-1].endswith("\n") or not sources[-1] else "\n"
        sources.append(f"{sep}#line 0 {index + 1}\n{chunk.source}")
    return sources


def remap_log(log: str, chunks: Sequence[SourceChunk]) -> str:
    """Rewrite ``<string>:<line>`` style locations in ``log`` to ``file(line)``."""

    def replace(match: re.Match[str]) -> str:
        # Source strings 0 and 1 both refer to the first chunk.
        index = max(int(match.group(1)), 1) - 1
        if index >= len(chunks):
            return match.group(0)
        chunk = chunks[index]
        return f"{chunk.file}({int(match.group(2)) + chunk.line_offset})"

    log = INTEL_AMD_ERROR_RE.sub(replace, log)
    return NV_ERROR_RE.sub(replace, log)


def compile_shader(
    chunks: Iterable[SourceChunk],
    compiler_fn: Callable[[List[str]], ShaderCompilerOutput[Artifact]],
) -> ShaderCompilerOutput[Artifact]:
    """Compile ``chunks`` with ``compiler_fn`` and remap its log to original files."""
    chunk_list = list(chunks)
    output = compiler_fn(build_sources(chunk_list))
    if output.log is None:
        return output
    logger.debug("Remapping shader compiler log over %d chunks", len(chunk_list))
    return ShaderCompilerOutput(artifact=output.artifact, log=remap_log(output.log, chunk_list))


__all__ = [
    "ShaderCompilerOutput",
    "build_sources",
    "compile_shader",
    "remap_log",
]
