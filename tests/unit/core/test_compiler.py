"""Tests for compile_shader log remapping."""
from __future__ import annotations

from typing import List

from shadercrawl import ShaderCompilerOutput, SourceChunk, compile_shader
from shadercrawl.core.compiler import build_sources, remap_log

CHUNKS = [
    SourceChunk("#version 330\nuniform float t;\n", "main.frag", 1),
    SourceChunk("float noise(vec2 p)", "noise.glsl", 1),
    SourceChunk("void main() {\n}\n", "main.frag", 4),
]


class TestBuildSources:
    def test_first_chunk_is_untouched_and_rest_are_tagged(self) -> None:
        sources = build_sources(CHUNKS)
        assert sources[0] == CHUNKS[0].source
        assert sources[1] == "#line 0 2\nfloat noise(vec2 p)"
        # Previous string had no trailing newline.
        assert sources[2] == "\n#line 0 3\nvoid main() {\n}\n"

    def test_empty_input(self) -> None:
        assert build_sources([]) == []


class TestRemapLog:
    def test_intel_amd_format(self) -> None:
        log = "ERROR: 0:2: 'x' : undeclared identifier\nERROR: 3:1: syntax error\n"
        assert remap_log(log, CHUNKS) == (
            "main.frag(2): 'x' : undeclared identifier\nmain.frag(4): syntax error\n"
        )

    def test_nvidia_format(self) -> None:
        log = "2(1) : error C1008: undefined variable\n"
        assert remap_log(log, CHUNKS) == "noise.glsl(1): error C1008: undefined variable\n"

    def test_unknown_string_index_is_left_alone(self) -> None:
        log = "ERROR: 9:1: nope"
        assert remap_log(log, CHUNKS) == log


class TestCompileShader:
    def test_callback_receives_tagged_sources_and_log_is_remapped(self) -> None:
        received: List[List[str]] = []

        def compiler_fn(sources: List[str]) -> ShaderCompilerOutput[int]:
            received.append(sources)
            return ShaderCompilerOutput(artifact=None, log="ERROR: 2:1: bad token")

        output = compile_shader(iter(CHUNKS), compiler_fn)

        assert received == [build_sources(CHUNKS)]
        assert output.artifact is None
        assert output.log == "noise.glsl(1): bad token"

    def test_success_without_log(self) -> None:
        output = compile_shader(CHUNKS, lambda sources: ShaderCompilerOutput(artifact=7))
        assert output.artifact == 7
        assert output.log is None
