import os
import sys
from pathlib import Path
from typing import Callable, Dict

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'shadercrawl'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from shadercrawl.core.provider import MappingIncludeProvider  # noqa: E402
from shadercrawl.data import clear_caches  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config_env(monkeypatch: pytest.MonkeyPatch):
    """Drop SHADERCRAWL_* overrides from the environment and reset data caches."""
    for key in list(os.environ):
        if key.startswith("SHADERCRAWL_"):
            monkeypatch.delenv(key, raising=False)
    clear_caches()
    yield
    clear_caches()


@pytest.fixture
def mapping_provider() -> Callable[[Dict[str, str]], MappingIncludeProvider]:
    """Factory for an in-memory provider: ``mapping_provider({"a.glsl": "..."})``."""

    def _make(sources: Dict[str, str]) -> MappingIncludeProvider:
        return MappingIncludeProvider(sources)

    return _make


@pytest.fixture
def shader_tree(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: source}`` under tmp_path and return the root."""

    def _write(files: Dict[str, str]) -> Path:
        for rel, text in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps \r\n sequences exactly as written.
            with open(path, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
        return tmp_path

    return _write
