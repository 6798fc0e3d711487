"""Tests for configuration loading (defaults, project overlay, env overrides)."""
from __future__ import annotations

from pathlib import Path

import pytest

from shadercrawl.core.config import CrawlerConfig, load_config
from shadercrawl.core.exceptions import ConfigError
from shadercrawl.core.merge import deep_merge
from shadercrawl.data import get_data_path, read_yaml


class TestBundledDefaults:
    def test_defaults_file_is_packaged(self) -> None:
        assert get_data_path("config", "defaults.yaml").is_file()
        assert get_data_path("schemas", "config.schema.yaml").is_file()

    def test_default_values(self) -> None:
        cfg = CrawlerConfig()
        assert cfg.max_depth == 32
        assert cfg.detect_cycles is True
        assert cfg.pragma_once is False
        assert cfg.encoding == "utf-8"
        assert cfg.include_dirs == []

    def test_loading_does_not_mutate_cached_defaults(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("crawler:\n  max_depth: 4\n", encoding="utf-8")
        load_config(tmp_path)
        assert read_yaml("config", "defaults.yaml")["crawler"]["max_depth"] == 32


class TestProjectOverlay:
    def test_overlay_is_merged(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text(
            "crawler:\n  pragma_once: true\nprovider:\n  include_dirs: [shaders/include]\n",
            encoding="utf-8",
        )
        cfg = CrawlerConfig(repo_root=tmp_path)
        assert cfg.pragma_once is True
        assert cfg.max_depth == 32
        assert cfg.include_dirs == [tmp_path / "shaders" / "include"]

    def test_empty_overlay_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("", encoding="utf-8")
        assert CrawlerConfig(repo_root=tmp_path).max_depth == 32

    def test_invalid_yaml_fails_closed(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("crawler: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            CrawlerConfig(repo_root=tmp_path)

    def test_non_mapping_overlay_is_rejected(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            CrawlerConfig(repo_root=tmp_path)

    def test_schema_rejects_unknown_keys(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("crawler:\n  max_dept: 4\n", encoding="utf-8")
        with pytest.raises(ConfigError) as excinfo:
            CrawlerConfig(repo_root=tmp_path)
        assert "crawler" in str(excinfo.value)

    def test_schema_rejects_bad_depth(self, tmp_path: Path) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("crawler:\n  max_depth: 0\n", encoding="utf-8")
        with pytest.raises(ConfigError) as excinfo:
            CrawlerConfig(repo_root=tmp_path)
        assert excinfo.value.context["path"] == "crawler.max_depth"


class TestEnvOverrides:
    def test_env_beats_overlay(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".shadercrawl.yaml").write_text("crawler:\n  max_depth: 4\n", encoding="utf-8")
        monkeypatch.setenv("SHADERCRAWL_CRAWLER__MAX_DEPTH", "9")
        monkeypatch.setenv("SHADERCRAWL_crawler__detect_cycles", "false")
        cfg = CrawlerConfig(repo_root=tmp_path)
        assert cfg.max_depth == 9
        assert cfg.detect_cycles is False

    def test_json_list_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHADERCRAWL_provider__include_dirs", '["/opt/a", "/opt/b"]')
        assert CrawlerConfig().include_dirs == [Path("/opt/a"), Path("/opt/b")]

    def test_malformed_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHADERCRAWL_crawler____max_depth", "3")
        with pytest.raises(ConfigError, match="Malformed"):
            load_config()

    def test_wrong_type_fails_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHADERCRAWL_crawler__pragma_once", "sometimes")
        with pytest.raises(ConfigError):
            load_config()


class TestDeepMerge:
    def test_nested_merge_leaves_inputs_untouched(self) -> None:
        base = {"a": {"b": 1, "c": 2}}
        merged = deep_merge(base, {"a": {"c": 3}})
        assert merged == {"a": {"b": 1, "c": 3}}
        assert base == {"a": {"b": 1, "c": 2}}

    def test_lists_are_replaced_verbatim(self) -> None:
        base = {"provider": {"include_dirs": ["a"]}}
        assert deep_merge(base, {"provider": {"include_dirs": ["+", "b"]}}) == {
            "provider": {"include_dirs": ["+", "b"]}
        }
        assert deep_merge(base, {"provider": {"include_dirs": []}}) == {"provider": {"include_dirs": []}}
        assert deep_merge(base, None) == base
