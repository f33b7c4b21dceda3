"""Tests for config hierarchy."""

import logging

import pytest

from siena.config import hierarchy
from siena.config.hierarchy import (
    _env_value,
    _read_yaml,
    find_project_config,
    load_config,
    load_config_hierarchy,
)
from siena.errors.exceptions import ConfigError
from siena.types import GcScope, ImageFormat, Loading


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    monkeypatch.setattr(hierarchy, "USER_CONFIG_PATH", tmp_path / "no-user-config.yaml")


class TestLoadConfigHierarchy:
    def test_returns_defaults(self):
        config = load_config_hierarchy()
        assert config["output_dir"] == "public"
        assert config["max_workers"] == 5

    def test_runtime_overrides(self):
        config = load_config_hierarchy(output_dir="dist", max_workers=10)
        assert config["output_dir"] == "dist"
        assert config["max_workers"] == 10

    def test_none_overrides_ignored(self):
        config = load_config_hierarchy(loading=None)
        assert config["loading"] == "lazy"  # Default preserved

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("SIENA_OUTPUT_DIR", "site")
        assert load_config_hierarchy()["output_dir"] == "site"

    def test_runtime_beats_env(self, monkeypatch):
        monkeypatch.setenv("SIENA_LOADING", "eager")
        assert load_config_hierarchy(loading="lazy")["loading"] == "lazy"  # Runtime wins

    def test_env_list(self, monkeypatch):
        monkeypatch.setenv("SIENA_FORMATS", "avif, webp")
        assert load_config_hierarchy()["formats"] == ["avif", "webp"]

    def test_quality_not_read_from_env(self, monkeypatch):
        monkeypatch.setenv("SIENA_QUALITY", "90")
        assert load_config_hierarchy()["quality"] == {"jpg": 80, "webp": 80, "avif": 50}

    def test_user_config(self, tmp_path, monkeypatch):
        user = tmp_path / "user.yaml"
        user.write_text("max_width: 1024\n")
        monkeypatch.setattr(hierarchy, "USER_CONFIG_PATH", user)
        assert load_config_hierarchy()["max_width"] == 1024

    def test_project_config(self, tmp_path, monkeypatch):
        (tmp_path / "siena.yaml").write_text("output_dir: build\ngc_scope: per_document\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        config = load_config_hierarchy()
        assert config["output_dir"] == "build"
        assert config["gc_scope"] == "per_document"

    def test_env_beats_project(self, tmp_path, monkeypatch):
        (tmp_path / "siena.yaml").write_text("output_dir: build\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SIENA_OUTPUT_DIR", "env")
        assert load_config_hierarchy()["output_dir"] == "env"

    def test_unknown_keys_warned(self, tmp_path, monkeypatch, caplog):
        (tmp_path / "siena.yaml").write_text("colour: blue\n")
        monkeypatch.chdir(tmp_path)
        with caplog.at_level(logging.WARNING, logger="siena.config.hierarchy"):
            load_config_hierarchy()
        assert "colour" in caplog.text


class TestLoadConfig:
    def test_validated_model(self, monkeypatch):
        monkeypatch.setenv("SIENA_GC_SCOPE", "per_document")
        config = load_config(loading="eager")
        assert config.gc_scope is GcScope.PER_DOCUMENT
        assert config.loading is Loading.EAGER
        assert config.formats == [ImageFormat.WEBP, ImageFormat.AVIF]

    def test_env_numbers_coerced_by_model(self, monkeypatch):
        monkeypatch.setenv("SIENA_MAX_WIDTH", "1280")
        monkeypatch.setenv("SIENA_FETCH_TIMEOUT", "2.5")
        config = load_config()
        assert config.max_width == 1280
        assert config.fetch_timeout == 2.5

    def test_invalid_value_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("SIENA_MAX_WIDTH", "wide")
        with pytest.raises(ConfigError) as exc_info:
            load_config()
        assert exc_info.value.key == "max_width"


class TestFindProjectConfig:
    def test_nearest_parent_wins(self, tmp_path):
        (tmp_path / "siena.yaml").write_text("")
        inner = tmp_path / "inner"
        inner.mkdir()
        (inner / "siena.yaml").write_text("")
        assert find_project_config(inner) == (inner / "siena.yaml").resolve()

    def test_directory_named_like_config_ignored(self, tmp_path):
        (tmp_path / "siena.yaml").mkdir()
        assert find_project_config(tmp_path) != (tmp_path / "siena.yaml").resolve()


class TestReadYaml:
    def test_loads_valid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("key: value\n")
        assert _read_yaml(path) == {"key": "value"}

    def test_missing_is_empty(self, tmp_path):
        assert _read_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert _read_yaml(path) == {}

    def test_non_mapping_is_empty(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- item1\n- item2\n")
        assert _read_yaml(path) == {}

    def test_broken_yaml_is_empty(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed\n")
        assert _read_yaml(path) == {}


class TestEnvValue:
    def test_list_drops_blanks(self):
        assert _env_value("formats", "webp,,") == ["webp"]

    def test_string_stripped(self):
        assert _env_value("output_dir", " public ") == "public"
