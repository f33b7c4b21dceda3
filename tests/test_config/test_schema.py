"""Tests for the configuration model and defaults."""

from pathlib import Path

import pytest

from siena.config.defaults import DEFAULT_MAX_WIDTH, DEFAULT_OUTPUT_DIR, get_defaults
from siena.config.schema import SienaConfig
from siena.errors.exceptions import ConfigError
from siena.types import GcScope, ImageFormat, Loading


class TestDefaults:
    def test_values(self):
        assert DEFAULT_OUTPUT_DIR == "public"
        assert DEFAULT_MAX_WIDTH == 1920

    def test_get_defaults_returns_copy(self):
        d = get_defaults()
        d["formats"].append("jpg")
        assert get_defaults()["formats"] == ["webp", "avif"]


class TestSienaConfig:
    def test_defaults(self):
        config = SienaConfig()
        assert config.loading is Loading.LAZY
        assert config.gc_scope is GcScope.SESSION
        assert config.formats == [ImageFormat.WEBP, ImageFormat.AVIF]
        assert config.quality[ImageFormat.AVIF] == 50
        assert config.fetch_timeout is None

    def test_cache_dir(self):
        config = SienaConfig(output_dir="dist", cache_dir_name=".img")
        assert config.cache_dir(Path("/site")) == Path("/site/dist/.img")

    def test_formats_drop_jpg_and_duplicates(self):
        config = SienaConfig(formats=["avif", "jpg", "avif", "webp"])
        assert config.formats == [ImageFormat.AVIF, ImageFormat.WEBP]

    def test_cache_dir_name_strips_slashes(self):
        assert SienaConfig(cache_dir_name="/.siena/").cache_dir_name == ".siena"

    @pytest.mark.parametrize("name", ["", "/", "a/b"])
    def test_cache_dir_name_must_be_single(self, name):
        with pytest.raises(ValueError):
            SienaConfig(cache_dir_name=name)

    def test_from_mapping_ignores_unknown_keys(self):
        config = SienaConfig.from_mapping({"colour": "blue", "max_width": 800})
        assert config.max_width == 800

    def test_from_mapping_invalid(self):
        with pytest.raises(ConfigError) as exc_info:
            SienaConfig.from_mapping({"gc_scope": "sometimes"})
        assert exc_info.value.key == "gc_scope"

    def test_max_width_positive(self):
        with pytest.raises(ConfigError):
            SienaConfig.from_mapping({"max_width": 0})
