"""Tests for plugin option parsing and env loading."""

from pathlib import Path

import pytest

from autopicture_shared.options import (
    OptionsError,
    PluginOptions,
    ResolvedConfig,
    canonical_options,
    parse_plugin_options,
)

ENV_VARS = (
    "AUTOPICTURE_INCLUDE_EXT",
    "AUTOPICTURE_SKIP_EXTERNAL",
    "AUTOPICTURE_WARN_ON_MISSING_FILE",
    "AUTOPICTURE_CONCURRENCY",
    "AUTOPICTURE_CACHE_FILE",
    "AUTOPICTURE_ENCODE_OPTIONS",
    "AUTOPICTURE_APPLY_MODE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParse:
    """Test suite for parse_plugin_options."""

    def test_defaults(self):
        options = parse_plugin_options({})
        assert options == PluginOptions()
        assert options.include_ext == (".png", ".jpg", ".jpeg")
        assert options.encode_options == {"quality": 82}
        assert options.skip_external is True
        assert options.concurrency == "auto"
        assert options.cache_file == Path(".cache/webp-autopicture.json")

    def test_none(self):
        assert parse_plugin_options(None) == PluginOptions()

    def test_camel_case_keys(self):
        options = parse_plugin_options({
            "includeExt": ["PNG", ".Jpg"],
            "skipExternal": False,
            "warnOnMissingFile": False,
            "cacheFile": "tmp/store.json",
            "webpOptions": {"quality": 60, "effort": 4},
            "applyMode": "build",
        })
        assert options.include_ext == (".png", ".jpg")
        assert options.skip_external is False
        assert options.warn_on_missing_file is False
        assert options.cache_file == Path("tmp/store.json")
        assert options.encode_options == {"quality": 60, "effort": 4}
        assert options.apply_mode == "build"

    def test_single_extension_string(self):
        assert parse_plugin_options({"include_ext": "png"}).include_ext == (".png",)

    def test_bad_apply_mode(self):
        with pytest.raises(OptionsError, match="apply_mode"):
            parse_plugin_options({"apply_mode": "preview"})

    @pytest.mark.parametrize("value", [0, -2, "many", True])
    def test_bad_concurrency(self, value):
        with pytest.raises(OptionsError, match="concurrency"):
            parse_plugin_options({"concurrency": value})

    def test_concurrency_string_number(self):
        assert parse_plugin_options({"concurrency": "3"}).concurrency == 3

    def test_encode_options_must_be_mapping(self):
        with pytest.raises(OptionsError, match="encode_options"):
            parse_plugin_options({"encode_options": [1, 2]})


class TestPluginOptions:
    """Test suite for PluginOptions helpers."""

    def test_worker_count_explicit(self):
        assert PluginOptions(concurrency=3).worker_count() == 3

    def test_worker_count_auto(self, monkeypatch):
        monkeypatch.setattr("os.cpu_count", lambda: 32)
        assert PluginOptions().worker_count() == 8
        monkeypatch.setattr("os.cpu_count", lambda: 1)
        assert PluginOptions().worker_count() == 2

    def test_cache_path_relative_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert PluginOptions().cache_path() == tmp_path.resolve() / ".cache" / "webp-autopicture.json"

    def test_applies_to(self):
        assert PluginOptions().applies_to("serve")
        assert PluginOptions(apply_mode="build").applies_to("build")
        assert not PluginOptions(apply_mode="build").applies_to("serve")

    def test_canonical_options_is_order_independent(self):
        assert canonical_options({"a": 1, "b": 2}) == canonical_options({"b": 2, "a": 1})
        assert canonical_options(None) == canonical_options({})


class TestLoad:
    """Test suite for PluginOptions.load."""

    def test_empty_env(self, clean_env):
        assert PluginOptions.load() == PluginOptions()

    def test_reads_env(self, clean_env):
        clean_env.setenv("AUTOPICTURE_INCLUDE_EXT", "png, webp ,")
        clean_env.setenv("AUTOPICTURE_SKIP_EXTERNAL", "false")
        clean_env.setenv("AUTOPICTURE_CONCURRENCY", "4")
        clean_env.setenv("AUTOPICTURE_ENCODE_OPTIONS", '{"quality": 50, "lossless": true}')
        clean_env.setenv("AUTOPICTURE_APPLY_MODE", "serve")

        options = PluginOptions.load()
        assert options.include_ext == (".png", ".webp")
        assert options.skip_external is False
        assert options.concurrency == 4
        assert options.encode_options == {"quality": 50, "lossless": True}
        assert options.apply_mode == "serve"

    def test_bad_json(self, clean_env):
        clean_env.setenv("AUTOPICTURE_ENCODE_OPTIONS", "{quality")
        with pytest.raises(OptionsError, match="AUTOPICTURE_ENCODE_OPTIONS"):
            PluginOptions.load()


class TestResolvedConfig:
    def test_out_path_relative(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert ResolvedConfig(out_dir=Path("build")).out_path() == tmp_path.resolve() / "build"

    def test_out_path_absolute(self, tmp_path):
        assert ResolvedConfig(out_dir=tmp_path / "out").out_path() == (tmp_path / "out").resolve()
