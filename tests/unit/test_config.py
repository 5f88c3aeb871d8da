"""Unit tests for configuration loading and resolution."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from astgen.config import (
    BYTES_PER_MB,
    DEFAULT_MAX_FILE_SIZE_MB,
    IGNORE_DIRECTORIES,
    MAX_THREADS,
    RunConfig,
    default_thread_count,
    find_config_file,
    load_config_file,
    resolve_config,
)
from astgen.core.errors import ConfigError
from astgen.core.types import OutputFormat


class TestRunConfig:
    def test_defaults(self):
        config = RunConfig(paths=(Path("."),))
        assert config.max_file_size == DEFAULT_MAX_FILE_SIZE_MB * BYTES_PER_MB
        assert config.format == OutputFormat.JSON
        assert config.truncate is None
        assert "target" in config.ignore_directories
        assert 1 <= config.threads <= MAX_THREADS

    def test_is_frozen(self):
        config = RunConfig(paths=(Path("."),))
        with pytest.raises(Exception):
            config.threads = 3

    def test_default_thread_count_is_clamped(self):
        with patch("astgen.config.os.cpu_count", return_value=512):
            assert default_thread_count() == MAX_THREADS
        with patch("astgen.config.os.cpu_count", return_value=None):
            assert default_thread_count() == 1


class TestResolveConfig:
    def test_requires_paths(self):
        with pytest.raises(ConfigError, match="No input files specified"):
            resolve_config({"paths": ()})

    def test_cli_overrides_file(self):
        config = resolve_config(
            {"paths": (Path("src"),), "threads": 4, "format": "yaml"},
            {"threads": 8, "format": "json", "includes": ("*.rs",)},
        )
        assert config.threads == 4
        assert config.format == OutputFormat.YAML
        assert config.includes == ("*.rs",)

    def test_unset_cli_values_keep_file_values(self):
        config = resolve_config(
            {"paths": (Path("src"),), "threads": None, "fail_on_error": False, "excludes": ()},
            {"threads": 3, "fail_on_error": True, "excludes": ("*_test.go",)},
        )
        assert config.threads == 3
        assert config.fail_on_error
        assert config.excludes == ("*_test.go",)

    def test_max_file_size_is_megabytes(self):
        config = resolve_config({"paths": (Path("."),), "max_file_size_mb": 50})
        assert config.max_file_size == 50_000_000

    @pytest.mark.parametrize("size", [0, 1001])
    def test_max_file_size_bounds(self, size):
        with pytest.raises(ConfigError, match="Max file size"):
            resolve_config({"paths": (Path("."),), "max_file_size_mb": size})

    @pytest.mark.parametrize("threads", [0, 65])
    def test_thread_bounds(self, threads):
        with pytest.raises(ConfigError, match="Thread count"):
            resolve_config({"paths": (Path("."),), "threads": threads})

    def test_verbose_and_quiet_conflict(self):
        with pytest.raises(ConfigError, match="--verbose and --quiet"):
            resolve_config({"paths": (Path("."),), "verbose": True, "quiet": True})

    def test_empty_pattern_rejected(self):
        with pytest.raises(ConfigError, match="Patterns cannot be empty"):
            resolve_config({"paths": (Path("."),), "includes": ("  ",)})

    def test_missing_output_directory(self, tmp_path):
        with pytest.raises(ConfigError, match="Output directory does not exist"):
            resolve_config({"paths": (Path("."),), "output_path": tmp_path / "nope" / "out.json"})

    def test_truncate_must_be_positive(self):
        with pytest.raises(ConfigError, match="Truncate"):
            resolve_config({"paths": (Path("."),), "truncate": 0})

    def test_extra_ignore_directories_extend_defaults(self):
        config = resolve_config(
            {"paths": (Path("."),)},
            {"extra_ignore_directories": ("vendor",)},
        )
        assert "vendor" in config.ignore_directories
        assert IGNORE_DIRECTORIES <= config.ignore_directories


class TestConfigFile:
    def test_find_prefers_cwd(self, tmp_path):
        cwd = tmp_path / "project"
        home = tmp_path / "home"
        cwd.mkdir()
        home.mkdir()
        (home / ".astgenrc").write_text("parallel: 2\n")
        assert find_config_file(cwd, home) == home / ".astgenrc"

        (cwd / ".astgenrc").write_text("parallel: 4\n")
        assert find_config_file(cwd, home) == cwd / ".astgenrc"

    def test_find_none(self, tmp_path):
        assert find_config_file(tmp_path, tmp_path) is None

    def test_load_maps_keys(self, tmp_path):
        path = tmp_path / ".astgenrc"
        path.write_text(
            "includes: ['*.rs', '*.go']\n"
            "exclude: vendor/\n"
            "maxFileSize: 5\n"
            "parallel: 2\n"
            "format: pretty-json\n"
            "outputPath: out.json\n"
            "noGitignore: true\n"
            "ignore:\n"
            "  patterns: ['*.generated.ts']\n"
            "  directories: ['third_party']\n"
        )
        values = load_config_file(path)
        assert values["includes"] == ["*.rs", "*.go"]
        assert values["excludes"] == ("vendor/",)
        assert values["max_file_size_mb"] == 5
        assert values["threads"] == 2
        assert values["format"] == "pretty-json"
        assert values["output_path"] == "out.json"
        assert values["no_gitignore"] is True
        assert values["ignore_patterns"] == ("*.generated.ts",)
        assert values["extra_ignore_directories"] == ("third_party",)

    def test_unknown_key_warns(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        path = tmp_path / ".astgenrc"
        path.write_text("colour: blue\nparallel: 2\n")
        values = load_config_file(path)
        assert values == {"threads": 2}
        assert "Ignoring unknown config key 'colour'" in caplog.text

    def test_empty_file(self, tmp_path):
        path = tmp_path / ".astgenrc"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / ".astgenrc"
        path.write_text("parallel: [1, 2\n")
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config_file(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / ".astgenrc"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_config_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config_file(tmp_path / "missing.yml")
