"""Tests for settings loading."""

import hashlib

import pytest
from pydantic import ValidationError

from merklehash.config import HashSettings, default_config_path, load_settings
from merklehash.errors import ConfigError
from merklehash.hashing import DEFAULT_CHUNK_SIZE


class TestHashSettings:

    def test_defaults(self):
        settings = HashSettings()

        assert settings.algorithm == "sha256"
        assert settings.max_workers is None
        assert settings.chunk_size == DEFAULT_CHUNK_SIZE
        assert settings.timeout is None
        assert settings.factory is hashlib.sha256

    def test_algorithm_normalized(self):
        assert HashSettings(algorithm="SHA512").algorithm == "sha512"

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValidationError, match="not a valid algorithm"):
            HashSettings(algorithm="crc32")

    @pytest.mark.parametrize("field,value", [
        ("max_workers", 0),
        ("chunk_size", 0),
        ("timeout", 0),
        ("timeout", -1.5),
    ])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            HashSettings(**{field: value})


class TestLoadSettings:

    def test_missing_file_gives_defaults(self, isolated_home):
        assert load_settings() == HashSettings()

    def test_default_path_under_home(self, isolated_home):
        assert default_config_path() == isolated_home / ".config" / "merklehash" / "config.yaml"

    def test_reads_yaml(self, isolated_home):
        path = default_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("algorithm: sha3-512\nmax_workers: 4\ntimeout: 2.5\n")

        settings = load_settings()

        assert settings.algorithm == "sha3-512"
        assert settings.max_workers == 4
        assert settings.timeout == 2.5

    def test_explicit_path(self, isolated_home, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("chunk_size: 1024\n")

        assert load_settings(path).chunk_size == 1024

    def test_empty_file(self, isolated_home, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_settings(path) == HashSettings()

    def test_env_overrides_file(self, isolated_home, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("algorithm: md5\nmax_workers: 2\n")
        monkeypatch.setenv("MERKLEHASH_ALGORITHM", "sha1")
        monkeypatch.setenv("MERKLEHASH_MAX_WORKERS", "8")

        settings = load_settings(path)

        assert settings.algorithm == "sha1"
        assert settings.max_workers == 8

    def test_invalid_yaml(self, isolated_home, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("algorithm: [unclosed\n")

        with pytest.raises(ConfigError, match="Could not read config file"):
            load_settings(path)

    def test_non_mapping(self, isolated_home, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- sha256\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_settings(path)

    def test_invalid_value(self, isolated_home, monkeypatch):
        monkeypatch.setenv("MERKLEHASH_ALGORITHM", "crc32")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings()

    def test_overrides_applied_before_validation(self, isolated_home, tmp_path):
        """A bad file value replaced by an override is never validated."""
        path = tmp_path / "config.yaml"
        path.write_text("algorithm: crc32\nmax_workers: 2\n")

        settings = load_settings(path, overrides={"algorithm": "sha1", "max_workers": None})

        assert settings.algorithm == "sha1"
        assert settings.factory is hashlib.sha1
        assert settings.max_workers == 2

    def test_overrides_beat_env(self, isolated_home, monkeypatch):
        monkeypatch.setenv("MERKLEHASH_MAX_WORKERS", "8")

        assert load_settings(overrides={"max_workers": 3}).max_workers == 3
