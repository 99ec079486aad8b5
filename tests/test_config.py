"""Tests for configuration loading."""

import pytest

from revsync.config import Config, load_config
from revsync.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove REVSYNC_ variables set in the outer environment."""
    for key in ("HASH_ALGORITHM", "DB_PATH", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(f"REVSYNC_{key}", raising=False)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self):
        config = load_config()

        assert config == Config()
        assert config.hashing.algorithm == "sha1"
        assert config.store.db_path == "~/.revsync/changes.db"
        assert config.logging.level == "info"
        assert config.logging.json is False

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == Config()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "revsync.yaml"
        path.write_text(
            "hashing:\n"
            "  algorithm: sha256\n"
            "store:\n"
            "  db_path: /tmp/changes.db\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  json: true\n"
        )

        config = load_config(path)

        assert config.hashing.algorithm == "sha256"
        assert config.store.db_path == "/tmp/changes.db"
        assert config.logging.level == "debug"
        assert config.logging.json is True

    def test_partial_section(self, tmp_path):
        path = tmp_path / "revsync.yaml"
        path.write_text("logging:\n  json: true\n")

        config = load_config(path)

        assert config.logging.level == "info"
        assert config.logging.json is True
        assert config.hashing.algorithm == "sha1"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "revsync.yaml"
        path.write_text("")

        assert load_config(path) == Config()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "revsync.yaml"
        path.write_text("hashing: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping_section(self, tmp_path):
        path = tmp_path / "revsync.yaml"
        path.write_text("store: just-a-string\n")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "revsync.yaml"
        path.write_text("hashing:\n  algorithm: sha256\n")
        monkeypatch.setenv("REVSYNC_HASH_ALGORITHM", "sha512")
        monkeypatch.setenv("REVSYNC_DB_PATH", "/data/changes.db")
        monkeypatch.setenv("REVSYNC_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("REVSYNC_LOG_JSON", "yes")

        config = load_config(path)

        assert config.hashing.algorithm == "sha512"
        assert config.store.db_path == "/data/changes.db"
        assert config.logging.level == "warning"
        assert config.logging.json is True

    def test_build_hasher(self):
        config = Config()
        config.hashing.algorithm = "sha256"

        assert config.hashing.build_hasher().algorithm == "sha256"

    def test_build_hasher_unknown_algorithm(self):
        config = Config()
        config.hashing.algorithm = "nope"

        with pytest.raises(ConfigError):
            config.hashing.build_hasher()

    @pytest.mark.parametrize("raw,expected", [('"false"', False), ('"no"', False), ('"yes"', True), ("true", True)])
    def test_yaml_json_flag(self, tmp_path, raw, expected):
        config_file = tmp_path / "revsync.yaml"
        config_file.write_text(f"logging:\n  json: {raw}\n")

        assert load_config(config_file).logging.json is expected

    def test_null_algorithm(self, tmp_path):
        config_file = tmp_path / "revsync.yaml"
        config_file.write_text("hashing:\n  algorithm: null\n")

        with pytest.raises(ConfigError, match="must be a string"):
            load_config(config_file).hashing.build_hasher()
