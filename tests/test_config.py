"""Tests for docsync_mcp_server.config — env-var config loading and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This tests the server
bootstrap path: validate_config() and load_config().
"""

import logging
import os

import pytest

from docsync_mcp_server.config import Config, load_config, validate_config

_ENV_KEYS = (
    "DOCSYNC_API_URL",
    "DOCSYNC_DATA_DIR",
    "DOCSYNC_TIMEOUT",
    "DOCSYNC_INSECURE",
    "DOCSYNC_DEBUG",
    "GITHUB_OWNER",
    "GITHUB_REPO",
    "GITHUB_PATH",
    "GITHUB_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_defaults_are_valid(self):
        validate_config(Config())

    def test_trailing_slash_stripped(self):
        config = Config(api_url="https://github.example.com/api/v3/")
        validate_config(config)
        assert config.api_url == "https://github.example.com/api/v3"

    def test_invalid_scheme(self):
        with pytest.raises(ValueError, match="must start with http:// or https://"):
            validate_config(Config(api_url="ftp://example.com"))

    def test_missing_hostname(self):
        with pytest.raises(ValueError, match="hostname"):
            validate_config(Config(api_url="https://"))

    @pytest.mark.parametrize("timeout", [0, -1, 601])
    def test_timeout_range(self, timeout):
        with pytest.raises(ValueError, match="timeout"):
            validate_config(Config(timeout=timeout))

    def test_empty_data_dir(self):
        with pytest.raises(ValueError, match="Data directory"):
            validate_config(Config(data_dir="  "))

    def test_insecure_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            validate_config(Config(insecure=True))
        assert "SSL verification disabled" in caplog.text


class TestConfigProperties:
    def test_database_path(self):
        assert Config(data_dir="/var/docsync").database_path == os.path.join(
            "/var/docsync", "documents.db"
        )

    def test_has_binding_allows_root_base_path(self):
        assert Config(owner="o", repo="r", token="t").has_binding()
        assert not Config(owner="o", repo="r").has_binding()


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config.api_url == "https://api.github.com"
        assert config.data_dir == "data"
        assert config.timeout == 30.0
        assert not config.insecure
        assert not config.has_binding()

    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("DOCSYNC_API_URL", "https://env.example.com")
        config = load_config(
            yaml_fallbacks={"api_url": "https://yaml.example.com", "data_dir": "yaml-data"}
        )
        assert config.api_url == "https://env.example.com"
        assert config.data_dir == "yaml-data"

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("DOCSYNC_DATA_DIR", "env-data")
        config = load_config(data_dir="cli-data")
        assert config.data_dir == "cli-data"

    @pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("no", False)])
    def test_bool_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("DOCSYNC_INSECURE", value)
        assert load_config().insecure is expected

    def test_env_false_beats_yaml_true(self, monkeypatch):
        monkeypatch.setenv("DOCSYNC_INSECURE", "false")
        assert not load_config(yaml_fallbacks={"insecure": True}).insecure

    def test_cli_flag_beats_env(self, monkeypatch):
        monkeypatch.setenv("DOCSYNC_DEBUG", "false")
        assert load_config(debug=True).debug

    def test_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("DOCSYNC_TIMEOUT", "12.5")
        assert load_config().timeout == 12.5

    def test_bad_timeout_env(self, monkeypatch):
        monkeypatch.setenv("DOCSYNC_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="DOCSYNC_TIMEOUT"):
            load_config()

    def test_binding_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_OWNER", "octo")
        monkeypatch.setenv("GITHUB_REPO", "notes")
        monkeypatch.setenv("GITHUB_PATH", "docs")
        monkeypatch.setenv("GITHUB_TOKEN", "t0ken")
        config = load_config()
        assert (config.owner, config.repo, config.base_path, config.token) == (
            "octo",
            "notes",
            "docs",
            "t0ken",
        )
        assert config.has_binding()

    def test_binding_from_yaml(self):
        config = load_config(
            yaml_fallbacks={"owner": "octo", "repo": "notes", "token": "y"}
        )
        assert config.has_binding()
