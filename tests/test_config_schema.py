"""Tests for docsync_mcp_server.config_schema — Pydantic config models."""

import pytest
from pydantic import ValidationError

from docsync_mcp_server.config_schema import (
    GitHubConfig,
    UnifiedConfig,
    build_config,
    to_legacy_config,
)


def test_zero_config():
    unified = build_config({})
    assert unified == UnifiedConfig()
    assert unified.storage.data_dir == "data"
    assert unified.logging.level == "INFO"


def test_build_from_raw_sections():
    unified = build_config(
        {
            "github": {"owner": "octo", "repo": "notes", "base_path": "docs/"},
            "storage": {"data_dir": "/srv/docsync"},
            "logging": {"level": "DEBUG", "file": "/tmp/x.log"},
        }
    )
    assert unified.github.owner == "octo"
    assert unified.storage.data_dir == "/srv/docsync"
    assert unified.logging.file == "/tmp/x.log"


def test_timeout_bounds():
    with pytest.raises(ValidationError):
        GitHubConfig(timeout=0)
    with pytest.raises(ValidationError):
        GitHubConfig(timeout=601)


def test_models_are_frozen():
    config = GitHubConfig(owner="octo")
    with pytest.raises(ValidationError):
        config.owner = "other"


def test_fallbacks_drop_unset_values():
    flat = build_config({"github": {"owner": "octo"}}).fallbacks()
    assert flat["owner"] == "octo"
    assert "repo" not in flat
    assert "token" not in flat
    assert flat["data_dir"] == "data"
    assert flat["timeout"] == 30.0


def test_to_legacy_config_applies_overrides():
    unified = build_config(
        {
            "github": {"api_url": "https://yaml.example.com", "token": "t", "insecure": True},
            "storage": {"data_dir": "yaml-data"},
        }
    )

    config = to_legacy_config(
        unified, cli_overrides={"api_url": "https://cli.example.com"}
    )

    assert config.api_url == "https://cli.example.com"
    assert config.data_dir == "yaml-data"
    assert config.insecure is True
    assert config.token == "t"


def test_to_legacy_config_default_url():
    assert to_legacy_config(UnifiedConfig()).api_url == "https://api.github.com"
