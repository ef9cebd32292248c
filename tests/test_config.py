"""
Tests for pfdauploader.config and pfdauploader.auth modules.

Tests configuration handling including:
- Base URL construction
- Config file load/save (YAML, legacy JSON)
- Key resolution order (explicit, environment, config file)
- Remembering a key
"""

from __future__ import annotations

import json
import stat

import pytest

from pfdauploader.auth import CredentialManager
from pfdauploader.config import (
    DEFAULT_SERVER,
    ClientSettings,
    build_base_url,
    load_config_file,
    load_effective_settings,
    save_config_file,
)
from pfdauploader.exceptions import InputError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the real environment and any .env file out of these tests."""
    # setenv first so teardown also removes a key loaded from a .env file.
    monkeypatch.setenv("PFDA_KEY", "")
    monkeypatch.delenv("PFDA_KEY")
    monkeypatch.chdir(tmp_path)


class TestBuildBaseUrl:
    """Tests for build_base_url."""

    @pytest.mark.parametrize(
        ("server", "expected"),
        [
            (None, f"https://{DEFAULT_SERVER}"),
            ("", f"https://{DEFAULT_SERVER}"),
            ("pfda-staging.example.com", "https://pfda-staging.example.com"),
            ("https://pfda.test/", "https://pfda.test"),
            ("http://localhost:3000", "http://localhost:3000"),
        ],
    )
    def test_build(self, server, expected):
        """Test scheme defaulting and trailing slash removal."""
        assert build_base_url(server) == expected

    def test_api_url(self):
        """Test API route URLs."""
        settings = ClientSettings(base_url="https://pfda.test", key="k")
        assert settings.api_url("create_file") == "https://pfda.test/api/create_file"
        assert settings.api_url("/close_file") == "https://pfda.test/api/close_file"


class TestConfigFile:
    """Tests for loading and saving the config file."""

    def test_missing_file_is_empty(self, tmp_test_dir):
        """Test that a missing config file loads as an empty dict."""
        assert load_config_file(tmp_test_dir / "nope") == {}

    def test_empty_file_is_empty(self, tmp_test_dir):
        """Test that an empty config file loads as an empty dict."""
        path = tmp_test_dir / "config"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_legacy_json(self, tmp_test_dir):
        """Test that JSON written by older versions still loads."""
        path = tmp_test_dir / "config"
        path.write_text(json.dumps({"Key": "old-key"}))

        assert load_config_file(path) == {"Key": "old-key"}

    def test_yaml(self, tmp_test_dir):
        """Test a YAML config file."""
        path = tmp_test_dir / "config"
        path.write_text("key: abc\nserver: pfda.test\n")

        assert load_config_file(path) == {"key": "abc", "server": "pfda.test"}

    def test_invalid_yaml(self, tmp_test_dir):
        """Test that unparseable files raise InputError."""
        path = tmp_test_dir / "config"
        path.write_text("key: [unclosed\n")

        with pytest.raises(InputError, match="Failed to parse"):
            load_config_file(path)

    def test_non_mapping(self, tmp_test_dir):
        """Test that a config file must hold a mapping."""
        path = tmp_test_dir / "config"
        path.write_text("- a\n- b\n")

        with pytest.raises(InputError, match="mapping"):
            load_config_file(path)

    def test_save_is_private(self, tmp_test_dir):
        """Test that the saved file round-trips and is owner-only."""
        path = tmp_test_dir / "sub" / "config"
        save_config_file(path, {"key": "secret"})

        assert load_config_file(path) == {"key": "secret"}
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestCredentialManager:
    """Tests for key resolution."""

    def test_explicit_wins(self, tmp_test_dir, monkeypatch):
        """Test that an explicit key beats environment and file."""
        monkeypatch.setenv("PFDA_KEY", "env-key")
        path = tmp_test_dir / "config"
        save_config_file(path, {"key": "file-key"})

        assert CredentialManager(path).get_key(" cli-key ") == "cli-key"

    def test_env_beats_file(self, tmp_test_dir, monkeypatch):
        """Test that PFDA_KEY beats the config file."""
        monkeypatch.setenv("PFDA_KEY", "env-key")
        path = tmp_test_dir / "config"
        save_config_file(path, {"key": "file-key"})

        assert CredentialManager(path).get_key() == "env-key"

    def test_dotenv_file(self, tmp_test_dir):
        """Test that PFDA_KEY is picked up from a .env file in the cwd."""
        (tmp_test_dir / ".env").write_text("PFDA_KEY=dotenv-key\n")

        assert CredentialManager(tmp_test_dir / "config").get_key() == "dotenv-key"

    @pytest.mark.parametrize("field", ["key", "Key"])
    def test_file_key(self, field, tmp_test_dir):
        """Test that both current and legacy file fields are read."""
        path = tmp_test_dir / "config"
        save_config_file(path, {field: "file-key"})

        assert CredentialManager(path).get_key() == "file-key"

    def test_missing_key(self, tmp_test_dir):
        """Test the error when no key can be found."""
        path = tmp_test_dir / "config"

        with pytest.raises(InputError, match=r"Please provide it as \[--key <KEY>\]"):
            CredentialManager(path).get_key()

    def test_remember_key(self, tmp_test_dir):
        """Test that remembering a key replaces the legacy field and keeps others."""
        path = tmp_test_dir / "config"
        save_config_file(path, {"Key": "old", "server": "pfda.test"})

        assert CredentialManager(path).remember_key("new") == path
        assert load_config_file(path) == {"key": "new", "server": "pfda.test"}


class TestLoadEffectiveSettings:
    """Tests for load_effective_settings."""

    def test_defaults_from_file(self, tmp_test_dir):
        """Test that key and server come from the config file."""
        path = tmp_test_dir / "config"
        save_config_file(path, {"key": "file-key", "server": "pfda.test"})

        settings = load_effective_settings(config_path=path)

        assert settings.key == "file-key"
        assert settings.base_url == "https://pfda.test"
        assert settings.verify_tls is True

    def test_arguments_win(self, tmp_test_dir):
        """Test that explicit arguments override the config file."""
        path = tmp_test_dir / "config"
        save_config_file(path, {"key": "file-key", "server": "pfda.test"})

        settings = load_effective_settings(
            key="cli-key",
            server="http://localhost:3000/",
            skip_verify=True,
            config_path=path,
            timeout=5,
        )

        assert settings == ClientSettings(
            base_url="http://localhost:3000",
            key="cli-key",
            verify_tls=False,
            timeout=5,
        )

    def test_default_server(self, tmp_test_dir):
        """Test that the public server is used when none is configured."""
        settings = load_effective_settings(key="k", config_path=tmp_test_dir / "none")
        assert settings.base_url == "https://precision.fda.gov"

    def test_no_key(self, tmp_test_dir):
        """Test that a missing key is an InputError."""
        with pytest.raises(InputError):
            load_effective_settings(config_path=tmp_test_dir / "none")
