"""Tests for the config loader module."""

import logging

import pytest
import yaml

from movement_proxy.config_loader import (
    _substitute_env_vars,
    load_config,
    resolve_env_path,
    resolve_log_level,
    resolve_server_address,
)
from movement_proxy.core import parse_upstream
from movement_proxy.logging import setup_logging


def _write_config(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for loading configuration from YAML files."""

    def test_loads_simple_config(self, tmp_path):
        """Test loading a simple configuration."""
        path = _write_config(
            tmp_path / "config.yaml",
            {"upstream": {"url": "http://test.local/api/chat"}, "model": {"id": "m"}},
        )
        result = load_config(str(path))
        assert result["upstream"]["url"] == "http://test.local/api/chat"
        assert parse_upstream(result).model_id == "m"

    def test_raises_error_for_missing_config(self):
        """Test that error is raised for missing config file."""
        with pytest.raises(RuntimeError, match="Config file not found"):
            load_config("/nonexistent/path/config.yaml")

    def test_missing_default_config_falls_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MOVEMENT_PROXY_CONFIG", raising=False)
        monkeypatch.setattr(
            "movement_proxy.config_loader.DEFAULT_CONFIG_PATH",
            str(tmp_path / "configs" / "config_default.yaml"),
        )
        config = load_config()
        assert config == {}
        upstream = parse_upstream(config)
        assert upstream.url == "https://www.movementlabs.ai/api/chat"
        assert upstream.model_id == "movement"

    def test_missing_config_named_by_env_var_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MOVEMENT_PROXY_CONFIG", str(tmp_path / "absent.yaml"))
        with pytest.raises(RuntimeError, match="Config file not found"):
            load_config()

    def test_rejects_non_mapping_document(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(RuntimeError, match="must contain a mapping"):
            load_config(str(path))

    def test_loads_empty_config(self, tmp_path):
        """Test loading an empty configuration."""
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == {}

    def test_uses_env_var_for_default_path(self, tmp_path, monkeypatch):
        path = _write_config(tmp_path / "custom.yaml", {"model": {"id": "from-env"}})
        monkeypatch.setenv("MOVEMENT_PROXY_CONFIG", str(path))
        assert load_config()["model"]["id"] == "from-env"

    def test_default_config_file_is_loadable(self, monkeypatch):
        monkeypatch.delenv("MOVEMENT_PROXY_CONFIG", raising=False)
        config = load_config(substitute_env=False)
        upstream = parse_upstream(config)
        assert upstream.url == "https://www.movementlabs.ai/api/chat"
        assert upstream.model_id == "movement"

    def test_substitutes_environment_variables(self, tmp_path, monkeypatch):
        """Test that ${VAR} and $VAR placeholders are substituted."""
        monkeypatch.setenv("TEST_UPSTREAM_HOST", "upstream.test")
        monkeypatch.setenv("SIMPLE_VAR", "simple-value")
        path = _write_config(
            tmp_path / "config.yaml",
            {
                "upstream": {
                    "url": "https://${TEST_UPSTREAM_HOST}/api/chat",
                    "headers": {"User-Agent": "$SIMPLE_VAR"},
                }
            },
        )
        result = load_config(str(path))
        assert result["upstream"]["url"] == "https://upstream.test/api/chat"
        assert result["upstream"]["headers"]["User-Agent"] == "simple-value"

    def test_env_file_takes_priority(self, tmp_path, monkeypatch):
        monkeypatch.setenv("UPSTREAM_URL", "http://from-process.test")
        path = _write_config(tmp_path / "config_default.yaml", {"upstream": {"url": "${UPSTREAM_URL}"}})
        (tmp_path / ".env_default").write_text("UPSTREAM_URL=http://from-dotenv.test\n", encoding="utf-8")

        result = load_config(str(path))

        assert result["upstream"]["url"] == "http://from-dotenv.test"

    def test_preserves_undefined_env_vars(self, tmp_path, monkeypatch):
        """Test that undefined environment variables are preserved."""
        monkeypatch.delenv("UNDEFINED_VAR", raising=False)
        path = _write_config(tmp_path / "config.yaml", {"upstream": {"url": "${UNDEFINED_VAR}"}})
        assert load_config(str(path))["upstream"]["url"] == "${UNDEFINED_VAR}"

    def test_substitution_can_be_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SOME_VAR", "value")
        path = _write_config(tmp_path / "config.yaml", {"model": {"id": "${SOME_VAR}"}})
        assert load_config(str(path), substitute_env=False)["model"]["id"] == "${SOME_VAR}"


class TestResolveEnvPath:
    def test_suffix_from_config_name(self, tmp_path):
        assert resolve_env_path(tmp_path / "config_local.yaml") == tmp_path / ".env_local"

    def test_plain_env_for_other_names(self, tmp_path):
        assert resolve_env_path(tmp_path / "proxy.yaml") == tmp_path / ".env"


class TestSubstituteEnvVars:
    """Tests for environment variable substitution function."""

    def test_substitutes_multiple_vars(self, monkeypatch):
        monkeypatch.setenv("VAR1", "value1")
        monkeypatch.setenv("VAR2", "value2")
        assert _substitute_env_vars("${VAR1} and ${VAR2}") == "value1 and value2"

    def test_prefers_env_values(self, monkeypatch):
        monkeypatch.setenv("KEY", "process")
        assert _substitute_env_vars({"k": ["$KEY"]}, {"KEY": "file"}) == {"k": ["file"]}

    def test_passes_through_non_string_values(self):
        assert _substitute_env_vars(123) == 123
        assert _substitute_env_vars(None) is None
        assert _substitute_env_vars([1, 2, 3]) == [1, 2, 3]


class TestServerSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MOVEMENT_PROXY_HOST", raising=False)
        monkeypatch.delenv("MOVEMENT_PROXY_PORT", raising=False)
        assert resolve_server_address({}) == ("127.0.0.1", 8000)

    def test_reads_config(self, monkeypatch):
        monkeypatch.delenv("MOVEMENT_PROXY_HOST", raising=False)
        monkeypatch.delenv("MOVEMENT_PROXY_PORT", raising=False)
        config = {"proxy_settings": {"server": {"host": "0.0.0.0", "port": "9000"}}}
        assert resolve_server_address(config) == ("0.0.0.0", 9000)

    def test_environment_wins(self, monkeypatch):
        monkeypatch.setenv("MOVEMENT_PROXY_HOST", "10.0.0.1")
        monkeypatch.setenv("MOVEMENT_PROXY_PORT", "7000")
        config = {"proxy_settings": {"server": {"host": "0.0.0.0", "port": 9000}}}
        assert resolve_server_address(config) == ("10.0.0.1", 7000)

    def test_invalid_env_port_falls_back_to_config(self, monkeypatch):
        monkeypatch.delenv("MOVEMENT_PROXY_HOST", raising=False)
        monkeypatch.setenv("MOVEMENT_PROXY_PORT", "not-a-port")
        config = {"proxy_settings": {"server": {"port": 9100}}}
        assert resolve_server_address(config) == ("127.0.0.1", 9100)

    def test_log_level(self):
        assert resolve_log_level({}) == "INFO"
        assert resolve_log_level({"proxy_settings": {"logging": {"level": "debug"}}}) == "debug"


class TestSetupLogging:
    def test_accepts_level_names(self):
        logger = setup_logging("debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        setup_logging()

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("chatty").level == logging.INFO
