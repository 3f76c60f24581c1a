"""Tests for layered configuration loading."""

import pytest

from prompt_enhancer.config import load_config
from prompt_enhancer.core.errors import ErrorKind, ServiceError


def write_toml(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestLoadConfig:
    """Tests for load_config precedence and parsing."""

    def test_defaults_without_sources(self):
        """No files or env vars gives defaults with no warnings."""
        config = load_config()
        assert config.api_key == ""
        assert config.max_retries == 3
        assert config.startup_warnings == ()

    def test_env_api_key(self, monkeypatch):
        """ANTHROPIC_API_KEY supplies the key."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env-key-123456")
        assert load_config().api_key == "sk-ant-env-key-123456"

    def test_env_numbers_and_strings(self, monkeypatch):
        """Numeric and string env vars are parsed."""
        monkeypatch.setenv("PROMPT_ENHANCER_MAX_RETRIES", "5")
        monkeypatch.setenv("PROMPT_ENHANCER_TIMEOUT_MS", " 1500 ")
        monkeypatch.setenv("PROMPT_ENHANCER_MODEL", "claude-test")
        monkeypatch.setenv("PROMPT_ENHANCER_API_VERSION", "2024-01-01")
        monkeypatch.setenv("PROMPT_ENHANCER_LOG_LEVEL", "debug")
        monkeypatch.setenv("PROMPT_ENHANCER_STRUCTURED_LOGGING", "off")
        config = load_config()
        assert config.max_retries == 5
        assert config.timeout_ms == 1500
        assert config.model == "claude-test"
        assert config.api_version == "2024-01-01"
        assert config.log_level == "DEBUG"
        assert config.structured_logging is False

    def test_invalid_values_become_warnings(self, monkeypatch):
        """Unparseable values are ignored and recorded."""
        monkeypatch.setenv("PROMPT_ENHANCER_MAX_TOKENS", "lots")
        monkeypatch.setenv("PROMPT_ENHANCER_LOG_LEVEL", "chatty")
        monkeypatch.setenv("PROMPT_ENHANCER_STRUCTURED_LOGGING", "maybe")
        config = load_config()
        assert config.max_tokens == 4000
        assert config.log_level == "INFO"
        assert config.structured_logging is True
        assert len(config.startup_warnings) == 3
        assert any("PROMPT_ENHANCER_MAX_TOKENS" in w for w in config.startup_warnings)

    def test_project_toml(self, tmp_path):
        """./prompt-enhancer.toml is read."""
        write_toml(
            tmp_path / "prompt-enhancer.toml",
            '[enhancer]\nmax_tokens = 2000\nmodel = "claude-project"\n'
            '[logging]\nlevel = "warning"\nstructured = false\n',
        )
        config = load_config()
        assert config.max_tokens == 2000
        assert config.model == "claude-project"
        assert config.log_level == "WARNING"
        assert config.structured_logging is False

    def test_layer_precedence(self, tmp_path, monkeypatch):
        """Project overrides home, home overrides XDG, env and overrides win."""
        home = tmp_path / "home"
        write_toml(
            home / ".config" / "prompt-enhancer" / "config.toml",
            "[enhancer]\nmax_retries = 2\ntimeout_ms = 100\nmax_tokens = 10\n",
        )
        write_toml(home / ".prompt-enhancer.toml", "[enhancer]\ntimeout_ms = 200\nmax_tokens = 20\n")
        write_toml(tmp_path / "prompt-enhancer.toml", "[enhancer]\nmax_tokens = 30\nmodel = \"m\"\n")
        monkeypatch.setenv("PROMPT_ENHANCER_MODEL", "env-model")

        config = load_config(retry_delay_ms=50, max_retry_delay_ms=None)

        assert config.max_retries == 2
        assert config.timeout_ms == 200
        assert config.max_tokens == 30
        assert config.model == "env-model"
        assert config.retry_delay_ms == 50
        assert config.max_retry_delay_ms == 30_000

    def test_explicit_file_replaces_lookup(self, tmp_path):
        """An explicit file is the only TOML source."""
        write_toml(tmp_path / "prompt-enhancer.toml", "[enhancer]\nmax_tokens = 30\n")
        explicit = write_toml(tmp_path / "custom.toml", "[enhancer]\nmax_retries = 7\n")
        config = load_config(explicit)
        assert config.max_retries == 7
        assert config.max_tokens == 4000

    def test_config_file_env_var(self, tmp_path, monkeypatch):
        """PROMPT_ENHANCER_CONFIG_FILE names the explicit file."""
        explicit = write_toml(tmp_path / "env.toml", "[enhancer]\nmax_retries = 4\n")
        monkeypatch.setenv("PROMPT_ENHANCER_CONFIG_FILE", str(explicit))
        assert load_config().max_retries == 4

    def test_missing_explicit_file_warns(self, tmp_path):
        """A missing explicit file is a warning, not an error."""
        config = load_config(tmp_path / "nope.toml")
        assert any("not found" in w for w in config.startup_warnings)

    def test_malformed_toml_warns(self, tmp_path):
        """A TOML syntax error is a warning, not an error."""
        broken = write_toml(tmp_path / "broken.toml", "[enhancer\nmax_tokens = ")
        config = load_config(broken)
        assert config.max_tokens == 4000
        assert any("Error loading config file" in w for w in config.startup_warnings)

    def test_invalid_toml_value_warns(self, tmp_path):
        """Non-numeric TOML values are skipped."""
        path = write_toml(tmp_path / "bad.toml", '[enhancer]\ntimeout_ms = "soon"\n')
        config = load_config(path)
        assert config.timeout_ms == 30_000
        assert config.startup_warnings

    def test_unknown_override_rejected(self):
        """Overrides must name ServiceConfig fields."""
        with pytest.raises(ServiceError) as exc_info:
            load_config(retries=3)
        assert exc_info.value.kind == ErrorKind.CONFIGURATION
        assert "retries" in exc_info.value.message

    def test_result_not_validated(self):
        """Loading does not reject a missing key."""
        assert load_config().validation_errors()
