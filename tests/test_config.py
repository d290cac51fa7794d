"""Tests for configuration loading."""

from pathlib import Path

import pytest

from diffgate.config import Config, LLMConfig, load_config
from diffgate.errors import ConfigurationError

ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_API_BASE",
    "DIFF_FILE",
    "MAX_PROMPT_CHARS",
    "FILE_ALLOWLIST_REGEX",
    "FILE_DENYLIST_REGEX",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestConfigDefaults:
    def test_default_values(self) -> None:
        cfg = Config()
        assert cfg.diff_file == "diff.patch"
        assert cfg.output_dir == "."
        assert cfg.max_prompt_chars == 28000
        assert cfg.gemini_api_key.get_secret_value() == ""

    def test_llm_defaults(self) -> None:
        cfg = Config()
        assert cfg.llm.model == "gemini-1.5-pro"
        assert cfg.llm.connect_timeout == 10.0
        assert cfg.llm.read_timeout == 60.0
        assert cfg.llm.max_attempts == 3
        assert cfg.llm.backoff_seconds == 0.6
        assert cfg.llm.batch_pause_seconds == 0.4
        assert cfg.llm.raw_output_fallback is False

    def test_file_filter_defaults(self) -> None:
        cfg = Config()
        assert cfg.file_filter.max_file_chars == 120_000
        assert "java" in cfg.file_filter.allow_pattern
        assert "vendor" in cfg.file_filter.deny_pattern

    def test_secret_str_masking(self) -> None:
        cfg = Config(gemini_api_key="AIza-secret123")
        assert "AIza-secret123" not in repr(cfg)
        assert "AIza-secret123" not in str(cfg)
        assert cfg.gemini_api_key.get_secret_value() == "AIza-secret123"


class TestRequireApiKey:
    def test_missing_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            Config().require_api_key()

    def test_blank_key_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            Config(gemini_api_key="   ").require_api_key()

    def test_key_returned(self) -> None:
        assert Config(gemini_api_key="abc").require_api_key() == "abc"


class TestLoadConfig:
    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "diff_file: changes.patch\n"
            "max_prompt_chars: 5000\n"
            "llm:\n"
            "  model: gemini-1.5-flash\n"
            "  raw_output_fallback: true\n"
            "file_filter:\n"
            "  max_file_chars: 100\n"
        )
        cfg = load_config(config_path=str(yaml_path))
        assert cfg.diff_file == "changes.patch"
        assert cfg.max_prompt_chars == 5000
        assert cfg.llm.model == "gemini-1.5-flash"
        assert cfg.llm.raw_output_fallback is True
        assert cfg.file_filter.max_file_chars == 100

    def test_env_var_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")
        monkeypatch.setenv("DIFF_FILE", "pr.diff")
        monkeypatch.setenv("MAX_PROMPT_CHARS", "1234")
        monkeypatch.setenv("FILE_ALLOWLIST_REGEX", r"\.py$")
        monkeypatch.setenv("FILE_DENYLIST_REGEX", r"^migrations/")
        cfg = load_config(config_path="/nonexistent/path.yaml")
        assert cfg.gemini_api_key.get_secret_value() == "test-key"
        assert cfg.llm.model == "gemini-2.0-flash"
        assert cfg.diff_file == "pr.diff"
        assert cfg.max_prompt_chars == 1234
        assert cfg.file_filter.allow_pattern == r"\.py$"
        assert cfg.file_filter.deny_pattern == r"^migrations/"

    def test_env_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("llm:\n  model: from-yaml\n")
        monkeypatch.setenv("GEMINI_MODEL", "from-env")
        cfg = load_config(config_path=str(yaml_path))
        assert cfg.llm.model == "from-env"

    def test_cli_overrides_take_priority(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("diff_file: yaml.patch\nmax_prompt_chars: 3000\n")
        monkeypatch.setenv("GEMINI_MODEL", "from-env")
        cfg = load_config(
            config_path=str(yaml_path),
            overrides={"diff_file": "cli.patch", "max_prompt_chars": 7000, "llm.model": "from-cli"},
        )
        assert cfg.diff_file == "cli.patch"
        assert cfg.max_prompt_chars == 7000
        assert cfg.llm.model == "from-cli"

    def test_none_overrides_ignored(self) -> None:
        cfg = load_config(
            config_path="/nonexistent/path.yaml",
            overrides={"diff_file": None, "llm.model": None},
        )
        assert cfg.diff_file == "diff.patch"
        assert cfg.llm.model == "gemini-1.5-pro"

    def test_empty_yaml(self, tmp_path: Path) -> None:
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("")
        cfg = load_config(config_path=str(yaml_path))
        assert cfg.max_prompt_chars == 28000

    @pytest.mark.parametrize("content", ["- a\n- b\n", "just a string\n", "42\n"])
    def test_non_mapping_yaml_rejected(self, tmp_path: Path, content: str) -> None:
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(content)
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_path=str(yaml_path))

    def test_missing_yaml_uses_defaults(self) -> None:
        cfg = load_config(config_path="/nonexistent/path.yaml")
        assert cfg.diff_file == "diff.patch"
        assert isinstance(cfg.llm, LLMConfig)

    def test_non_numeric_budget_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PROMPT_CHARS", "lots")
        with pytest.raises(ConfigurationError):
            load_config(config_path="/nonexistent/path.yaml")

    def test_non_positive_budget_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="max_prompt_chars"):
            load_config(config_path="/nonexistent/path.yaml", overrides={"max_prompt_chars": 0})

    def test_bad_filter_regex_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FILE_DENYLIST_REGEX", "(unclosed")
        with pytest.raises(ConfigurationError, match="pattern"):
            load_config(config_path="/nonexistent/path.yaml")
