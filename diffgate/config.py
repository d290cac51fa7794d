"""Configuration loading from YAML, env vars, and CLI defaults."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError

from diffgate.errors import ConfigurationError
from diffgate.file_filter import FileFilter, FileFilterConfig

DEFAULT_CONFIG_PATHS = [
    Path("diffgate.yaml"),
    Path.home() / ".diffgate" / "config.yaml",
]

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class LLMConfig(BaseModel):
    """Gemini endpoint and request settings."""
    model: str = "gemini-1.5-pro"
    api_base: str = DEFAULT_API_BASE
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    max_attempts: int = 3
    backoff_seconds: float = 0.6
    batch_pause_seconds: float = 0.4
    raw_output_fallback: bool = False


class Config(BaseModel):
    gemini_api_key: SecretStr = SecretStr("")
    diff_file: str = "diff.patch"
    output_dir: str = "."
    max_prompt_chars: int = 28000
    llm: LLMConfig = Field(default_factory=LLMConfig)
    file_filter: FileFilterConfig = Field(default_factory=FileFilterConfig)

    def require_api_key(self) -> str:
        key = self.gemini_api_key.get_secret_value().strip()
        if not key:
            raise ConfigurationError(
                "Gemini API key is required. Set GEMINI_API_KEY env var or config gemini_api_key."
            )
        return key


def load_config(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load config from YAML file, env vars, and caller overrides (in that priority)."""
    raw: dict[str, Any] = {}

    # 1. Load from YAML file
    paths_to_try = [Path(config_path)] if config_path else DEFAULT_CONFIG_PATHS
    for p in paths_to_try:
        if p.exists():
            with open(p) as f:
                raw = yaml.safe_load(f) or {}
            if not isinstance(raw, dict):
                raise ConfigurationError(f"Config file {p} must contain a mapping, got {type(raw).__name__}")
            break

    # 2. Env var overrides
    llm = raw.setdefault("llm", {}) or {}
    file_filter = raw.setdefault("file_filter", {}) or {}
    if key := os.environ.get("GEMINI_API_KEY"):
        raw["gemini_api_key"] = key
    if model := os.environ.get("GEMINI_MODEL"):
        llm["model"] = model
    if api_base := os.environ.get("GEMINI_API_BASE"):
        llm["api_base"] = api_base
    if diff_file := os.environ.get("DIFF_FILE"):
        raw["diff_file"] = diff_file
    if max_chars := os.environ.get("MAX_PROMPT_CHARS"):
        raw["max_prompt_chars"] = max_chars
    if allow := os.environ.get("FILE_ALLOWLIST_REGEX"):
        file_filter["allow_pattern"] = allow
    if deny := os.environ.get("FILE_DENYLIST_REGEX"):
        file_filter["deny_pattern"] = deny
    raw["llm"] = llm
    raw["file_filter"] = file_filter

    # 3. Caller overrides (CLI flags); "llm.model" style keys reach nested sections
    if overrides:
        for k, v in overrides.items():
            if v is None:
                continue
            if "." in k:
                section, field = k.split(".", 1)
                raw.setdefault(section, {})[field] = v
            else:
                raw[k] = v

    try:
        cfg = Config(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if cfg.max_prompt_chars <= 0:
        raise ConfigurationError(f"max_prompt_chars must be positive, got {cfg.max_prompt_chars}")
    # Bad filter regexes fail here, not mid-run
    FileFilter(cfg.file_filter)
    return cfg
