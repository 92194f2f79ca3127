"""Tests for LiteLLM-compatible .env configuration and default client selection."""

from __future__ import annotations

import os

import pytest

from redigir.env_config import (
    DEFAULT_MODEL,
    PROVIDER_KEY_MAP,
    EnvConfig,
    check_providers,
    get_env_config,
    load_dotenv_if_available,
    provider_for_model,
)
from redigir.llm_provider import LLMProvider, build_default_client
from redigir.models import LLMProviderConfig

_REDIGIR_VARS = ["REDIGIR_MODEL", "REDIGIR_FALLBACKS", "REDIGIR_TIMEOUT", "REDIGIR_MAX_TOKENS", "REDIGIR_LOG_LEVEL", "REDIGIR_CONFIG"]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No redigir vars, no provider keys, and no .env picked up from cwd or home."""
    for key in _REDIGIR_VARS + [v for v in PROVIDER_KEY_MAP.values() if v]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return monkeypatch


class TestEnvConfigDefaults:
    def test_default_config(self):
        cfg = EnvConfig()
        assert cfg.model == "gemini/gemini-1.5-flash"
        assert cfg.fallbacks == []
        assert cfg.timeout == 30
        assert cfg.max_tokens == 1024
        assert cfg.config_path is None

    def test_provider_key_map_has_all_providers(self):
        for provider in ("gemini", "openai", "anthropic", "groq", "mistral", "ollama"):
            assert provider in PROVIDER_KEY_MAP
        assert PROVIDER_KEY_MAP["gemini"] == "GEMINI_API_KEY"


class TestLoadDotenv:
    def test_load_env_file(self, tmp_path, clean_env):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "REDIGIR_MODEL=openai/gpt-4o-mini\n"
            "# comentário\n"
            "\n"
            "REDIGIR_FALLBACKS=groq/llama3-8b-8192\n"
        )
        load_dotenv_if_available(str(env_file))
        assert os.environ.get("REDIGIR_MODEL") == "openai/gpt-4o-mini"
        assert os.environ.get("REDIGIR_FALLBACKS") == "groq/llama3-8b-8192"

    def test_does_not_override_existing(self, tmp_path, clean_env):
        env_file = tmp_path / ".env"
        env_file.write_text("REDIGIR_MODEL=from_file\n")
        clean_env.setenv("REDIGIR_MODEL", "from_env")
        load_dotenv_if_available(str(env_file))
        assert os.environ["REDIGIR_MODEL"] == "from_env"

    def test_strips_quotes(self, tmp_path, clean_env):
        env_file = tmp_path / ".env"
        env_file.write_text("REDIGIR_LOG_LEVEL=\"debug\"\nREDIGIR_CONFIG='conf.yaml'\n")
        load_dotenv_if_available(str(env_file))
        assert os.environ["REDIGIR_LOG_LEVEL"] == "debug"
        assert os.environ["REDIGIR_CONFIG"] == "conf.yaml"

    def test_missing_file_is_noop(self, tmp_path, clean_env):
        load_dotenv_if_available(str(tmp_path / "nope.env"))
        assert "REDIGIR_MODEL" not in os.environ


class TestGetEnvConfig:
    def test_defaults(self, clean_env):
        cfg = get_env_config()
        assert cfg.model == DEFAULT_MODEL
        assert cfg.providers["gemini"]["has_key"] is False

    def test_reads_vars(self, clean_env):
        clean_env.setenv("REDIGIR_MODEL", "anthropic/claude-3-haiku")
        clean_env.setenv("REDIGIR_FALLBACKS", "gpt-4o-mini, groq/llama3-8b-8192 ,")
        clean_env.setenv("REDIGIR_TIMEOUT", "12")
        clean_env.setenv("REDIGIR_MAX_TOKENS", "256")
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        cfg = get_env_config()
        assert cfg.model == "anthropic/claude-3-haiku"
        assert cfg.fallbacks == ["gpt-4o-mini", "groq/llama3-8b-8192"]
        assert cfg.timeout == 12
        assert cfg.max_tokens == 256
        assert cfg.providers["anthropic"]["has_key"] is True

    def test_check_providers(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "g-test")
        status = check_providers(get_env_config())
        assert status["gemini"]["status"] == "configured"
        assert status["openai"]["status"] == "no_key"
        assert status["ollama"]["status"] == "configured"


class TestProviderForModel:
    @pytest.mark.parametrize("model,provider", [
        ("gemini/gemini-1.5-flash", "gemini"),
        ("ollama/qwen2.5:3b", "ollama"),
        ("gpt-4o-mini", "openai"),
        ("claude-3-haiku-20240307", "anthropic"),
        ("desconhecido", "openai"),
    ])
    def test_provider(self, model, provider):
        assert provider_for_model(model) == provider


class TestBuildDefaultClient:
    def test_none_without_credentials(self, clean_env):
        assert build_default_client(LLMProviderConfig(), get_env_config()) is None

    def test_provider_with_key(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "g-test")
        client = build_default_client(LLMProviderConfig(), get_env_config())
        assert isinstance(client, LLMProvider)

    def test_ollama_needs_no_key(self, clean_env):
        client = build_default_client(LLMProviderConfig(model="ollama/qwen2.5:3b"), get_env_config())
        assert isinstance(client, LLMProvider)
