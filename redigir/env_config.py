"""Environment configuration — LiteLLM-compatible .env loading.

Reads standard LiteLLM provider keys (GEMINI_API_KEY, OPENAI_API_KEY, ...)
plus redigir-specific vars (REDIGIR_MODEL, REDIGIR_FALLBACKS, REDIGIR_TIMEOUT,
REDIGIR_MAX_TOKENS, REDIGIR_LOG_LEVEL, REDIGIR_CONFIG).

Usage:
    from redigir.env_config import get_env_config

    cfg = get_env_config()
    print(cfg.model)        # "gemini/gemini-1.5-flash"
    print(cfg.providers["gemini"]["has_key"])
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("redigir.env_config")

DEFAULT_MODEL = "gemini/gemini-1.5-flash"

# LiteLLM-compatible provider env vars
PROVIDER_KEY_MAP: dict[str, str] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "groq": "GROQ_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "ollama": "",
}

# Bare model names LiteLLM resolves without a provider prefix
_BARE_MODEL_PREFIXES: dict[str, str] = {
    "gpt-": "openai",
    "o1": "openai",
    "claude": "anthropic",
    "gemini": "gemini",
}


@dataclass
class EnvConfig:
    """Resolved environment configuration."""
    model: str = DEFAULT_MODEL
    fallbacks: list[str] = field(default_factory=list)
    timeout: int = 30
    max_tokens: int = 1024
    log_level: str = "info"
    config_path: str | None = None

    # Providers (resolved)
    providers: dict[str, dict[str, Any]] = field(default_factory=dict)


def provider_for_model(model: str) -> str:
    """LiteLLM provider name for a model string ("gemini/x" -> "gemini", "gpt-4o" -> "openai")."""
    if "/" in model:
        return model.split("/", 1)[0].lower()
    for prefix, provider in _BARE_MODEL_PREFIXES.items():
        if model.lower().startswith(prefix):
            return provider
    return "openai"


def load_dotenv_if_available(path: str | Path | None = None) -> None:
    """Load .env file if it exists. Plain KEY=VALUE parsing; existing env vars win."""
    candidates = [path] if path else [".env", Path.home() / ".redigir" / ".env"]

    for candidate in candidates:
        if candidate and Path(candidate).is_file():
            logger.debug(f"Loading .env from {candidate}")
            with open(candidate, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip().strip("'\"")
                    if key and value and key not in os.environ:
                        os.environ[key] = value
            return


def get_env_config(dotenv_path: str | Path | None = None) -> EnvConfig:
    """Read all config from environment variables (LiteLLM-compatible).

    Priority: CLI args > env vars > .env file > defaults
    """
    load_dotenv_if_available(dotenv_path)

    providers: dict[str, dict[str, Any]] = {}
    for name, key_var in PROVIDER_KEY_MAP.items():
        key = os.getenv(key_var, "") if key_var else ""
        providers[name] = {"has_key": bool(key), "key_var": key_var}

    fallback_str = os.getenv("REDIGIR_FALLBACKS", "")
    fallbacks = [f.strip() for f in fallback_str.split(",") if f.strip()] if fallback_str else []

    return EnvConfig(
        model=os.getenv("REDIGIR_MODEL", DEFAULT_MODEL),
        fallbacks=fallbacks,
        timeout=int(os.getenv("REDIGIR_TIMEOUT", "30")),
        max_tokens=int(os.getenv("REDIGIR_MAX_TOKENS", "1024")),
        log_level=os.getenv("REDIGIR_LOG_LEVEL", "info"),
        config_path=os.getenv("REDIGIR_CONFIG", None) or None,
        providers=providers,
    )


def check_providers(env: EnvConfig | None = None) -> dict[str, dict[str, Any]]:
    """Which providers are configured. Returns provider_name -> {status, detail}."""
    cfg = env or get_env_config()
    results: dict[str, dict[str, Any]] = {}

    for name, info in cfg.providers.items():
        if name == "ollama":
            results[name] = {"status": "configured", "detail": "no key required"}
        elif info["has_key"]:
            results[name] = {"status": "configured", "detail": f"{info['key_var']} set"}
        else:
            results[name] = {"status": "no_key", "detail": f"{info['key_var']} not set (skip)"}

    return results
