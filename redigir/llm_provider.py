"""LLMProvider — LiteLLM-backed text generation with retry/fallback.

The orchestrator only depends on the ``LLMClient`` protocol (``generate``), so
tests and embedding applications can pass any object with that coroutine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from redigir.env_config import EnvConfig, provider_for_model
from redigir.errors import UpstreamUnavailableError
from redigir.models import LLMProviderConfig

logger = logging.getLogger("redigir.llm_provider")


@dataclass
class LLMGeneration:
    """Raw LLM text plus usage metadata."""
    text: str
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0


@runtime_checkable
class LLMClient(Protocol):
    async def generate(self, prompt: str, **settings: Any) -> LLMGeneration: ...


class LLMProvider:
    """LiteLLM caller with per-model retries and a fallback model list.

    Usage:
        provider = LLMProvider(LLMProviderConfig(model="gemini/gemini-1.5-flash", fallback=["gpt-4o-mini"]))
        generation = await provider.generate("Reescreva ...")
    """

    def __init__(self, config: LLMProviderConfig | None = None):
        self.config = config or LLMProviderConfig()

    async def generate(self, prompt: str, **kwargs: Any) -> LLMGeneration:
        """Send ``prompt`` as a single user message.

        ``kwargs`` override the configured completion parameters per call
        (e.g. a prompt's own ``max_tokens``/``temperature``).

        Raises:
            UpstreamUnavailableError: every model failed on every attempt.
        """
        import litellm

        messages = [{"role": "user", "content": prompt}]
        params = {
            "max_tokens": self.config.max_tokens,
            "timeout": self.config.timeout,
            "temperature": self.config.temperature,
            **kwargs,
        }
        models_to_try = [self.config.model] + [
            m for m in self.config.fallback if m != self.config.model
        ]

        last_error: Exception | None = None

        for model in models_to_try:
            for attempt in range(self.config.max_retries):
                try:
                    resp = await litellm.acompletion(
                        model=model,
                        messages=messages,
                        **params,
                    )
                    content = resp.choices[0].message.content or ""
                    usage = getattr(resp, "usage", None)

                    logger.debug(f"LLM response from {model} (attempt {attempt + 1}): {content[:100]}...")
                    return LLMGeneration(
                        text=content,
                        model=getattr(resp, "model", None) or model,
                        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                    )

                except Exception as e:
                    last_error = e
                    logger.warning(f"Attempt {attempt + 1} with {model} failed: {e}")

        raise UpstreamUnavailableError(
            f"All models failed after retries. Last error: {last_error}"
        )


def build_default_client(config: LLMProviderConfig, env: EnvConfig) -> LLMProvider | None:
    """An LLMProvider when the configured model's provider has credentials, else None."""
    provider = provider_for_model(config.model)
    info = env.providers.get(provider)
    if provider == "ollama" or (info and info["has_key"]):
        return LLMProvider(config)
    logger.info(f"No credentials for provider '{provider}' ({config.model}); LLM path disabled")
    return None
