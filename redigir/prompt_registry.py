"""PromptRegistry — loads prompt templates from YAML and renders them with Jinja2.

Templates are defined in redigir/configs/prompts.yaml, one compact template per
transformation type. Rendering is strict: a missing variable is an error, not
an empty string.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import yaml
from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateSyntaxError, UndefinedError

logger = logging.getLogger("redigir.prompt_registry")

_DEFAULT_PROMPTS_PATH = Path(__file__).parent / "configs" / "prompts.yaml"


class PromptNotFoundError(KeyError):
    """Raised when a prompt name is not found in the registry."""


class PromptRenderError(ValueError):
    """Raised when a prompt template fails to render."""


class PromptEntry:
    """Single prompt entry with template, max_tokens, and temperature."""

    __slots__ = ("name", "template", "max_tokens", "temperature")

    def __init__(self, name: str, template: str, max_tokens: int = 512, temperature: float = 0.4):
        self.name = name
        self.template = template
        self.max_tokens = max_tokens
        self.temperature = temperature

    def __repr__(self) -> str:
        return f"PromptEntry(name={self.name!r}, max_tokens={self.max_tokens}, temperature={self.temperature})"


class PromptRegistry:
    """Loads prompts from YAML once, renders them on demand.

    Usage:
        registry = PromptRegistry()
        prompt = registry.get("synonyms", text="...", difficulty="intermediário", context="")
    """

    def __init__(self, prompts_path: Path | str | None = None):
        self._path = Path(prompts_path) if prompts_path else _DEFAULT_PROMPTS_PATH
        self._entries: dict[str, PromptEntry] = {}
        self._jinja_env = Environment(loader=BaseLoader(), undefined=StrictUndefined, autoescape=False)
        self._load()

    def _load(self) -> None:
        """Load prompts from the YAML file."""
        if not self._path.exists():
            logger.warning(f"Prompts file not found: {self._path}, using empty registry")
            return

        with open(self._path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        for name, data in (raw.get("prompts") or {}).items():
            if isinstance(data, dict):
                self._entries[name] = PromptEntry(
                    name=name,
                    template=data.get("template", ""),
                    max_tokens=data.get("max_tokens", 512),
                    temperature=data.get("temperature", 0.4),
                )
            elif isinstance(data, str):
                self._entries[name] = PromptEntry(name=name, template=data)

        logger.debug(f"Loaded {len(self._entries)} prompts from {self._path}")

    def get(self, prompt_name: str, **variables: Any) -> str:
        """Render a prompt by name.

        Raises:
            PromptNotFoundError: If the prompt name doesn't exist.
            PromptRenderError: If Jinja2 rendering fails.
        """
        return self._render(self.get_entry(prompt_name).template, variables)

    def get_entry(self, name: str) -> PromptEntry:
        entry = self._entries.get(name)
        if entry is None:
            raise PromptNotFoundError(f"Prompt '{name}' not found in registry. Available: {self.list_prompts()}")
        return entry

    def list_prompts(self) -> list[str]:
        return sorted(self._entries.keys())

    def validate(self, required: Iterable[str] = ()) -> list[str]:
        """Check required names exist and every template parses. Returns error messages."""
        errors: list[str] = []
        missing = set(required) - set(self._entries)
        if missing:
            errors.append(f"Missing required prompts: {sorted(missing)}")

        for name, entry in self._entries.items():
            if not entry.template.strip():
                errors.append(f"Prompt '{name}' has empty template")
            try:
                self._jinja_env.parse(entry.template)
            except TemplateSyntaxError as e:
                errors.append(f"Prompt '{name}' has invalid Jinja2 syntax: {e}")

        return errors

    def _render(self, template_str: str, variables: dict[str, Any]) -> str:
        try:
            template = self._jinja_env.from_string(template_str)
            return template.render(**variables)
        except UndefinedError as e:
            raise PromptRenderError(f"Missing template variable: {e}") from e
        except TemplateSyntaxError as e:
            raise PromptRenderError(f"Invalid template syntax: {e}") from e
