"""PromptBuilder — maps (text, type, config) to a minimal instruction string.

Pure once constructed: templates are loaded in ``__init__`` and ``build`` is a
deterministic function of its arguments.

Usage:
    builder = PromptBuilder()
    prompt = builder.build("O tema é relevante.", TransformationType.CAUSAL_STRUCTURE,
                           StructureConfig(type="causal_structure", structure_sub_type="problema-causa"))
"""

from __future__ import annotations

from typing import Any

from redigir.lexicon import structure_connectives
from redigir.models import (
    STRUCTURAL_TYPES,
    EvaluationConfig,
    TransformationType,
    WordDifficulty,
    default_config_for,
)
from redigir.prompt_registry import PromptNotFoundError, PromptRegistry

DIFFICULTY_LABELS = {
    WordDifficulty.SIMPLE: "simples",
    WordDifficulty.MEDIUM: "intermediário",
    WordDifficulty.COMPLEX: "sofisticado",
}

_EXTRA_LABELS = (
    ("include_repertoire", "repertório sociocultural"),
    ("include_thesis", "tese"),
    ("include_arguments", "argumentos"),
    ("include_conclusion", "conclusão"),
)


class PromptBuilder:
    def __init__(self, registry: PromptRegistry | None = None):
        self.registry = registry or PromptRegistry()
        errors = self.registry.validate(required=[t.value for t in TransformationType])
        if errors:
            raise PromptNotFoundError(f"Prompt registry unusable: {'; '.join(errors)}")

    def settings(self, transformation_type: TransformationType) -> dict[str, Any]:
        """Per-prompt generation settings from the registry (``max_tokens``, ``temperature``)."""
        entry = self.registry.get_entry(TransformationType(transformation_type).value)
        return {"max_tokens": entry.max_tokens, "temperature": entry.temperature}

    def build(
        self,
        text: str,
        transformation_type: TransformationType,
        config: Any = None,
        context: str = "",
    ) -> str:
        ttype = TransformationType(transformation_type)
        config = config or default_config_for(ttype)
        variables: dict[str, Any] = {"text": text.strip(), "context": context.strip()}

        if ttype == TransformationType.FORMALITY:
            variables["level"] = config.formality_level
            variables["difficulty"] = DIFFICULTY_LABELS[WordDifficulty(config.word_difficulty)]
        elif ttype == TransformationType.SYNONYMS:
            variables["difficulty"] = DIFFICULTY_LABELS[WordDifficulty(config.word_difficulty)]
        elif ttype == TransformationType.ARGUMENTATIVE:
            variables["technique"] = config.technique
            variables["level"] = config.argumentative_level
            variables["extras"] = ", ".join(label for attr, label in _EXTRA_LABELS if getattr(config, attr))
        elif ttype in STRUCTURAL_TYPES:
            variables["fragment"] = self.structure_fragment(ttype, config)
        elif ttype == TransformationType.ESSAY_EVALUATION:
            variables["topic"] = config.topic
            variables["exam_type"] = config.exam_type

        return self.registry.get(ttype.value, **variables).strip()

    @staticmethod
    def structure_fragment(transformation_type: TransformationType, config: Any) -> str:
        """``conectivos: a, b, c | técnica: <sub-type>, intensidade: <n>%``"""
        sub_type = getattr(config, "structure_sub_type", None)
        connectives = structure_connectives(TransformationType(transformation_type).value, sub_type)
        technique = sub_type or "padrão"
        level = getattr(config, "argumentative_level", 50)
        return f"conectivos: {', '.join(connectives)} | técnica: {technique}, intensidade: {level}%"

    def build_evaluation(self, text: str, config: EvaluationConfig | None = None, context: str = "") -> str:
        return self.build(text, TransformationType.ESSAY_EVALUATION, config or EvaluationConfig(), context)
