"""Data models for redigir — all requests, results and configs are Pydantic v2 validated.

Per-type options form a closed discriminated union keyed by ``type``, so each
handler only ever sees the fields that belong to its transformation.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator


# ============================================================
# Enums
# ============================================================

class TransformationType(str, enum.Enum):
    FORMALITY = "formality"
    ARGUMENTATIVE = "argumentative"
    SYNONYMS = "synonyms"
    ANTONYMS = "antonyms"
    CAUSAL_STRUCTURE = "causal_structure"
    COMPARATIVE_STRUCTURE = "comparative_structure"
    OPPOSITION_STRUCTURE = "opposition_structure"
    CONNECTIVES = "connectives"
    NORMALIZATION = "normalization"
    BASIC_STRUCTURE = "basic_structure"
    ESSAY_EVALUATION = "essay_evaluation"


STRUCTURAL_TYPES = frozenset({
    TransformationType.CAUSAL_STRUCTURE,
    TransformationType.COMPARATIVE_STRUCTURE,
    TransformationType.OPPOSITION_STRUCTURE,
})

# Types whose output is expected to be a single dissertative paragraph
PARAGRAPH_TYPES = STRUCTURAL_TYPES | {TransformationType.ARGUMENTATIVE, TransformationType.BASIC_STRUCTURE}


class WordDifficulty(str, enum.Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class SourceTag(str, enum.Enum):
    """Which pipeline stage produced a result."""
    CACHE = "cache"
    LOCAL = "local"
    LLM = "llm"
    FALLBACK = "fallback"


class TurnRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


# ============================================================
# Per-type option records (tagged union)
# ============================================================

class FormalityConfig(BaseModel):
    type: Literal["formality"] = "formality"
    formality_level: int = Field(default=50, ge=0, le=100)
    word_difficulty: WordDifficulty = WordDifficulty.MEDIUM


class ArgumentativeConfig(BaseModel):
    type: Literal["argumentative"] = "argumentative"
    technique: str = "topico-frasal"
    argumentative_level: int = Field(default=50, ge=0, le=100)
    include_repertoire: bool = False
    include_thesis: bool = False
    include_arguments: bool = False
    include_conclusion: bool = False


class SynonymConfig(BaseModel):
    type: Literal["synonyms"] = "synonyms"
    word_difficulty: WordDifficulty = WordDifficulty.MEDIUM


class AntonymConfig(BaseModel):
    type: Literal["antonyms"] = "antonyms"


class StructureConfig(BaseModel):
    """Causal, comparative and oppositional rewrites share one option record."""
    type: Literal["causal_structure", "comparative_structure", "opposition_structure"]
    structure_sub_type: str | None = None
    argumentative_level: int = Field(default=50, ge=0, le=100)


class ConnectiveConfig(BaseModel):
    type: Literal["connectives"] = "connectives"


class NormalizationConfig(BaseModel):
    type: Literal["normalization"] = "normalization"


class BasicStructureConfig(BaseModel):
    type: Literal["basic_structure"] = "basic_structure"


class EvaluationConfig(BaseModel):
    type: Literal["essay_evaluation"] = "essay_evaluation"
    topic: str = ""
    exam_type: str = "ENEM"


TransformationConfig = Annotated[
    Union[
        FormalityConfig,
        ArgumentativeConfig,
        SynonymConfig,
        AntonymConfig,
        StructureConfig,
        ConnectiveConfig,
        NormalizationConfig,
        BasicStructureConfig,
        EvaluationConfig,
    ],
    Field(discriminator="type"),
]

_CONFIG_CLASSES: dict[TransformationType, type[BaseModel]] = {
    TransformationType.FORMALITY: FormalityConfig,
    TransformationType.ARGUMENTATIVE: ArgumentativeConfig,
    TransformationType.SYNONYMS: SynonymConfig,
    TransformationType.ANTONYMS: AntonymConfig,
    TransformationType.CAUSAL_STRUCTURE: StructureConfig,
    TransformationType.COMPARATIVE_STRUCTURE: StructureConfig,
    TransformationType.OPPOSITION_STRUCTURE: StructureConfig,
    TransformationType.CONNECTIVES: ConnectiveConfig,
    TransformationType.NORMALIZATION: NormalizationConfig,
    TransformationType.BASIC_STRUCTURE: BasicStructureConfig,
    TransformationType.ESSAY_EVALUATION: EvaluationConfig,
}


def default_config_for(transformation_type: TransformationType | str) -> Any:
    """Build the default option record for a transformation type."""
    ttype = TransformationType(transformation_type)
    return _CONFIG_CLASSES[ttype](type=ttype.value)


# ============================================================
# Conversation context
# ============================================================

class Turn(BaseModel):
    role: TurnRole
    content: str
    timestamp: float = 0.0


class ConversationContext(BaseModel):
    """Owned by the caller for the life of an editing/chat session."""
    turns: list[Turn] = Field(default_factory=list)
    rolling_summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    # Number of leading turns already folded into rolling_summary
    last_compression_marker: int = 0


class CompressedStructure(BaseModel):
    title: str = "Estrutura personalizada"
    type: str = "dissertativa"
    main_points: list[str] = Field(default_factory=list, max_length=4)
    difficulty: str = "medio"
    exam_type: str = "enem"
    theme: str = "geral"


# ============================================================
# Requests / results
# ============================================================

class TransformationRequest(BaseModel):
    text: str
    type: TransformationType
    config: TransformationConfig | None = None
    owner_id: str | None = None
    conversation: ConversationContext | None = None

    @model_validator(mode="after")
    def _resolve_config(self) -> "TransformationRequest":
        if self.config is None:
            self.config = default_config_for(self.type)
        elif self.config.type != self.type.value:
            raise ValueError(
                f"config of type '{self.config.type}' does not match transformation '{self.type.value}'"
            )
        return self


class CompetencyScore(BaseModel):
    name: str
    score: int = 0
    max_score: int = 200
    feedback: str = ""


class EssayEvaluation(BaseModel):
    total_score: int = 0
    max_total: int = 1000
    competencies: list[CompetencyScore] = Field(default_factory=list)
    feedback: str = ""
    # Total as stated by the LLM, before reconciliation
    reported_total: int | None = None
    reconciled: bool = False


class TransformationResult(BaseModel):
    content: str
    source: SourceTag
    type: TransformationType
    token_estimate: int | None = None
    changes: int = 0
    cache_tier: str | None = None
    evaluation: EssayEvaluation | None = None


# ============================================================
# Configuration
# ============================================================

class LLMProviderConfig(BaseModel):
    """Configuration for the LLM backend (any LiteLLM model string)."""
    model: str = "gemini/gemini-1.5-flash"
    fallback: list[str] = Field(default_factory=list)
    max_retries: int = 2
    timeout: int = 30
    max_tokens: int = 1024
    temperature: float = 0.7


class TierPolicy(BaseModel):
    ttl_seconds: float = Field(gt=0)
    max_size: int = Field(default=1000, gt=0)


class CacheConfig(BaseModel):
    session: TierPolicy = Field(default_factory=lambda: TierPolicy(ttl_seconds=24 * 3600))
    semantic: TierPolicy = Field(default_factory=lambda: TierPolicy(ttl_seconds=7 * 24 * 3600))
    template: TierPolicy = Field(default_factory=lambda: TierPolicy(ttl_seconds=30 * 24 * 3600))
    result_set: TierPolicy = Field(default_factory=lambda: TierPolicy(ttl_seconds=24 * 3600))
    keep_ratio: float = Field(default=0.8, gt=0, le=1)


class CompressionConfig(BaseModel):
    threshold: int = Field(default=3, ge=1)
    keep_recent: int = Field(default=2, ge=1)
    max_summary_tokens: int = 150
    max_context_tokens: int = 400
    max_turn_tokens: int = 100
    words_per_token: float = 0.75

    @model_validator(mode="after")
    def _budget_fits_recent_turns(self) -> "CompressionConfig":
        # Each recent line costs at most max_turn_tokens plus its role label
        needed = self.keep_recent * (self.max_turn_tokens + 2)
        if self.max_context_tokens < needed:
            raise ValueError(
                f"max_context_tokens={self.max_context_tokens} cannot hold "
                f"{self.keep_recent} recent turns (needs >= {needed})"
            )
        return self


class InputLimits(BaseModel):
    max_text_chars: int = 2000
    max_essay_chars: int = 8000
    min_essay_lines: int = 10
    chars_per_line: int = 25


class OptimizerConfig(BaseModel):
    """Top-level config — loadable from YAML via redigir.core.load_config()."""
    llm: LLMProviderConfig = Field(default_factory=LLMProviderConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    compression: CompressionConfig = Field(default_factory=CompressionConfig)
    limits: InputLimits = Field(default_factory=InputLimits)
    llm_timeout: float = Field(default=30.0, gt=0)
    min_output_ratio: float = Field(default=0.2, ge=0, le=1)
    enable_local_rules: bool = True
