"""redigir — request-optimization pipeline for LLM-assisted Portuguese essay writing.

Cache first, deterministic local rules second, a compact LLM prompt third and a
rule-based fallback last, so the writing app never sees a hard failure.
"""

__version__ = "0.1.0"

from redigir.cache import CacheEntry, CacheHit, IntelligentCache, semantic_hash
from redigir.context_compressor import ContextCompressor
from redigir.core import (
    evaluate_essay,
    evaluate_essay_sync,
    get_orchestrator,
    load_config,
    reset_orchestrator,
    transform_text,
    transform_text_sync,
)
from redigir.errors import (
    JSONRepairError,
    MalformedUpstreamResponseError,
    RedigirError,
    TextValidationError,
    UpstreamUnavailableError,
)
from redigir.evaluation import EssayEvaluator
from redigir.fallback import FallbackGenerator
from redigir.json_repair import ParseResult, repair_and_parse
from redigir.llm_provider import LLMClient, LLMGeneration, LLMProvider
from redigir.local_rules import LocalAttempt, LocalRuleEngine
from redigir.models import (
    CompressedStructure,
    ConversationContext,
    EssayEvaluation,
    OptimizerConfig,
    SourceTag,
    TransformationRequest,
    TransformationResult,
    TransformationType,
    Turn,
    WordDifficulty,
)
from redigir.orchestrator import Orchestrator
from redigir.prompt_builder import PromptBuilder
from redigir.telemetry import OptimizationTelemetry

__all__ = [
    # 1-function API
    "transform_text",
    "transform_text_sync",
    "evaluate_essay",
    "evaluate_essay_sync",
    "get_orchestrator",
    "reset_orchestrator",
    "load_config",
    # Pipeline
    "Orchestrator",
    "IntelligentCache",
    "CacheEntry",
    "CacheHit",
    "semantic_hash",
    "LocalRuleEngine",
    "LocalAttempt",
    "ContextCompressor",
    "PromptBuilder",
    "FallbackGenerator",
    "EssayEvaluator",
    "OptimizationTelemetry",
    "repair_and_parse",
    "ParseResult",
    # LLM
    "LLMClient",
    "LLMGeneration",
    "LLMProvider",
    # Models
    "TransformationType",
    "TransformationRequest",
    "TransformationResult",
    "SourceTag",
    "WordDifficulty",
    "ConversationContext",
    "Turn",
    "CompressedStructure",
    "EssayEvaluation",
    "OptimizerConfig",
    # Errors
    "RedigirError",
    "TextValidationError",
    "UpstreamUnavailableError",
    "MalformedUpstreamResponseError",
    "JSONRepairError",
]
