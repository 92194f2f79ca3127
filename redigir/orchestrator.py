"""Orchestrator — sequences cache, local rules, LLM and fallback for every request.

Transformation flow:
    VALIDATE → CACHE_LOOKUP → LOCAL_ATTEMPT → LLM_PATH → FALLBACK

Essay evaluation flow:
    VALIDATE → CACHE_LOOKUP → LLM_PATH → FALLBACK

Only input validation errors reach the caller. Anything that goes wrong on the
LLM path (no client, exception, timeout, unusable output) is absorbed into a
deterministic fallback result, which is never cached so a later request gets
another chance at a healthy LLM.

Usage:
    orchestrator = Orchestrator(llm_client=LLMProvider(config.llm))
    result = await orchestrator.transform(TransformationRequest(text="...", type="synonyms"))
    result.source   # SourceTag.LOCAL
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Any

from nfo.decorators import log_call

from redigir.cache import CacheHit, IntelligentCache
from redigir.context_compressor import ContextCompressor
from redigir.errors import MalformedUpstreamResponseError, TextValidationError, UpstreamUnavailableError
from redigir.evaluation import EssayEvaluator, summarize
from redigir.fallback import FallbackGenerator
from redigir.heuristics import estimate_tokens
from redigir.llm_provider import LLMClient
from redigir.local_rules import LocalRuleEngine
from redigir.models import (
    EssayEvaluation,
    OptimizerConfig,
    SourceTag,
    TransformationRequest,
    TransformationResult,
    TransformationType,
)
from redigir.prompt_builder import PromptBuilder
from redigir.sanitizer import sanitize_output
from redigir.telemetry import OptimizationTelemetry

logger = logging.getLogger("redigir.orchestrator")


class Orchestrator:
    def __init__(
        self,
        config: OptimizerConfig | None = None,
        cache: IntelligentCache | None = None,
        llm_client: LLMClient | None = None,
        rule_engine: LocalRuleEngine | None = None,
        compressor: ContextCompressor | None = None,
        prompt_builder: PromptBuilder | None = None,
        telemetry: OptimizationTelemetry | None = None,
        fallback: FallbackGenerator | None = None,
        evaluator: EssayEvaluator | None = None,
    ):
        self.config = config or OptimizerConfig()
        self.cache = cache or IntelligentCache(self.config.cache)
        self.llm_client = llm_client
        self.rule_engine = rule_engine or LocalRuleEngine()
        self.compressor = compressor or ContextCompressor(self.config.compression)
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.telemetry = telemetry or OptimizationTelemetry()
        self.fallback = fallback or FallbackGenerator(self.rule_engine)
        self.evaluator = evaluator or EssayEvaluator()

    # ============================================================
    # Validation
    # ============================================================

    def validate(self, request: TransformationRequest) -> str:
        """Reject empty or over-length text. Returns the stripped text."""
        text = request.text.strip()
        if not text:
            raise TextValidationError("Texto vazio: informe um texto para transformar.")
        limit = self.config.limits.max_text_chars
        if len(text) > limit:
            raise TextValidationError(
                f"Texto muito longo: {len(text)} caracteres (máximo {limit}).", length=len(text), limit=limit
            )
        return text

    def validate_essay(self, request: TransformationRequest) -> str:
        """Reject empty, over-length or too-short essays. Returns the stripped essay."""
        limits = self.config.limits
        text = request.text.strip()
        if not text:
            raise TextValidationError("Redação vazia: envie o texto para correção.")
        if len(text) > limits.max_essay_chars:
            raise TextValidationError(
                f"Redação muito longa: {len(text)} caracteres (máximo {limits.max_essay_chars}).",
                length=len(text),
                limit=limits.max_essay_chars,
            )
        if self.estimate_lines(text) < limits.min_essay_lines:
            raise TextValidationError(
                f"Redação muito curta: mínimo de {limits.min_essay_lines} linhas.",
                length=len(text),
                limit=limits.min_essay_lines,
            )
        return text

    def estimate_lines(self, text: str) -> int:
        """Handwritten-line estimate: explicit lines or chars / chars_per_line, whichever is larger."""
        explicit = len([line for line in text.split("\n") if line.strip()])
        return max(explicit, math.ceil(len(text) / self.config.limits.chars_per_line))

    # ============================================================
    # Transformation flow
    # ============================================================

    @log_call
    async def transform(self, request: TransformationRequest) -> TransformationResult:
        if request.type == TransformationType.ESSAY_EVALUATION:
            return await self.evaluate(request)

        started = time.perf_counter()
        text = self.validate(request)

        hit = self.cache.lookup(text, request.type, request.config, request.owner_id)
        if hit is not None:
            result = self._from_cache(hit)
            return self._served(result, text, started)

        if self.config.enable_local_rules:
            attempt = self.rule_engine.attempt(text, request.type, request.config)
            if attempt.handled and attempt.result:
                result = TransformationResult(
                    content=attempt.result,
                    source=SourceTag.LOCAL,
                    type=request.type,
                    token_estimate=estimate_tokens(attempt.result),
                    changes=attempt.changes,
                )
                self.cache.store(text, request.type, request.config, result, request.owner_id)
                return self._served(result, text, started)

        try:
            result = await self._llm_transform(text, request)
        except Exception as e:
            logger.warning(f"LLM path failed for {request.type.value}, using fallback: {e}")
            content = self.fallback.generate(text, request.type, request.config)
            result = TransformationResult(
                content=content,
                source=SourceTag.FALLBACK,
                type=request.type,
                token_estimate=estimate_tokens(content),
            )
            return self._served(result, text, started)

        self.cache.store(text, request.type, request.config, result, request.owner_id)
        return self._served(result, text, started)

    async def _llm_transform(self, text: str, request: TransformationRequest) -> TransformationResult:
        context = self._conversation_context(request)
        prompt = self.prompt_builder.build(text, request.type, request.config, context)
        raw, tokens = await self._generate(prompt, **self.prompt_builder.settings(request.type))
        content = sanitize_output(raw, request.type, text, self.config.min_output_ratio)
        return TransformationResult(
            content=content,
            source=SourceTag.LLM,
            type=request.type,
            token_estimate=tokens or estimate_tokens(prompt) + estimate_tokens(content),
        )

    # ============================================================
    # Evaluation flow
    # ============================================================

    @log_call
    async def evaluate(self, request: TransformationRequest) -> TransformationResult:
        if request.type != TransformationType.ESSAY_EVALUATION:
            raise ValueError(f"evaluate() needs an essay_evaluation request, got {request.type.value}")

        started = time.perf_counter()
        text = self.validate_essay(request)

        hit = self.cache.lookup(text, request.type, request.config, request.owner_id)
        if hit is not None:
            result = self._from_cache(hit)
            return self._served(result, text, started)

        try:
            result = await self._llm_evaluate(text, request)
        except Exception as e:
            logger.warning(f"LLM evaluation failed, using heuristic scores: {e}")
            evaluation = self.fallback.evaluate(text)
            result = self._evaluation_result(evaluation, SourceTag.FALLBACK, 0)
            return self._served(result, text, started)

        self.cache.store(text, request.type, request.config, result, request.owner_id)
        return self._served(result, text, started)

    async def _llm_evaluate(self, text: str, request: TransformationRequest) -> TransformationResult:
        context = self._conversation_context(request)
        prompt = self.prompt_builder.build_evaluation(text, request.config, context)
        settings = self.prompt_builder.settings(TransformationType.ESSAY_EVALUATION)
        raw, tokens = await self._generate(prompt, **settings)
        evaluation = self.evaluator.parse(raw)
        return self._evaluation_result(evaluation, SourceTag.LLM, tokens or estimate_tokens(prompt) + estimate_tokens(raw))

    @staticmethod
    def _evaluation_result(evaluation: EssayEvaluation, source: SourceTag, tokens: int) -> TransformationResult:
        return TransformationResult(
            content=summarize(evaluation),
            source=source,
            type=TransformationType.ESSAY_EVALUATION,
            token_estimate=tokens,
            evaluation=evaluation,
        )

    # ============================================================
    # Shared helpers
    # ============================================================

    @staticmethod
    def _from_cache(hit: CacheHit) -> TransformationResult:
        # Cache hits spend no tokens; the avoided cost is counted in tokens_saved
        return hit.payload.model_copy(
            update={"source": SourceTag.CACHE, "cache_tier": hit.tier, "token_estimate": 0}
        )

    def _conversation_context(self, request: TransformationRequest) -> str:
        if request.conversation is None:
            return ""
        return self.compressor.compress_conversation(request.conversation)

    async def _generate(self, prompt: str, **settings: Any) -> tuple[str, int]:
        """Call the LLM client under the configured timeout. Returns (raw text, usage tokens)."""
        if self.llm_client is None:
            raise UpstreamUnavailableError("no LLM client configured")
        try:
            generation: Any = await asyncio.wait_for(
                self.llm_client.generate(prompt, **settings), timeout=self.config.llm_timeout
            )
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailableError(f"LLM call timed out after {self.config.llm_timeout}s") from e

        raw = generation if isinstance(generation, str) else getattr(generation, "text", None)
        if not isinstance(raw, str):
            raise MalformedUpstreamResponseError(f"LLM client returned {type(generation).__name__}, not text")
        tokens = (getattr(generation, "prompt_tokens", 0) or 0) + (getattr(generation, "completion_tokens", 0) or 0)
        return raw, tokens

    def _served(self, result: TransformationResult, text: str, started: float) -> TransformationResult:
        elapsed_ms = (time.perf_counter() - started) * 1000
        # Cache and local results avoid a prompt plus a completion of similar size
        saved = 2 * estimate_tokens(text) if result.source in (SourceTag.CACHE, SourceTag.LOCAL) else 0
        logger.info(
            f"{result.type.value} served by {result.source.value} "
            f"(~{result.token_estimate or 0} tokens, {elapsed_ms:.1f} ms)"
        )
        self.telemetry.record(
            operation=result.type.value,
            source=result.source,
            token_estimate=result.token_estimate or 0,
            tokens_saved=saved,
            response_ms=elapsed_ms,
        )
        return result
