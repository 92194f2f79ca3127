"""Core redigir — one-function entry points over a lazily built default orchestrator.

    Text + type + options
      → Orchestrator (cache → local rules → LLM → fallback)
      → TransformationResult

Usage:
    from redigir import transform_text, evaluate_essay

    result = await transform_text("Isso é muito importante.", "synonyms", word_difficulty="medium")
    print(result.content, result.source)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import yaml
from nfo.decorators import log_call

from redigir.env_config import get_env_config
from redigir.llm_provider import LLMClient, build_default_client
from redigir.models import (
    ConversationContext,
    LLMProviderConfig,
    OptimizerConfig,
    TransformationRequest,
    TransformationResult,
    TransformationType,
)
from redigir.orchestrator import Orchestrator

logger = logging.getLogger("redigir")

_orchestrator: Orchestrator | None = None


# ============================================================
# Configuration
# ============================================================

def load_config(path: str | Path | None) -> OptimizerConfig:
    """Load OptimizerConfig from YAML. Missing file or sections fall back to defaults."""
    if path is None:
        return OptimizerConfig()
    path = Path(path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return OptimizerConfig()

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    known = {k: v for k, v in raw.items() if k in OptimizerConfig.model_fields}
    ignored = sorted(set(raw) - set(known))
    if ignored:
        logger.debug(f"Ignoring unknown config sections: {ignored}")
    return OptimizerConfig.model_validate(known)


def get_orchestrator(
    config_path: str | Path | None = None,
    llm_client: LLMClient | None = None,
) -> Orchestrator:
    """Get or build the process-wide default orchestrator.

    Without a config file, the LLM settings come from REDIGIR_* env vars. Without
    provider credentials the orchestrator runs with no LLM client and serves
    LLM-eligible requests from the fallback path.
    """
    global _orchestrator
    if _orchestrator is not None:
        return _orchestrator

    env = get_env_config()
    config = load_config(config_path or env.config_path)
    if not (config_path or env.config_path):
        config.llm = LLMProviderConfig(
            model=env.model,
            fallback=env.fallbacks,
            timeout=env.timeout,
            max_tokens=env.max_tokens,
        )
        config.llm_timeout = float(env.timeout)

    client = llm_client if llm_client is not None else build_default_client(config.llm, env)
    _orchestrator = Orchestrator(config=config, llm_client=client)
    logger.debug(f"Default orchestrator built (model={config.llm.model}, llm={'on' if client else 'off'})")
    return _orchestrator


def reset_orchestrator() -> None:
    """Drop the default orchestrator (and its cache). Mostly for tests."""
    global _orchestrator
    _orchestrator = None


# ============================================================
# 1-function API
# ============================================================

@log_call
async def transform_text(
    text: str,
    transformation_type: str | TransformationType,
    owner_id: str | None = None,
    conversation: ConversationContext | None = None,
    orchestrator: Orchestrator | None = None,
    **options: Any,
) -> TransformationResult:
    """Transform ``text`` with per-type ``options`` (e.g. word_difficulty="simple").

    Raises:
        TextValidationError: empty or over-length text.
    """
    ttype = TransformationType(transformation_type)
    request = TransformationRequest(
        text=text,
        type=ttype,
        config={"type": ttype.value, **options} if options else None,
        owner_id=owner_id,
        conversation=conversation,
    )
    return await (orchestrator or get_orchestrator()).transform(request)


def transform_text_sync(text: str, transformation_type: str | TransformationType, **kwargs: Any) -> TransformationResult:
    """Blocking wrapper around transform_text() for scripts and the CLI."""
    return asyncio.run(transform_text(text, transformation_type, **kwargs))


@log_call
async def evaluate_essay(
    essay: str,
    topic: str = "",
    exam_type: str = "ENEM",
    owner_id: str | None = None,
    orchestrator: Orchestrator | None = None,
) -> TransformationResult:
    """Score an essay on the five-competency rubric. ``result.evaluation`` holds the breakdown.

    Raises:
        TextValidationError: empty, over-length or too-short essay.
    """
    request = TransformationRequest(
        text=essay,
        type=TransformationType.ESSAY_EVALUATION,
        config={"type": TransformationType.ESSAY_EVALUATION.value, "topic": topic, "exam_type": exam_type},
        owner_id=owner_id,
    )
    return await (orchestrator or get_orchestrator()).evaluate(request)


def evaluate_essay_sync(essay: str, **kwargs: Any) -> TransformationResult:
    return asyncio.run(evaluate_essay(essay, **kwargs))
