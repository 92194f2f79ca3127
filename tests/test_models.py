"""Tests for redigir models — defaults, tagged per-type options, config validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from redigir.models import (
    AntonymConfig,
    ArgumentativeConfig,
    CompressedStructure,
    EvaluationConfig,
    FormalityConfig,
    OptimizerConfig,
    StructureConfig,
    SynonymConfig,
    TransformationRequest,
    TransformationResult,
    TransformationType,
    SourceTag,
    WordDifficulty,
    default_config_for,
)


class TestModelDefaults:
    def test_optimizer_config_defaults(self):
        cfg = OptimizerConfig()
        assert cfg.llm.model == "gemini/gemini-1.5-flash"
        assert cfg.llm.max_retries == 2
        assert cfg.cache.session.ttl_seconds == 24 * 3600
        assert cfg.cache.semantic.ttl_seconds == 7 * 24 * 3600
        assert cfg.cache.template.ttl_seconds == 30 * 24 * 3600
        assert cfg.cache.keep_ratio == 0.8
        assert cfg.compression.max_context_tokens == 400
        assert cfg.limits.max_text_chars == 2000
        assert cfg.limits.max_essay_chars == 8000
        assert cfg.limits.min_essay_lines == 10
        assert cfg.enable_local_rules is True

    def test_result_defaults(self):
        result = TransformationResult(content="x", source=SourceTag.LOCAL, type=TransformationType.SYNONYMS)
        assert result.changes == 0
        assert result.cache_tier is None
        assert result.evaluation is None

    def test_compressed_structure_caps_points(self):
        with pytest.raises(ValidationError):
            CompressedStructure(main_points=["a", "b", "c", "d", "e"])


class TestDefaultConfig:
    @pytest.mark.parametrize("ttype", [t for t in TransformationType])
    def test_type_tag_matches(self, ttype):
        assert default_config_for(ttype).type == ttype.value

    def test_specific_defaults(self):
        assert default_config_for("formality").formality_level == 50
        assert default_config_for("synonyms").word_difficulty == WordDifficulty.MEDIUM
        assert default_config_for("argumentative").technique == "topico-frasal"
        assert default_config_for("essay_evaluation").exam_type == "ENEM"
        assert default_config_for("causal_structure").structure_sub_type is None


class TestTransformationRequest:
    def test_missing_config_filled(self):
        request = TransformationRequest(text="Texto.", type="antonyms")
        assert isinstance(request.config, AntonymConfig)

    def test_dict_config_resolved_by_tag(self):
        request = TransformationRequest(
            text="Texto.",
            type="opposition_structure",
            config={"type": "opposition_structure", "structure_sub_type": "embora", "argumentative_level": 70},
        )
        assert isinstance(request.config, StructureConfig)
        assert request.config.structure_sub_type == "embora"

    def test_each_record_parses(self):
        for cfg in (
            FormalityConfig(formality_level=90),
            ArgumentativeConfig(include_thesis=True),
            SynonymConfig(word_difficulty="simple"),
            EvaluationConfig(topic="Saneamento"),
        ):
            request = TransformationRequest(text="Texto.", type=cfg.type, config=cfg.model_dump())
            assert request.config == cfg

    def test_mismatched_config_rejected(self):
        with pytest.raises(ValidationError):
            TransformationRequest(text="Texto.", type="synonyms", config={"type": "formality", "formality_level": 90})

    def test_unknown_config_tag_rejected(self):
        with pytest.raises(ValidationError):
            TransformationRequest(text="Texto.", type="synonyms", config={"type": "rima"})

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            TransformationRequest(text="Texto.", type="rima")

    @pytest.mark.parametrize("level", [-1, 101])
    def test_level_bounds(self, level):
        with pytest.raises(ValidationError):
            FormalityConfig(formality_level=level)
