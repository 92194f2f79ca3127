"""Tests for redigir.context_compressor — budgets, rolling summaries, structures."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from redigir.context_compressor import ContextCompressor
from redigir.heuristics import estimate_tokens
from redigir.models import CompressionConfig, ConversationContext, Turn, TurnRole


def _conversation(n: int, words_per_turn: int = 12) -> ConversationContext:
    turns = []
    for i in range(n):
        role = TurnRole.USER if i % 2 == 0 else TurnRole.ASSISTANT
        body = " ".join(f"palavra{i}x{j}" for j in range(words_per_turn))
        if role == TurnRole.USER:
            content = f"Por favor, modifique a introdução sobre educação ambiental. {body}."
        else:
            content = f"Texto otimizado e formalizado sobre educação ambiental. {body}."
        turns.append(Turn(role=role, content=content, timestamp=float(i)))
    return ConversationContext(turns=turns)


@pytest.fixture
def compressor() -> ContextCompressor:
    return ContextCompressor()


class TestCompressConversation:
    def test_empty_conversation(self, compressor):
        assert compressor.compress_conversation(ConversationContext()) == ""

    def test_ten_turns_fit_budget(self, compressor):
        ctx = _conversation(10, words_per_turn=60)
        out = compressor.compress_conversation(ctx)
        assert estimate_tokens(out) <= compressor.config.max_context_tokens

    @pytest.mark.parametrize("max_tokens", [204, 250, 400, 1000])
    def test_budget_respected_for_any_size(self, max_tokens):
        compressor = ContextCompressor(CompressionConfig(max_context_tokens=max_tokens))
        ctx = _conversation(10, words_per_turn=80)
        out = compressor.compress_conversation(ctx)
        assert estimate_tokens(out) <= max_tokens

    def test_last_two_turns_preserved(self, compressor):
        ctx = _conversation(10, words_per_turn=60)
        out = compressor.compress_conversation(ctx)
        lines = out.split("\n")
        assert lines[-2] == f"U: {compressor.essential_content(ctx.turns[-2].content)}"
        assert lines[-1] == f"A: {compressor.essential_content(ctx.turns[-1].content)}"

    def test_short_turns_kept_literally(self, compressor):
        ctx = ConversationContext(turns=[
            Turn(role=TurnRole.USER, content="Deixe o texto mais formal."),
            Turn(role=TurnRole.ASSISTANT, content="Pronto, texto formalizado."),
        ])
        assert compressor.compress_conversation(ctx) == "U: Deixe o texto mais formal.\nA: Pronto, texto formalizado."

    def test_summary_regenerated_only_at_threshold(self, compressor):
        ctx = _conversation(4)
        compressor.compress_conversation(ctx)
        # 2 older turns < threshold 3
        assert ctx.rolling_summary == ""
        assert ctx.last_compression_marker == 0

        ctx.turns.extend(_conversation(1).turns)
        compressor.compress_conversation(ctx)
        assert ctx.rolling_summary.startswith("Temas:")
        assert ctx.last_compression_marker == 3
        first_summary = ctx.rolling_summary

        # One more turn: not enough new history to regenerate
        ctx.turns.append(Turn(role=TurnRole.USER, content="Agora crie uma conclusão sobre reciclagem."))
        compressor.compress_conversation(ctx)
        assert ctx.rolling_summary == first_summary
        assert ctx.last_compression_marker == 3

    def test_output_has_summary_prefix(self, compressor):
        ctx = _conversation(8)
        out = compressor.compress_conversation(ctx)
        assert out.startswith("Contexto anterior: Temas:")

    def test_unsummarized_older_turns_included(self, compressor):
        ctx = _conversation(6)
        out = compressor.compress_conversation(ctx)
        # 4 older turns: marker jumps to 4, nothing pending; header + 2 recent lines
        assert len(out.split("\n")) == 3
        ctx.turns.append(Turn(role=TurnRole.USER, content="Revise a tese."))
        out = compressor.compress_conversation(ctx)
        assert len(out.split("\n")) == 4

    def test_truncated_history_resets_marker(self, compressor):
        ctx = _conversation(8)
        compressor.compress_conversation(ctx)
        ctx.turns = ctx.turns[-3:]
        compressor.compress_conversation(ctx)
        assert ctx.last_compression_marker == 0


class TestEssentialContent:
    def test_strips_role_and_politeness(self, compressor):
        text = "Você é um professor de redação. Por favor, reescreva a introdução."
        assert compressor.essential_content(text) == "reescreva a introdução."

    def test_strips_notes_and_parentheticals(self, compressor):
        text = "Reescreva o texto (sem gírias) obrigatoriamente. IMPORTANTE: use norma culta."
        assert compressor.essential_content(text) == "Reescreva o texto."

    def test_keeps_first_two_sentences(self, compressor):
        text = "Primeira frase. Segunda frase. Terceira frase."
        assert compressor.essential_content(text) == "Primeira frase. Segunda frase."

    def test_bounded(self, compressor):
        text = " ".join(["palavra"] * 500)
        assert estimate_tokens(compressor.essential_content(text)) <= compressor.config.max_turn_tokens

    def test_never_empty_for_boilerplate_only(self, compressor):
        assert compressor.essential_content("(nota)") == "(nota)"


class TestGenerateSummary:
    def test_buckets(self, compressor):
        turns = [
            Turn(role=TurnRole.USER, content="Analise e modifique minha redação sobre mobilidade urbana."),
            Turn(role=TurnRole.ASSISTANT, content="Estruturei e formalizei o texto sobre mobilidade urbana."),
        ]
        summary = compressor.generate_summary(turns)
        assert summary.startswith("Temas: mobilidade, urbana")
        assert "Solicitações: modificação, análise." in summary
        assert "Decisões: estruturado, formalizado." in summary

    def test_excluded_topics(self, compressor):
        turns = [Turn(role=TurnRole.USER, content="redação texto parágrafo redação texto saneamento")]
        assert compressor.generate_summary(turns) == "Temas: saneamento."

    def test_bounded(self):
        compressor = ContextCompressor(CompressionConfig(max_summary_tokens=4))
        summary = compressor.generate_summary(_conversation(6).turns)
        assert estimate_tokens(summary) <= 4


class TestStructures:
    STRUCTURE = {
        "title": "Dissertação sobre saneamento",
        "type": "dissertativa",
        "sections": [
            {"title": "Introdução", "description": "Contextualização do saneamento básico no Brasil"},
            {"title": "Desenvolvimento 1", "description": "Impactos na saúde pública"},
            {"title": "Desenvolvimento 2", "description": "Investimentos insuficientes"},
            {"title": "Desenvolvimento 3", "description": "Desigualdade regional"},
            {"title": "Conclusão", "description": "Proposta de intervenção do governo"},
        ],
        "examType": "ENEM",
    }

    def test_at_most_four_points(self, compressor):
        compressed = compressor.compress_structure(self.STRUCTURE)
        assert len(compressed.main_points) == 4
        assert compressed.main_points[0].startswith("Intro:")
        assert compressed.main_points[1].startswith("D1:")
        assert compressed.main_points[-1].startswith("Conclusão:")
        assert "intervenção" in compressed.main_points[-1]
        assert compressed.exam_type == "ENEM"
        assert compressed.title == "Dissertação sobre saneamento"

    def test_defaults(self, compressor):
        compressed = compressor.compress_structure({})
        assert compressed.title == "Estrutura personalizada"
        assert compressed.main_points == []

    def test_structures_context(self, compressor):
        line = compressor.compress_structures_context([self.STRUCTURE, {"title": "B"}, {"title": "C"}])
        assert line.startswith("Estruturas de referência: Dissertação sobre saneamento (")
        assert "| B (" in line
        assert "C (" not in line
        assert compressor.compress_structures_context([]) == ""

    def test_compression_ratio(self, compressor):
        assert compressor.compression_ratio("", "") == 0.0
        # 4 words ~ 6 tokens, 1 word ~ 2 tokens
        assert compressor.compression_ratio("um dois três quatro", "um") == pytest.approx(2 / 3)


class TestCompressionConfig:
    def test_budget_must_hold_recent_turns(self):
        with pytest.raises(ValidationError):
            CompressionConfig(max_context_tokens=100)
