"""FallbackGenerator — rule-based output for when the LLM path is unavailable.

More permissive than the local rules: it always produces something for every
transformation type, even if the rewrite is shallow. Output is deterministic
and never empty.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from redigir.evaluation import RUBRIC, build_evaluation, summarize
from redigir.heuristics import split_sentences
from redigir.lexicon import (
    ACADEMIC_VOCABULARY,
    ANTONYMS,
    CONNECTIVE_CATEGORIES,
    FORMAL_UPGRADES,
    INFORMAL_DOWNGRADES,
    SYNONYMS,
    structure_connectives,
)
from redigir.local_rules import LocalRuleEngine, lower_first, normalize, substitute_words
from redigir.models import STRUCTURAL_TYPES, EssayEvaluation, TransformationType

logger = logging.getLogger("redigir.fallback")

HIGH_LEVEL = 70
LOW_LEVEL = 30
SCORE_STEP = 40

_PUNCT_RE = re.compile(r"[^\w\s]")

_INTERVENTION_MARKERS = (
    "deve", "devem", "é necessário", "é preciso", "governo", "ministério",
    "escolas", "mídia", "proposta", "medida", "por meio de", "a fim de",
)


def _round_step(value: float, maximum: int = 200) -> int:
    stepped = int(round(value / SCORE_STEP)) * SCORE_STEP
    return max(0, min(maximum, stepped))


def _strip_final_period(text: str) -> str:
    return text.rstrip().rstrip(".!?").rstrip()


class FallbackGenerator:
    """Deterministic last-resort transformations.

    Usage:
        fb = FallbackGenerator()
        fb.generate("O texto é bom.", TransformationType.ANTONYMS, AntonymConfig())
        # "O texto é ruim."
    """

    def __init__(self, rule_engine: LocalRuleEngine | None = None):
        self.rule_engine = rule_engine or LocalRuleEngine()

    def generate(self, text: str, transformation_type: TransformationType, config: Any = None) -> str:
        text = text.strip()
        if transformation_type == TransformationType.FORMALITY:
            result = self._formality(text, getattr(config, "formality_level", 50))
        elif transformation_type == TransformationType.ARGUMENTATIVE:
            result = self._argumentative(text, getattr(config, "argumentative_level", 50))
        elif transformation_type == TransformationType.SYNONYMS:
            result, _ = substitute_words(text, {**ACADEMIC_VOCABULARY, **SYNONYMS})
        elif transformation_type == TransformationType.ANTONYMS:
            result, _ = substitute_words(text, ANTONYMS)
        elif transformation_type in STRUCTURAL_TYPES:
            result = self._structure(text, transformation_type.value, getattr(config, "structure_sub_type", None))
        elif transformation_type == TransformationType.ESSAY_EVALUATION:
            result = summarize(self.evaluate(text))
        else:
            attempt = self.rule_engine.attempt(text, transformation_type, config)
            result = attempt.result if attempt.handled and attempt.result else normalize(text)[0]

        # Last guard: the input is validated non-empty, so echoing it is always possible
        return result or text

    # ------------------------------------------------------------------

    @staticmethod
    def _formality(text: str, level: int) -> str:
        if level > HIGH_LEVEL:
            return substitute_words(text, FORMAL_UPGRADES)[0]
        if level < LOW_LEVEL:
            return substitute_words(text, INFORMAL_DOWNGRADES)[0]
        return normalize(text)[0]

    @staticmethod
    def _argumentative(text: str, level: int) -> str:
        if level > HIGH_LEVEL:
            return f"É fundamental compreender que {lower_first(text)}"
        if level < LOW_LEVEL:
            return f"{text} Essa é apenas uma perspectiva possível sobre o assunto."
        return (
            f"Considerando que {lower_first(_strip_final_period(text))}, "
            "pode-se argumentar que esta questão merece atenção especial."
        )

    @staticmethod
    def _structure(text: str, family: str, sub_type: str | None) -> str:
        connectives = structure_connectives(family, sub_type)
        sentences = split_sentences(text)
        if len(sentences) < 2:
            opener = connectives[0]
            return f"{opener[:1].upper()}{opener[1:]}, {lower_first(text)}"
        out = [sentences[0]]
        for idx, sentence in enumerate(sentences[1:]):
            conn = connectives[idx % len(connectives)]
            out.append(f"{conn[:1].upper()}{conn[1:]}, {lower_first(sentence)}")
        return " ".join(out)

    # ------------------------------------------------------------------

    def evaluate(self, essay: str) -> EssayEvaluation:
        """Heuristic five-competency score from surface features of the essay."""
        lowered = essay.lower()
        words = essay.split()
        paragraphs = [p for p in essay.split("\n") if p.strip()]
        sentences = split_sentences(essay)
        avg_sentence = len(words) / len(sentences) if sentences else 0.0
        plain = f" {' '.join(_PUNCT_RE.sub(' ', lowered).split())} "
        connectives = {c for group in CONNECTIVE_CATEGORIES.values() for c in group if f" {c} " in plain}
        interventions = sum(1 for marker in _INTERVENTION_MARKERS if marker in lowered)

        norma = 160 if 8 <= avg_sentence <= 35 else 80
        tema = 160 if len(words) >= 150 else 120 if len(words) >= 80 else 80
        argumentos = 160 if len(paragraphs) >= 4 else 120 if len(paragraphs) >= 3 else 80
        coesao = 200 if len(connectives) >= 6 else 160 if len(connectives) >= 4 else 120 if len(connectives) >= 2 else 80
        intervencao = 160 if interventions >= 3 else 120 if interventions >= 1 else 40

        scores = [norma, tema, argumentos, coesao, intervencao]
        raw = [{"name": name, "score": _round_step(s, maximum), "feedback": "Estimativa automática."}
               for (name, maximum), s in zip(RUBRIC, scores)]
        evaluation = build_evaluation(
            raw,
            reported_total=None,
            feedback=(
                "Avaliação estimada automaticamente, sem análise detalhada. "
                "Tente novamente mais tarde para uma correção completa."
            ),
        )
        logger.debug(f"Fallback evaluation total={evaluation.total_score}")
        return evaluation
