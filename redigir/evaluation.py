"""Essay evaluation parsing — five-competency rubric with score reconciliation.

The LLM is asked for ``{"totalScore": N, "competencies": [{"score": n}, ...]}``.
Whatever it answers, the final total is the sum of the clamped sub-scores; the
total the model stated is kept in ``reported_total`` for inspection.
"""

from __future__ import annotations

import logging
from typing import Any

from redigir.errors import MalformedUpstreamResponseError
from redigir.json_repair import repair_and_parse
from redigir.models import CompetencyScore, EssayEvaluation

logger = logging.getLogger("redigir.evaluation")

# (competency name, max score)
RUBRIC: list[tuple[str, int]] = [
    ("Competência 1: domínio da norma culta", 200),
    ("Competência 2: compreensão do tema e do gênero", 200),
    ("Competência 3: seleção e organização dos argumentos", 200),
    ("Competência 4: coesão textual", 200),
    ("Competência 5: proposta de intervenção", 200),
]

_TOTAL_KEYS = ("totalScore", "total_score", "total", "nota")
_FEEDBACK_KEYS = ("feedback", "generalFeedback", "comentario", "comentário")


def _coerce_score(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().replace(",", "."))
        except ValueError:
            return None
    return None


def _first(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def build_evaluation(
    raw_competencies: list[Any],
    reported_total: Any = None,
    feedback: str = "",
) -> EssayEvaluation:
    """Clamp sub-scores to the rubric and reconcile the total.

    Raises:
        MalformedUpstreamResponseError: fewer competencies than the rubric, or a
            competency without a numeric score.
    """
    if len(raw_competencies) < len(RUBRIC):
        raise MalformedUpstreamResponseError(
            f"expected {len(RUBRIC)} competencies, got {len(raw_competencies)}"
        )

    competencies: list[CompetencyScore] = []
    for (default_name, rubric_max), item in zip(RUBRIC, raw_competencies):
        if isinstance(item, dict):
            score = _coerce_score(item.get("score"))
            stated_max = _coerce_score(item.get("maxScore", item.get("max_score")))
            name = str(item.get("name") or default_name)
            comment = str(item.get("feedback") or item.get("comment") or "")
        else:
            score, stated_max, name, comment = _coerce_score(item), None, default_name, ""
        if score is None:
            raise MalformedUpstreamResponseError(f"competency '{name}' has no numeric score")

        maximum = rubric_max
        if stated_max is not None and 0 < stated_max < rubric_max:
            maximum = int(stated_max)
        clamped = int(round(min(max(score, 0.0), float(maximum))))
        competencies.append(CompetencyScore(name=name, score=clamped, max_score=maximum, feedback=comment))

    total = sum(c.score for c in competencies)
    stated = _coerce_score(reported_total)
    stated_int = int(round(stated)) if stated is not None else None
    reconciled = stated_int is not None and stated_int != total
    if reconciled:
        logger.info(f"Evaluation total reconciled: stated {stated_int}, sum of sub-scores {total}")

    return EssayEvaluation(
        total_score=total,
        max_total=sum(c.max_score for c in competencies),
        competencies=competencies,
        feedback=feedback,
        reported_total=stated_int,
        reconciled=reconciled,
    )


class EssayEvaluator:
    """Turns a raw LLM evaluation response into a validated EssayEvaluation.

    Usage:
        evaluation = EssayEvaluator().parse(raw_llm_text)
        evaluation.total_score
    """

    def parse(self, raw: str) -> EssayEvaluation:
        parsed = repair_and_parse(raw)
        if not parsed.ok:
            raise MalformedUpstreamResponseError(f"evaluation is not JSON: {parsed.error}", raw=raw)

        data = parsed.value
        if isinstance(data, list):
            data = {"competencies": data}
        if not isinstance(data, dict):
            raise MalformedUpstreamResponseError("evaluation JSON is not an object", raw=raw)

        competencies = data.get("competencies") or data.get("competencias")
        if not isinstance(competencies, list) or not competencies:
            raise MalformedUpstreamResponseError("evaluation has no competencies", raw=raw)

        feedback = _first(data, _FEEDBACK_KEYS)
        return build_evaluation(
            competencies,
            reported_total=_first(data, _TOTAL_KEYS),
            feedback=str(feedback) if feedback else "",
        )


def summarize(evaluation: EssayEvaluation) -> str:
    """One-line human summary used as the result content."""
    return f"Nota: {evaluation.total_score}/{evaluation.max_total}"
