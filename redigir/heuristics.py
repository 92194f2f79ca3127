"""Heuristics — quality scoring, keyword extraction and token estimates.

Kept behind small protocols so the cache and the compressor can be handed a
different scorer or extractor without touching their own logic.

Usage:
    from redigir.heuristics import HeuristicQualityScorer, estimate_tokens

    scorer = HeuristicQualityScorer()
    scorer.score("Ademais, o tema exige debate.")   # 65
    estimate_tokens("uma frase curta")                # 4
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import Any, Iterable, Protocol, runtime_checkable

WORDS_PER_TOKEN = 0.75

SOPHISTICATED_CONNECTIVES = ("ademais", "outrossim", "conquanto")

STOPWORDS = frozenset({
    "para", "com", "que", "uma", "um", "por", "como", "mais", "mas", "ser", "ter",
    "seu", "sua", "seus", "suas", "isso", "esse", "essa", "este", "esta", "pelo",
    "pela", "pelos", "pelas", "sobre", "entre", "quando", "muito", "também",
    "onde", "pode", "podem", "deve", "devem", "está", "estão", "foram", "sendo",
    "então", "ainda", "apenas", "assim", "cada", "dessa", "desse", "disso",
    "nossa", "nosso", "porque", "quais", "qual", "quem", "todo", "toda", "todos",
    "todas", "outro", "outra", "outros", "outras", "mesmo", "mesma", "aqui",
    "você", "vocês", "fazer", "preciso", "gostaria",
})

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


# ============================================================
# Token estimates
# ============================================================

def estimate_tokens(text: str, words_per_token: float = WORDS_PER_TOKEN) -> int:
    """Rough token count: ceil(words / words_per_token). Empty text is 0 tokens."""
    words = len(text.split())
    if words == 0:
        return 0
    return math.ceil(words / words_per_token)


def truncate_to_tokens(text: str, max_tokens: int, words_per_token: float = WORDS_PER_TOKEN) -> str:
    """Trim words from the end until the estimate fits, marking the cut with '...'."""
    if max_tokens <= 0:
        return ""
    if estimate_tokens(text, words_per_token) <= max_tokens:
        return text
    max_words = math.floor(max_tokens * words_per_token)
    if max_words == 0:
        return ""
    words = text.split()[:max_words]
    return " ".join(words) + "..."


def split_sentences(text: str) -> list[str]:
    """Split on sentence punctuation followed by whitespace, dropping blanks."""
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text.strip()) if s.strip()]


# ============================================================
# Quality scoring
# ============================================================

@runtime_checkable
class QualityScorer(Protocol):
    def score(self, payload: Any) -> float: ...


class HeuristicQualityScorer:
    """Scores cached payloads 0-100 on length, connective register and sentence count."""

    base = 50.0

    def score(self, payload: Any) -> float:
        text = payload if isinstance(payload, str) else getattr(payload, "content", None)
        if not isinstance(text, str):
            return self.base

        score = self.base
        if 50 < len(text) < 500:
            score += 20
        lowered = text.lower()
        if any(word in lowered for word in SOPHISTICATED_CONNECTIVES):
            score += 15
        if len(text.split(".")) > 2:
            score += 10
        return min(score, 100.0)


# ============================================================
# Keyword extraction
# ============================================================

@runtime_checkable
class KeywordExtractor(Protocol):
    def extract(self, text: str, limit: int = 5, exclude: Iterable[str] = ()) -> list[str]: ...


class FrequencyKeywordExtractor:
    """Most frequent content words, ties broken by first appearance."""

    def __init__(self, stopwords: Iterable[str] = STOPWORDS, min_length: int = 4):
        self.stopwords = frozenset(stopwords)
        self.min_length = min_length

    def extract(self, text: str, limit: int = 5, exclude: Iterable[str] = ()) -> list[str]:
        excluded = {w.lower() for w in exclude}
        words = _PUNCT_RE.sub(" ", text.lower()).split()
        candidates = [
            w for w in words
            if len(w) >= self.min_length and w not in self.stopwords and w not in excluded
            and not w.isdigit()
        ]
        counts = Counter(candidates)
        first_seen: dict[str, int] = {}
        for idx, word in enumerate(candidates):
            first_seen.setdefault(word, idx)
        ranked = sorted(counts, key=lambda w: (-counts[w], first_seen[w]))
        return ranked[:limit]
