"""LocalRuleEngine — deterministic Portuguese rewrites that never call an LLM.

Handles four transformation types when the input allows it:

* synonyms       : academic vocabulary substitution (simple/medium difficulty only)
* connectives    : basic connectives upgraded to formal ones
* normalization  : spacing, punctuation and sentence capitalisation
* basic_structure: topic opener, development connectives and a closing

Every handler is idempotent: running it on its own output changes nothing.
A handler reports ``handled=False`` when it made no change or its
preconditions fail, and the orchestrator moves on to the LLM path.

Usage:
    engine = LocalRuleEngine()
    attempt = engine.attempt("Isso é muito importante.", TransformationType.SYNONYMS, SynonymConfig())
    attempt.result   # "Isso é deveras fundamental."
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from redigir.heuristics import split_sentences
from redigir.lexicon import ACADEMIC_VOCABULARY, CONNECTIVE_UPGRADES, SENTENCE_OPENERS
from redigir.models import TransformationType, WordDifficulty

logger = logging.getLogger("redigir.local_rules")

MIN_STRUCTURE_SENTENCES = 3
MIN_CONNECTIVE_SENTENCES = 2
SUBSTANTIVE_SENTENCE_CHARS = 10

DEVELOPMENT_OPENERS = ("Ademais", "Outrossim")
TOPIC_OPENER = "É evidente que"
CLOSING_OPENER = "Dessarte"

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")

# (pattern, replacement) applied in order by normalize()
_NORMALIZATION_PATTERNS: list[tuple[re.Pattern[str], Any]] = [
    (re.compile(r"[ \t]{2,}"), " "),
    (re.compile(r"[ \t]+\n"), "\n"),
    (re.compile(r"\n{3,}"), "\n\n"),
    (re.compile(r"[ \t]+([,.;:!?])"), r"\1"),
    (re.compile(r"([.!?])([A-Za-zÀ-ÖØ-öø-ÿ])"), r"\1 \2"),
    (re.compile(r"([.!?]\s+)([a-zà-öø-ÿ])"), lambda m: m.group(1) + m.group(2).upper()),
]


@dataclass
class LocalAttempt:
    handled: bool
    result: str | None = None
    changes: int = 0
    optimization: str = ""


def match_case(original: str, replacement: str) -> str:
    """Give ``replacement`` the capitalisation pattern of ``original``."""
    if len(original) > 1 and original.isupper():
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def substitute_words(text: str, table: dict[str, str]) -> tuple[str, int]:
    """Replace whole words/phrases from ``table`` in one pass, preserving case.

    A single alternation means a replacement is never itself re-replaced, so
    symmetric tables (antonyms) swap cleanly.
    """
    if not table:
        return text, 0
    keys = sorted(table, key=len, reverse=True)
    pattern = re.compile(r"\b(" + "|".join(re.escape(k) for k in keys) + r")\b", re.IGNORECASE)
    return pattern.subn(lambda m: match_case(m.group(0), table[m.group(0).lower()]), text)


def opens_with_connective(sentence: str) -> bool:
    lowered = sentence.lower()
    for opener in SENTENCE_OPENERS:
        if lowered.startswith(opener) and not lowered[len(opener):len(opener) + 1].isalpha():
            return True
    return False


def lower_first(sentence: str) -> str:
    # Keep acronyms like "ONU" intact
    if len(sentence) > 1 and sentence[1].isupper():
        return sentence
    return sentence[:1].lower() + sentence[1:]


def normalize(text: str) -> tuple[str, int]:
    """Apply the normalisation patterns. Returns (text, number of fixes)."""
    changes = 0
    result = text
    for pattern, replacement in _NORMALIZATION_PATTERNS:
        result, n = pattern.subn(replacement, result)
        changes += n
    stripped = result.strip()
    if stripped != result:
        changes += 1
        result = stripped
    if result[:1].islower():
        result = result[0].upper() + result[1:]
        changes += 1
    return result, changes


class LocalRuleEngine:
    """Cheap rule-based handlers tried before any LLM call."""

    LOCAL_TYPES = frozenset({
        TransformationType.SYNONYMS,
        TransformationType.CONNECTIVES,
        TransformationType.NORMALIZATION,
        TransformationType.BASIC_STRUCTURE,
    })

    def attempt(self, text: str, transformation_type: TransformationType, config: Any = None) -> LocalAttempt:
        if transformation_type == TransformationType.SYNONYMS:
            return self.synonyms(text, getattr(config, "word_difficulty", WordDifficulty.MEDIUM))
        if transformation_type == TransformationType.CONNECTIVES:
            return self.connectives(text)
        if transformation_type == TransformationType.NORMALIZATION:
            return self.normalization(text)
        if transformation_type == TransformationType.BASIC_STRUCTURE:
            return self.basic_structure(text)
        return LocalAttempt(handled=False)

    def synonyms(self, text: str, difficulty: WordDifficulty = WordDifficulty.MEDIUM) -> LocalAttempt:
        if WordDifficulty(difficulty) == WordDifficulty.COMPLEX:
            return LocalAttempt(handled=False)
        result, changes = substitute_words(text, ACADEMIC_VOCABULARY)
        if not changes:
            return LocalAttempt(handled=False)
        logger.debug(f"Local synonyms: {changes} substitutions")
        return LocalAttempt(handled=True, result=result, changes=changes, optimization="vocabulary_upgrade")

    def connectives(self, text: str) -> LocalAttempt:
        substantive = [s for s in split_sentences(text) if len(s) > SUBSTANTIVE_SENTENCE_CHARS]
        if len(substantive) < MIN_CONNECTIVE_SENTENCES:
            return LocalAttempt(handled=False)
        result, changes = substitute_words(text, CONNECTIVE_UPGRADES)
        if not changes:
            return LocalAttempt(handled=False)
        logger.debug(f"Local connectives: {changes} upgrades")
        return LocalAttempt(handled=True, result=result, changes=changes, optimization="connective_upgrade")

    def normalization(self, text: str) -> LocalAttempt:
        result, changes = normalize(text)
        return LocalAttempt(handled=True, result=result, changes=changes, optimization="normalization")

    def basic_structure(self, text: str) -> LocalAttempt:
        stripped = text.strip()
        if _PARAGRAPH_BREAK_RE.search(stripped):
            return LocalAttempt(handled=False)
        sentences = split_sentences(stripped)
        if len(sentences) < MIN_STRUCTURE_SENTENCES:
            return LocalAttempt(handled=False)

        changes = 0
        out: list[str] = []
        last = len(sentences) - 1
        for idx, sentence in enumerate(sentences):
            if opens_with_connective(sentence):
                out.append(sentence)
                continue
            if idx == 0:
                out.append(f"{TOPIC_OPENER} {lower_first(sentence)}")
            elif idx == last:
                out.append(f"{CLOSING_OPENER}, {lower_first(sentence)}")
            else:
                opener = DEVELOPMENT_OPENERS[(idx - 1) % len(DEVELOPMENT_OPENERS)]
                out.append(f"{opener}, {lower_first(sentence)}")
            changes += 1

        if not changes:
            return LocalAttempt(handled=False)
        return LocalAttempt(handled=True, result=" ".join(out), changes=changes, optimization="basic_structure")

    def detect_opportunities(self, text: str) -> list[str]:
        """Which local handlers would change this text."""
        found: list[str] = []
        if self.synonyms(text).handled:
            found.append("synonym_variation")
        if self.connectives(text).handled:
            found.append("connective_upgrade")
        if self.normalization(text).changes:
            found.append("normalization")
        if self.basic_structure(text).handled:
            found.append("basic_structure")
        return found
