"""ContextCompressor — shrinks conversation history and essay structures before prompting.

Conversation layout produced by ``compress_conversation``::

    Contexto anterior: Temas: .... Solicitações: .... Decisões: ....
    U: <older turn not yet summarized, cleaned>
    U: <second to last turn, cleaned>
    A: <last turn, cleaned>

The last ``keep_recent`` turns are always kept (cleaned, never truncated
further). The rolling summary is only regenerated once ``threshold`` new turns
have left the recent window, and everything above the recent lines is trimmed
to fit ``max_context_tokens``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping

from redigir.heuristics import (
    FrequencyKeywordExtractor,
    KeywordExtractor,
    estimate_tokens,
    split_sentences,
    truncate_to_tokens,
)
from redigir.models import CompressedStructure, CompressionConfig, ConversationContext, Turn, TurnRole

logger = logging.getLogger("redigir.context_compressor")

ROLE_LABELS = {TurnRole.USER: "U", TurnRole.ASSISTANT: "A"}

# Domain words too generic to be useful as topics
EXCLUDED_TOPICS = ("redação", "texto", "parágrafo", "estrutura", "frase", "palavra")

_ESSENTIAL_STRIP: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^\s*Você é (?:um|uma)\b[^.:]*[.:]\s*", re.IGNORECASE), ""),
    (re.compile(r"^\s*(?:Por favor|Preciso que|Gostaria que)\b[,:]?\s*", re.IGNORECASE), ""),
    (re.compile(r"\b(?:obrigatoriamente|necessariamente|impreterivelmente)\b\s*", re.IGNORECASE), ""),
    (re.compile(r"\b(?:IMPORTANTE|ATENÇÃO|OBSERVAÇÃO|OBS)\s*:[^.]*\.?"), ""),
    (re.compile(r"\s*\([^)]*\)"), ""),
    (re.compile(r"[ \t]{2,}"), " "),
    (re.compile(r"\s+([,.;:!?])"), r"\1"),
]

_REQUEST_PATTERNS: dict[str, re.Pattern[str]] = {
    "modificação": re.compile(r"\b(?:modific|alter|mud[ae])", re.IGNORECASE),
    "geração": re.compile(r"\b(?:gere|gerar|gera|crie|criar|cria|escreva|escrever)\b", re.IGNORECASE),
    "análise": re.compile(r"\b(?:anális|analis|avali)", re.IGNORECASE),
    "estruturação": re.compile(r"\bestrutur", re.IGNORECASE),
}

_DECISION_PATTERNS: dict[str, re.Pattern[str]] = {
    "otimizado": re.compile(r"\b(?:otimiz|melhor)", re.IGNORECASE),
    "estruturado": re.compile(r"\bestrutur", re.IGNORECASE),
    "formalizado": re.compile(r"\bformal", re.IGNORECASE),
}

MAX_STRUCTURE_POINTS = 4
KEYWORDS_PER_POINT = 5


class ContextCompressor:
    """Token-budgeted compression for conversations and essay structures.

    Usage:
        compressor = ContextCompressor(CompressionConfig(max_context_tokens=400))
        context_str = compressor.compress_conversation(conversation)
    """

    def __init__(
        self,
        config: CompressionConfig | None = None,
        keyword_extractor: KeywordExtractor | None = None,
    ):
        self.config = config or CompressionConfig()
        self.keywords = keyword_extractor or FrequencyKeywordExtractor()

    def tokens(self, text: str) -> int:
        return estimate_tokens(text, self.config.words_per_token)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def compress_conversation(self, context: ConversationContext) -> str:
        """Render ``context`` within budget. Updates the context's summary state in place."""
        turns = context.turns
        if not turns:
            return ""

        keep = self.config.keep_recent
        recent = turns[-keep:]
        older = turns[:-keep] if len(turns) > keep else []

        # Caller may have truncated its history since the last summary
        if context.last_compression_marker > len(older):
            context.last_compression_marker = 0
            context.rolling_summary = ""
            context.key_points = []

        if len(older) - context.last_compression_marker >= self.config.threshold:
            context.rolling_summary = self.generate_summary(older)
            context.key_points = self.keywords.extract(
                " ".join(t.content for t in older), limit=KEYWORDS_PER_POINT, exclude=EXCLUDED_TOPICS
            )
            context.last_compression_marker = len(older)
            logger.debug(f"Rolling summary regenerated over {len(older)} turns")

        recent_lines = [self._turn_line(t) for t in recent]
        remaining = self.config.max_context_tokens - sum(self.tokens(line) for line in recent_lines)

        prefix_parts: list[str] = []
        if context.rolling_summary:
            prefix_parts.append(f"Contexto anterior: {context.rolling_summary}")
        prefix_parts.extend(self._turn_line(t) for t in older[context.last_compression_marker:])

        prefix_lines: list[str] = []
        for part in prefix_parts:
            cost = self.tokens(part)
            if cost <= remaining:
                prefix_lines.append(part)
                remaining -= cost
                continue
            partial = truncate_to_tokens(part, remaining, self.config.words_per_token)
            if partial:
                prefix_lines.append(partial)
            break

        return "\n".join(prefix_lines + recent_lines)

    def _turn_line(self, turn: Turn) -> str:
        return f"{ROLE_LABELS[turn.role]}: {self.essential_content(turn.content)}"

    def essential_content(self, text: str) -> str:
        """Strip boilerplate phrasing, keep the first two sentences, bound to max_turn_tokens."""
        cleaned = text.strip()
        for pattern, replacement in _ESSENTIAL_STRIP:
            cleaned = pattern.sub(replacement, cleaned)
        cleaned = cleaned.strip()
        if not cleaned:
            cleaned = text.strip()
        sentences = split_sentences(cleaned)
        if len(sentences) > 2:
            cleaned = " ".join(sentences[:2])
        cleaned = " ".join(cleaned.split())
        return truncate_to_tokens(cleaned, self.config.max_turn_tokens, self.config.words_per_token)

    def generate_summary(self, turns: Iterable[Turn]) -> str:
        """Topics, user request kinds and assistant decisions, bounded to max_summary_tokens."""
        turns = list(turns)
        all_text = " ".join(t.content for t in turns)
        user_text = " ".join(t.content for t in turns if t.role == TurnRole.USER)
        assistant_text = " ".join(t.content for t in turns if t.role == TurnRole.ASSISTANT)

        topics = self.keywords.extract(all_text, limit=KEYWORDS_PER_POINT, exclude=EXCLUDED_TOPICS)
        requests = [label for label, rx in _REQUEST_PATTERNS.items() if rx.search(user_text)]
        decisions = [label for label, rx in _DECISION_PATTERNS.items() if rx.search(assistant_text)]

        parts: list[str] = []
        if topics:
            parts.append(f"Temas: {', '.join(topics)}.")
        if requests:
            parts.append(f"Solicitações: {', '.join(requests)}.")
        if decisions:
            parts.append(f"Decisões: {', '.join(decisions)}.")
        return truncate_to_tokens(" ".join(parts), self.config.max_summary_tokens, self.config.words_per_token)

    # ------------------------------------------------------------------
    # Essay structures
    # ------------------------------------------------------------------

    def compress_structure(self, structure: Mapping[str, Any]) -> CompressedStructure:
        """Condense a structure record into title/type plus at most four keyword points."""
        sections = list(structure.get("sections") or structure.get("secoes") or [])
        if len(sections) > MAX_STRUCTURE_POINTS:
            sections = sections[:MAX_STRUCTURE_POINTS - 1] + [sections[-1]]

        points: list[str] = []
        last = len(sections) - 1
        for idx, section in enumerate(sections):
            if isinstance(section, Mapping):
                text = " ".join(str(section.get(k, "")) for k in ("title", "description", "content"))
            else:
                text = str(section)
            words = self.keywords.extract(text, limit=KEYWORDS_PER_POINT)
            if idx == 0:
                label = "Intro"
            elif idx == last:
                label = "Conclusão"
            else:
                label = f"D{idx}"
            points.append(f"{label}: {', '.join(words)}" if words else label)

        return CompressedStructure(
            title=str(structure.get("title") or structure.get("name") or "Estrutura personalizada"),
            type=str(structure.get("type") or "dissertativa"),
            main_points=points,
            difficulty=str(structure.get("difficulty") or "medio"),
            exam_type=str(structure.get("exam_type") or structure.get("examType") or "enem"),
            theme=str(structure.get("theme") or "geral"),
        )

    def compress_structures_context(self, structures: Iterable[Mapping[str, Any]], limit: int = 2) -> str:
        """One line referencing up to ``limit`` existing structures."""
        rendered = []
        for structure in list(structures)[:limit]:
            compressed = self.compress_structure(structure)
            rendered.append(f"{compressed.title} ({'; '.join(compressed.main_points)})")
        if not rendered:
            return ""
        return "Estruturas de referência: " + " | ".join(rendered)

    def compression_ratio(self, original: str, compressed: str) -> float:
        """Fraction of tokens saved, 0.0 when nothing was saved."""
        before = self.tokens(original)
        if before == 0:
            return 0.0
        return max(0.0, 1.0 - self.tokens(compressed) / before)
