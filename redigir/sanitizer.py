"""Output sanitizer — cleans raw LLM text into the shape the writing app expects."""

from __future__ import annotations

import logging
import re

from redigir.errors import MalformedUpstreamResponseError
from redigir.models import PARAGRAPH_TYPES, TransformationType

logger = logging.getLogger("redigir.sanitizer")

_FENCE_RE = re.compile(r"```[\w-]*\n?(.*?)```", re.DOTALL)
_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s+.*$", re.MULTILINE)
_EMPHASIS_RE = re.compile(r"(\*\*|__|\*|_)(?=\S)(.+?)(?<=\S)\1")
# Lines where the model labels or introduces its answer instead of giving it
_ECHO_LINE_RE = re.compile(
    r"^\s*(?:texto (?:reescrito|reformulado|final|original)|resposta|reescrita|vers[aã]o (?:reescrita|final)|"
    r"par[aá]grafo(?: reescrito| final)?|aqui est[aá]|segue|claro|certamente|instru[cç][aã]o|contexto|texto)\b[^\n]*:[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_LABEL_PREFIX_RE = re.compile(
    r"^\s*(?:texto (?:reescrito|reformulado|final)|resposta|vers[aã]o final|par[aá]grafo)\s*:\s*",
    re.IGNORECASE,
)
_PLACEHOLDER_RE = re.compile(r"\[[^\]\n]{0,60}\]")
_WRAPPING_QUOTES = ('"', "“", "”", "'", "«", "»")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def sanitize_output(
    raw: str,
    transformation_type: TransformationType,
    original_text: str = "",
    min_ratio: float = 0.2,
) -> str:
    """Strip LLM artefacts and collapse to the expected paragraph shape.

    Raises:
        MalformedUpstreamResponseError: nothing usable is left, or the output is
            shorter than ``min_ratio`` of the original text.
    """
    if raw is None or not raw.strip():
        raise MalformedUpstreamResponseError("empty LLM response", raw=raw or "")

    text = raw.strip()
    fenced = _FENCE_RE.search(text)
    if fenced and fenced.group(1).strip():
        text = fenced.group(1)
    text = text.replace("```", "")
    text = _HEADING_RE.sub("", text)
    text = _ECHO_LINE_RE.sub("", text)
    text = _LABEL_PREFIX_RE.sub("", text.strip())
    text = _EMPHASIS_RE.sub(r"\2", text)
    text = _PLACEHOLDER_RE.sub("", text)
    text = text.strip()

    while len(text) > 1 and text[0] in _WRAPPING_QUOTES and text[-1] in _WRAPPING_QUOTES:
        text = text[1:-1].strip()

    if TransformationType(transformation_type) in PARAGRAPH_TYPES:
        text = " ".join(text.split())
    else:
        paragraphs = [" ".join(p.split()) for p in _BLANK_LINES_RE.split(text)]
        text = "\n\n".join(p for p in paragraphs if p)

    if not text:
        raise MalformedUpstreamResponseError("LLM response empty after sanitizing", raw=raw)

    if original_text and len(text) < min_ratio * len(original_text.strip()):
        raise MalformedUpstreamResponseError(
            f"LLM response too short ({len(text)} chars for {len(original_text.strip())} input chars)",
            raw=raw,
        )

    logger.debug(f"Sanitized {len(raw)} -> {len(text)} chars")
    return text
