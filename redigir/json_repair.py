"""Near-JSON repair for LLM output.

LLMs asked for JSON often answer with a fenced block, prose around the object,
trailing commas, bare keys or single-quoted strings. ``repair_and_parse`` fixes
those and reports failure as a value instead of raising.

Repairs only touch the structure between string literals; whatever sits inside
a string (commas, colons, curly quotes) is carried over as-is.

Usage:
    result = repair_and_parse("```json\\n{score: 10,}\\n```")
    result.ok      # True
    result.value   # {"score": 10}
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from redigir.errors import JSONRepairError

logger = logging.getLogger("redigir.json_repair")

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][\w\-]*)\s*:")
_PY_LITERALS = ((re.compile(r"\bTrue\b"), "true"), (re.compile(r"\bFalse\b"), "false"), (re.compile(r"\bNone\b"), "null"))

# String opener -> characters that close it. Curly and single quotes are
# accepted as delimiters and rewritten as plain double quotes.
_STRING_CLOSERS = {'"': '"', "“": "”\"", "'": "'", "‘": "’'"}
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclass
class ParseResult:
    ok: bool
    value: Any = None
    error: str | None = None


def extract_json_body(raw: str) -> str | None:
    """Pull the JSON document out of a fenced block or surrounding prose."""
    text = raw.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()
    if text[:1] in "{[":
        return text

    candidates = []
    for open_char, close_char in (("{", "}"), ("[", "]")):
        start = text.find(open_char)
        end = text.rfind(close_char)
        if start != -1 and end > start:
            candidates.append((start, text[start:end + 1]))
    if not candidates:
        return None
    # Whichever structure opens first is the outer one
    return min(candidates)[1]


def _read_string(body: str, start: int, closers: str) -> tuple[str, int]:
    """Read a string literal whose opening quote sits just before ``start``.

    Returns the literal re-emitted as a JSON double-quoted string and the index
    after its closing quote. An unterminated literal is returned unclosed.
    """
    out = ['"']
    i = start
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            following = body[i + 1]
            out.append("'" if following == "'" else char + following)
            i += 2
            continue
        if char in closers:
            out.append('"')
            return "".join(out), i + 1
        if char == '"':
            out.append('\\"')
        else:
            out.append(_CONTROL_ESCAPES.get(char, char))
        i += 1
    return "".join(out), i


def split_string_literals(body: str) -> list[tuple[bool, str]]:
    """Split ``body`` into ``(is_string, text)`` runs.

    String runs come back as JSON double-quoted literals whatever quote style
    opened them; structural runs are returned untouched.
    """
    runs: list[tuple[bool, str]] = []
    start = i = 0
    while i < len(body):
        closers = _STRING_CLOSERS.get(body[i])
        if closers is None:
            i += 1
            continue
        if i > start:
            runs.append((False, body[start:i]))
        literal, i = _read_string(body, i + 1, closers)
        runs.append((True, literal))
        start = i
    if start < len(body):
        runs.append((False, body[start:]))
    return runs


def _repair_structure(text: str) -> str:
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    text = _UNQUOTED_KEY_RE.sub(r'\1"\2":', text)
    for pattern, literal in _PY_LITERALS:
        text = pattern.sub(literal, text)
    return text


def _repair(body: str) -> str:
    return "".join(
        text if is_string else _repair_structure(text)
        for is_string, text in split_string_literals(body)
    )


def _decode(body: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise JSONRepairError(f"{e.msg} at line {e.lineno} column {e.colno}") from e


def repair_and_parse(raw: str | None) -> ParseResult:
    """Decode ``raw`` as JSON, repairing common LLM mistakes. Never raises."""
    if not raw or not raw.strip():
        return ParseResult(ok=False, error="empty response")

    body = extract_json_body(raw)
    if body is None:
        return ParseResult(ok=False, error="no JSON object found")

    last_error = ""
    for step, attempt in enumerate((lambda b: b, _repair)):
        try:
            value = _decode(attempt(body))
        except JSONRepairError as e:
            last_error = str(e)
            continue
        if step:
            logger.debug("JSON decoded after repair")
        return ParseResult(ok=True, value=value)

    logger.warning(f"Could not repair JSON from LLM output: {raw[:200]}")
    return ParseResult(ok=False, error=last_error)
