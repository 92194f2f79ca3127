"""IntelligentCache — multi-tier in-memory cache for transformation results.

Four tiers with independent TTL and size bounds:

* ``session``   : owner-scoped results (24 h)
* ``semantic``  : global results keyed by a semantic hash of the input (7 d)
* ``template``  : prompt templates keyed by type + parameters (30 d)
* ``result_set``: lists of items keyed by query + filters (24 h)

Expired entries are purged lazily (on lookup and on write); when a tier grows
past ``max_size`` it is trimmed to ``keep_ratio`` of the bound, keeping the
entries with the highest ``quality + usage``.

Usage:
    cache = IntelligentCache()
    cache.store("Texto", TransformationType.SYNONYMS, config, result, owner_id="u1")
    hit = cache.lookup("texto!", TransformationType.SYNONYMS, config, owner_id="u1")
    hit.tier     # "session"
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import math
import re
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable

from pydantic import BaseModel

from redigir.heuristics import HeuristicQualityScorer, QualityScorer
from redigir.models import CacheConfig, TierPolicy, TransformationType

logger = logging.getLogger("redigir.cache")

TIERS = ("session", "semantic", "template", "result_set")

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_SPACE_RE = re.compile(r"\s+")


@dataclass
class CacheEntry:
    """Single cached payload with bookkeeping for TTL and eviction."""
    payload: Any
    created_at: float
    last_access_at: float
    usage_count: int = 0
    quality_score: float = 50.0

    @property
    def rank(self) -> float:
        return self.quality_score + self.usage_count


@dataclass
class CacheHit:
    payload: Any
    tier: str


def normalize_content(content: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    return _SPACE_RE.sub(" ", _PUNCT_RE.sub("", content.lower())).strip()


def _serialize(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


def semantic_hash(content: str, transformation_type: TransformationType | str, config: Any = None) -> str:
    """16-hex-char digest of normalized content, type and config (sorted keys).

    Inputs that differ only in case, punctuation or whitespace share a hash.
    """
    ttype = transformation_type.value if isinstance(transformation_type, TransformationType) else str(transformation_type)
    raw = f"{normalize_content(content)}|{ttype}|{_serialize(config)}"
    return hashlib.md5(raw.encode("utf-8"), usedforsecurity=False).hexdigest()[:16]


@dataclass
class IntelligentCache:
    config: CacheConfig = field(default_factory=CacheConfig)
    clock: Callable[[], float] = time.time
    quality_scorer: QualityScorer = field(default_factory=HeuristicQualityScorer)
    _tiers: dict[str, dict[str, CacheEntry]] = field(default_factory=lambda: {t: {} for t in TIERS})
    _lock: RLock = field(default_factory=RLock)

    # ------------------------------------------------------------------
    # Transformation results
    # ------------------------------------------------------------------

    def lookup(
        self,
        content: str,
        transformation_type: TransformationType,
        config: Any,
        owner_id: str | None = None,
    ) -> CacheHit | None:
        """Session tier first (when an owner is given), then the semantic tier."""
        key = semantic_hash(content, transformation_type, config)
        with self._lock:
            if owner_id:
                payload = self._get("session", self._session_key(owner_id, transformation_type, key))
                if payload is not None:
                    logger.debug(f"Cache hit (session) {key} for owner {owner_id}")
                    return CacheHit(payload=payload, tier="session")
            payload = self._get("semantic", key)
            if payload is not None:
                logger.debug(f"Cache hit (semantic) {key}")
                return CacheHit(payload=payload, tier="semantic")
        return None

    def store(
        self,
        content: str,
        transformation_type: TransformationType,
        config: Any,
        result: Any,
        owner_id: str | None = None,
    ) -> str:
        """Write a result to the semantic tier, and to the session tier for an owner. Returns the hash."""
        key = semantic_hash(content, transformation_type, config)
        quality = self.quality_scorer.score(result)
        with self._lock:
            self._put("semantic", key, result, quality)
            if owner_id:
                self._put("session", self._session_key(owner_id, transformation_type, key), result, quality)
        logger.debug(f"Cache store {key} (quality={quality:.0f}, owner={owner_id})")
        return key

    # ------------------------------------------------------------------
    # Templates and result sets
    # ------------------------------------------------------------------

    def get_template(self, transformation_type: TransformationType | str, params: dict[str, Any]) -> Any | None:
        with self._lock:
            return self._get("template", self._template_key(transformation_type, params))

    def set_template(self, transformation_type: TransformationType | str, params: dict[str, Any], template: Any) -> None:
        with self._lock:
            self._put("template", self._template_key(transformation_type, params), template,
                      self.quality_scorer.score(template))

    def get_result_set(self, query: str, filters: dict[str, Any] | None = None) -> list[Any] | None:
        with self._lock:
            return self._get("result_set", self._result_set_key(query, filters))

    def set_result_set(self, query: str, filters: dict[str, Any] | None, items: list[Any]) -> None:
        with self._lock:
            self._put("result_set", self._result_set_key(query, filters), list(items), HeuristicQualityScorer.base)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup(self) -> dict[str, int]:
        """Purge expired entries and trim oversized tiers. Returns removed count per tier."""
        removed: dict[str, int] = {}
        with self._lock:
            for tier in TIERS:
                before = len(self._tiers[tier])
                self._purge_expired(tier)
                self._evict_if_needed(tier)
                removed[tier] = before - len(self._tiers[tier])
        if any(removed.values()):
            logger.info(f"Cache cleanup removed {removed}")
        return removed

    def stats(self) -> dict[str, dict[str, float]]:
        """Per-tier size and average usage count."""
        with self._lock:
            result: dict[str, dict[str, float]] = {}
            for tier, entries in self._tiers.items():
                total_usage = sum(e.usage_count for e in entries.values())
                result[tier] = {
                    "size": len(entries),
                    "max_size": self._policy(tier).max_size,
                    "avg_usage": total_usage / len(entries) if entries else 0.0,
                }
            return result

    def clear(self) -> None:
        with self._lock:
            for entries in self._tiers.values():
                entries.clear()

    def size(self, tier: str) -> int:
        with self._lock:
            return len(self._tiers[tier])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _policy(self, tier: str) -> TierPolicy:
        return getattr(self.config, tier)

    def _expired(self, tier: str, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self._policy(tier).ttl_seconds

    def _get(self, tier: str, key: str) -> Any | None:
        entries = self._tiers[tier]
        entry = entries.get(key)
        if entry is None:
            return None
        now = self.clock()
        if self._expired(tier, entry, now):
            del entries[key]
            return None
        entry.usage_count += 1
        entry.last_access_at = now
        return copy.deepcopy(entry.payload)

    def _put(self, tier: str, key: str, payload: Any, quality: float) -> None:
        now = self.clock()
        self._tiers[tier][key] = CacheEntry(
            payload=copy.deepcopy(payload),
            created_at=now,
            last_access_at=now,
            quality_score=quality,
        )
        self._purge_expired(tier)
        self._evict_if_needed(tier)

    def _purge_expired(self, tier: str) -> None:
        now = self.clock()
        entries = self._tiers[tier]
        for key in [k for k, e in entries.items() if self._expired(tier, e, now)]:
            del entries[key]

    def _evict_if_needed(self, tier: str) -> None:
        policy = self._policy(tier)
        entries = self._tiers[tier]
        if len(entries) <= policy.max_size:
            return
        keep = max(1, math.floor(policy.max_size * self.config.keep_ratio))
        ranked = sorted(entries.items(), key=lambda kv: kv[1].rank, reverse=True)
        self._tiers[tier] = dict(ranked[:keep])
        logger.debug(f"Evicted {len(entries) - keep} entries from {tier} tier")

    @staticmethod
    def _session_key(owner_id: str, transformation_type: TransformationType, key: str) -> str:
        return f"{owner_id}:{transformation_type.value}:{key}"

    @staticmethod
    def _template_key(transformation_type: TransformationType | str, params: dict[str, Any]) -> str:
        ttype = transformation_type.value if isinstance(transformation_type, TransformationType) else str(transformation_type)
        return f"{ttype}:{_serialize(params)}"

    @staticmethod
    def _result_set_key(query: str, filters: dict[str, Any] | None) -> str:
        return semantic_hash(query, "result_set", filters or {})
