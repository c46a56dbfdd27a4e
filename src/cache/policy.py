# src/cache/policy.py - v1
"""Cacheability and TTL policy as ordered rule tables.

Both tables are evaluated top to bottom and the first matching rule wins,
so the precedence is exactly the order written here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from aicache.cache.models import CacheOptions, OptionsLike, coerce_options

HOUR = 3600.0
MIN_PROMPT_LENGTH = 20
MAX_CACHEABLE_TEMPERATURE = 0.8

# Time-sensitive or intentionally non-deterministic requests.
NO_CACHE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bcurrent time\b", re.IGNORECASE),
    re.compile(r"\btoday\b", re.IGNORECASE),
    re.compile(r"\bnow\b", re.IGNORECASE),
    re.compile(r"\blatest\b", re.IGNORECASE),
    re.compile(r"\brecent(ly)?\b", re.IGNORECASE),
    re.compile(r"\bthis (week|month|year)\b", re.IGNORECASE),
    re.compile(r"\brandom\b", re.IGNORECASE),
    re.compile(r"\bgenerate\b.*\bunique\b", re.IGNORECASE),
)


# === Cacheability ===


@dataclass(frozen=True)
class CacheDecision:
    """Outcome of the cacheability policy and the rule that produced it."""

    cacheable: bool
    reason: str


@dataclass(frozen=True)
class CacheabilityRule:
    """A rule that vetoes caching when its check returns True."""

    reason: str
    check: Callable[[str, str, CacheOptions], bool]


def _is_time_sensitive(prompt: str, model_class: str, options: CacheOptions) -> bool:
    return any(p.search(prompt) for p in NO_CACHE_PATTERNS)


def _is_too_short(prompt: str, model_class: str, options: CacheOptions) -> bool:
    return len(prompt) < MIN_PROMPT_LENGTH


def _is_high_temperature(prompt: str, model_class: str, options: CacheOptions) -> bool:
    return (options.temperature or 0.0) > MAX_CACHEABLE_TEMPERATURE


CACHEABILITY_RULES: tuple[CacheabilityRule, ...] = (
    CacheabilityRule("time_sensitive", _is_time_sensitive),
    CacheabilityRule("too_short", _is_too_short),
    CacheabilityRule("high_temperature", _is_high_temperature),
)


def evaluate_cacheability(
    prompt: str,
    model_class: str,
    options: OptionsLike = None,
    rules: tuple[CacheabilityRule, ...] = CACHEABILITY_RULES,
) -> CacheDecision:
    """Run the cacheability rules in order; the first veto wins."""
    resolved = coerce_options(options)
    for rule in rules:
        if rule.check(prompt, model_class, resolved):
            return CacheDecision(cacheable=False, reason=rule.reason)
    return CacheDecision(cacheable=True, reason="cacheable")


def is_cacheable(prompt: str, model_class: str, options: OptionsLike = None) -> bool:
    """Whether a request's result may be stored and reused."""
    return evaluate_cacheability(prompt, model_class, options).cacheable


# === TTL ===


@dataclass(frozen=True)
class TTLRule:
    """Assigns ``ttl`` seconds when the model class or a keyword matches."""

    name: str
    ttl: float
    model_classes: frozenset[str] = frozenset()
    keywords: tuple[str, ...] = ()

    def matches(self, prompt: str, model_class: str) -> bool:
        if model_class in self.model_classes:
            return True
        lowered = prompt.lower()
        return any(k in lowered for k in self.keywords)


TTL_RULES: tuple[TTLRule, ...] = (
    TTLRule("stable_review", 24 * HOUR, model_classes=frozenset({"analysis", "review"})),
    TTLRule("explanation", 6 * HOUR, keywords=("explain", "documentation")),
    TTLRule("diagnostic", 6 * HOUR, model_classes=frozenset({"debug", "security"})),
)


def select_ttl(
    prompt: str,
    model_class: str,
    default_ttl: float = HOUR,
    rules: tuple[TTLRule, ...] = TTL_RULES,
) -> float:
    """Time-to-live in seconds for a cacheable request."""
    for rule in rules:
        if rule.matches(prompt, model_class):
            return rule.ttl
    return default_ttl
