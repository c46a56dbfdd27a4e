# src/cache/fingerprint.py - v2
"""Request fingerprinting: (prompt, model_class, options) -> cache key.

The key is a truncated SHA-256 over a canonical JSON rendering of the
request. 32 hex characters keep 128 bits.
"""

from __future__ import annotations

import hashlib
import json

from aicache.cache.models import CacheOptions, OptionsLike, coerce_options

KEY_LENGTH = 32


def derive_key(prompt: str, model_class: str, options: OptionsLike = None) -> str:
    """Derive the cache key for a request.

    Args:
        prompt: Prompt text. Leading/trailing whitespace is ignored.
        model_class: Model class tag ("main", "analysis", "review", ...).
        options: Generation options; absent fields take their defaults.

    Returns:
        Fixed-length lowercase hex key.
    """
    canonical = _canonical_request(prompt, model_class, coerce_options(options))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def _canonical_request(prompt: str, model_class: str, options: CacheOptions) -> str:
    """Render the request with sorted keys and no insignificant whitespace."""
    key_data = {
        "prompt": prompt.strip(),
        "model_class": model_class,
        "max_tokens": options.max_tokens,
        "temperature": float(options.temperature),  # type: ignore[arg-type]
        "complexity": options.complexity,
    }
    return json.dumps(key_data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
