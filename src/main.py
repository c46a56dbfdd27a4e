# src/main.py - v2
"""CLI entry point: diagnostics and maintenance for the durable response cache.

Usage:
    aicache key <prompt> [options]
    aicache stats
    aicache purge
    aicache clear
    aicache warmup [prompts...]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
import uuid
from collections import Counter
from typing import TYPE_CHECKING

from aicache.logging.context import clear_context, set_request_context
from aicache.logging.logger import get_logger
from aicache.version import __version__

if TYPE_CHECKING:
    from aicache.cache.durable_tier import DurableTier
    from aicache.config.settings import Settings
    from aicache.storage.base_document_store import BaseDocumentStore

logger = get_logger("cli")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        from aicache.config.settings import load_settings

        settings = load_settings()
        _setup_logging(settings, args.verbose)
        # One request context per invocation; asyncio.run copies it into the loop
        set_request_context(
            uuid.uuid4().hex[:12],
            tool=args.command,
            model_class=getattr(args, "model_class", None),
        )
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1
    finally:
        clear_context()


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="aicache",
        description=f"aicache v{__version__} - AI response cache tooling",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- key ---
    p_key = subparsers.add_parser(
        "key", help="Show the cache key and policy decision for a prompt",
    )
    p_key.add_argument("prompt", help="Prompt text")
    p_key.add_argument(
        "-m", "--model-class", default="main",
        help="Model class: main, analysis, review, debug, security (default: main)",
    )
    p_key.add_argument("--max-tokens", type=int, default=None)
    p_key.add_argument("--temperature", type=float, default=None)
    p_key.add_argument("--complexity", default=None)
    p_key.set_defaults(func=_cmd_key)

    # --- stats ---
    p_stats = subparsers.add_parser(
        "stats", help="Summarize the durable cache document",
    )
    p_stats.set_defaults(func=_cmd_stats)

    # --- purge ---
    p_purge = subparsers.add_parser(
        "purge", help="Remove expired entries from the durable cache",
    )
    p_purge.set_defaults(func=_cmd_purge)

    # --- clear ---
    p_clear = subparsers.add_parser(
        "clear", help="Empty the durable cache",
    )
    p_clear.set_defaults(func=_cmd_clear)

    # --- warmup ---
    p_warmup = subparsers.add_parser(
        "warmup", help="Derive keys for representative prompts",
    )
    p_warmup.add_argument("prompts", nargs="*", help="Extra prompts")
    p_warmup.set_defaults(func=_cmd_warmup)

    return parser


async def _cmd_key(args: argparse.Namespace, settings: Settings) -> int:
    """Print key, cacheability and TTL for one prompt."""
    from aicache.cache.fingerprint import derive_key
    from aicache.cache.policy import evaluate_cacheability, select_ttl

    options = {
        "max_tokens": args.max_tokens,
        "temperature": args.temperature,
        "complexity": args.complexity,
    }
    decision = evaluate_cacheability(args.prompt, args.model_class, options)
    ttl = select_ttl(
        args.prompt, args.model_class, default_ttl=settings.cache_default_ttl_s
    )

    print(f"Key:        {derive_key(args.prompt, args.model_class, options)}")
    print(f"Cacheable:  {'yes' if decision.cacheable else 'no'} ({decision.reason})")
    if decision.cacheable:
        print(f"TTL:        {ttl / 3600:.1f}h")
    return 0


async def _cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    """Display durable cache contents."""
    from aicache.cache.models import payload_size

    durable, store = _open_durable_tier(settings)
    try:
        records = await durable.records()
    finally:
        store.close()

    now = time.time()
    live = sum(1 for r in records.values() if r.is_live(now))
    by_class = Counter(r.model_class for r in records.values())
    total_bytes = sum(payload_size(r.data) for r in records.values())

    print(f"\nDurable cache '{durable.document_name}':")
    print(f"  Records:    {len(records)}")
    print(f"  Live:       {live}")
    print(f"  Expired:    {len(records) - live}")
    print(f"  Size:       {total_bytes / 1024:.2f} KB")
    for model_class, count in sorted(by_class.items()):
        print(f"    {model_class:<10s} {count}")
    return 0


async def _cmd_purge(args: argparse.Namespace, settings: Settings) -> int:
    """Run one expiry sweep over the durable cache."""
    durable, store = _open_durable_tier(settings)
    try:
        removed = await durable.purge_expired(time.time())
    finally:
        store.close()
    print(f"Purged {removed} expired record(s)")
    return 0


async def _cmd_clear(args: argparse.Namespace, settings: Settings) -> int:
    """Empty the durable cache."""
    durable, store = _open_durable_tier(settings)
    try:
        cleared = await durable.clear()
    finally:
        store.close()
    if not cleared:
        logger.error("Durable cache could not be cleared")
        return 1
    print("Durable cache cleared")
    return 0


async def _cmd_warmup(args: argparse.Namespace, settings: Settings) -> int:
    """Print warmup keys for the given and configured prompts."""
    from aicache.cache.cache_factory import cache_config_from_settings
    from aicache.cache.response_cache import ResponseCache

    cache = ResponseCache(store=None, config=cache_config_from_settings(settings))
    prompts = [*args.prompts, *cache.config.warmup_prompts]
    for prompt, key in zip(prompts, cache.warmup(args.prompts)):
        print(f"{key}  {prompt[:60]}")
    return 0


def _open_durable_tier(settings: Settings) -> tuple[DurableTier, BaseDocumentStore]:
    """Build the durable tier configured by settings."""
    from aicache.cache.durable_tier import DurableTier
    from aicache.storage.retry import RetryConfig
    from aicache.storage.store_factory import create_document_store

    store = create_document_store(settings)
    durable = DurableTier(
        store,
        document_name=settings.cache_document_name,
        size_threshold=settings.cache_persist_size_threshold,
        retry=RetryConfig(
            max_retries=settings.cache_io_retries,
            base_delay_s=settings.cache_io_retry_delay_s,
        ),
    )
    return durable, store


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging from LOG_* settings; --verbose forces DEBUG."""
    from aicache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
