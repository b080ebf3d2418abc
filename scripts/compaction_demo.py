#!/usr/bin/env python3
"""
Walk through a context compaction session from the command line.

Usage:
    python -m scripts.compaction_demo
    python -m scripts.compaction_demo --max-size 120 --extra-items 20 --log-level DEBUG
"""

import argparse
import logging
import sys

from compaction import ContextCompressionEngine
from logging_config import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS = "You are a helpful AI assistant. Always provide accurate and concise responses."

SEED_ITEMS = [
    {"content": "User asked about weather in Tokyo", "priority": 0.3},
    {"content": "User prefers concise responses", "priority": 0.8},
    {"content": "Previous conversation about Python programming", "priority": 0.4},
    {"content": "User is a developer working on web apps", "priority": 0.7},
    {"content": "Session started at 10:00 AM", "priority": 0.2},
    {"content": "User mentioned they like TypeScript", "priority": 0.6},
]


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Demonstrate priority-based context compaction",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--max-size',
        type=int,
        default=100,
        help='Capacity in size units (default: 100)'
    )
    parser.add_argument(
        '--instructions',
        default=DEFAULT_INSTRUCTIONS,
        help='Pinned instructions text'
    )
    parser.add_argument(
        '--no-pin',
        action='store_true',
        help='Do not pin the instructions block'
    )
    parser.add_argument(
        '--extra-items',
        type=int,
        default=10,
        help='Number of extra items to add after the seed items (default: 10)'
    )
    parser.add_argument(
        '--summary-limit',
        type=int,
        default=5,
        help='Archived items to show in the summary (default: 5)'
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Log level (default: INFO)'
    )
    return parser.parse_args(argv)


def print_stats(title: str, engine: ContextCompressionEngine):
    """Print a stats block."""
    stats = engine.stats()
    print(f"\n📊 {title}:")
    print(f"   Current Size: {stats.current_size} units")
    print(f"   Max Size: {stats.max_size} units")
    print(f"   Pinned Size: {stats.pinned_size} units")
    print(f"   Item Count: {stats.item_count}")
    print(f"   Archived Count: {stats.archived_count}")
    print(f"   Utilization: {stats.utilization * 100:.1f}%")


def run_demo(args) -> ContextCompressionEngine:
    """Run the walkthrough and return the engine for inspection."""
    engine = ContextCompressionEngine(
        max_size=args.max_size,
        preserve_instructions=not args.no_pin,
        instructions=args.instructions
    )

    print("\n📝 Adding context items...")
    engine.add_many(SEED_ITEMS)
    print(f"   Added {len(SEED_ITEMS)} context items")
    print_stats("Context Stats", engine)

    print("\n📝 Adding more items to trigger compaction...")
    for i in range(args.extra_items):
        priority = round(0.3 + i * 0.05, 2)
        engine.add(f"Additional context item number {i + 1} with some content", priority)

    print_stats("After Compaction", engine)
    if engine.last_result is not None:
        print(f"   Last compression ratio: {engine.last_result.compression_ratio:.2f}")

    print("\n📄 Formatted Context:")
    print(engine.render())

    print(engine.summarize_archive(args.summary_limit))
    return engine


def main(argv=None) -> int:
    """CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level, "text")

    try:
        run_demo(args)
    except Exception as e:
        logger.error(f"Demo failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
