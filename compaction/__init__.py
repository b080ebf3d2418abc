"""Context compaction engine: bounded working set of prompt context fragments."""

from compaction.errors import CompactionError, ConfigurationError
from compaction.estimator import estimate_size, total_size
from compaction.models import (
    Fragment,
    CompressionResult,
    ContextStats,
    CompressionOptions,
    DEFAULT_CRITICAL_PRIORITY_CUTOFF,
)
from compaction.store import ItemStore
from compaction.compactor import compact, presentation_order
from compaction.renderer import render_context, summarize_archive
from compaction.engine import ContextCompressionEngine

__version__ = "0.1.0"

__all__ = [
    "CompactionError",
    "ConfigurationError",
    "estimate_size",
    "total_size",
    "Fragment",
    "CompressionResult",
    "ContextStats",
    "CompressionOptions",
    "DEFAULT_CRITICAL_PRIORITY_CUTOFF",
    "ItemStore",
    "compact",
    "presentation_order",
    "render_context",
    "summarize_archive",
    "ContextCompressionEngine",
]
