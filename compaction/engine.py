"""Context compression engine: one bounded working set per conversation."""

import logging
import math
import numbers
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from compaction import compactor, renderer
from compaction.errors import ConfigurationError
from compaction.estimator import estimate_size, total_size
from compaction.models import (
    Fragment,
    CompressionResult,
    ContextStats,
    CompressionOptions,
    DEFAULT_ARCHIVE_THRESHOLD,
    DEFAULT_CRITICAL_PRIORITY_CUTOFF,
    DEFAULT_PREVIEW_LENGTH,
)
from compaction.store import ItemStore

if TYPE_CHECKING:
    from config import Settings

logger = logging.getLogger(__name__)


def _validate_capacity(max_size: Any) -> None:
    if isinstance(max_size, bool) or not isinstance(max_size, numbers.Real):
        raise ConfigurationError(f"max_size must be a positive number, got {max_size!r}")
    if not math.isfinite(max_size) or max_size <= 0:
        raise ConfigurationError(f"max_size must be a positive finite number, got {max_size!r}")


def _validate_unit_interval(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be within [0, 1], got {value!r}")


class ContextCompressionEngine:
    """
    Keeps the context fragments of one conversation under a size budget.

    Every insert, restore and capacity change re-runs compaction; the report
    of the most recent pass is available as `last_result`. Lookups that miss
    return False instead of raising.

    Not thread-safe: use one engine per session and serialize access to it.
    """

    def __init__(
        self,
        max_size: int,
        preserve_instructions: bool = True,
        instructions: str = "",
        archive_threshold: float = DEFAULT_ARCHIVE_THRESHOLD,
        critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF,
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the engine.

        Args:
            max_size: Capacity in size units (about one token each)
            preserve_instructions: Render the pinned instructions first and charge them against capacity
            instructions: Pinned instructions text
            archive_threshold: Default cutoff for archive_below()
            critical_priority_cutoff: Fragments strictly above this priority are never evicted
            preview_length: Characters shown per archived fragment in summaries
            clock: Optional timestamp source for new fragments
        """
        _validate_capacity(max_size)
        _validate_unit_interval("archive_threshold", archive_threshold)
        _validate_unit_interval("critical_priority_cutoff", critical_priority_cutoff)
        if preview_length < 0:
            raise ConfigurationError(f"preview_length must not be negative, got {preview_length!r}")

        self.max_size = max_size
        self.preserve_instructions = preserve_instructions
        self._instructions = instructions or ""
        self.archive_threshold = archive_threshold
        self.critical_priority_cutoff = critical_priority_cutoff
        self.preview_length = preview_length

        self._store = ItemStore(clock=clock)
        self.last_result: Optional[CompressionResult] = None

    @classmethod
    def from_options(cls, options: CompressionOptions, **kwargs) -> "ContextCompressionEngine":
        """Build an engine from a CompressionOptions instance."""
        return cls(
            max_size=options.max_size,
            preserve_instructions=options.preserve_instructions,
            instructions=options.instructions,
            archive_threshold=options.archive_threshold,
            critical_priority_cutoff=options.critical_priority_cutoff,
            preview_length=options.preview_length,
            **kwargs
        )

    @classmethod
    def from_settings(cls, settings: Optional["Settings"] = None, **overrides) -> "ContextCompressionEngine":
        """Build an engine from application settings, with keyword overrides."""
        if settings is None:
            from config import get_settings
            settings = get_settings()

        params = dict(
            max_size=settings.context_max_size,
            preserve_instructions=settings.preserve_instructions,
            instructions=settings.instructions_content,
            archive_threshold=settings.archive_threshold,
            critical_priority_cutoff=settings.critical_priority_cutoff,
            preview_length=settings.preview_length,
        )
        params.update(overrides)
        return cls(**params)

    @property
    def instructions(self) -> str:
        """Pinned instructions text."""
        return self._instructions

    def set_instructions(self, content: str) -> None:
        """Replace the pinned instructions. Call compact() to re-pack against the new size."""
        self._instructions = content or ""

    @property
    def pinned_active(self) -> bool:
        """True when the instructions block is pinned."""
        return bool(self.preserve_instructions and self._instructions)

    @property
    def pinned_size(self) -> int:
        """Size charged for the pinned block during packing."""
        return estimate_size(self._instructions) if self.pinned_active else 0

    @property
    def items(self) -> List[Fragment]:
        """Resident fragments."""
        return self._store.resident

    @property
    def archived_items(self) -> List[Fragment]:
        """Archived fragments."""
        return self._store.archived

    def get(self, fragment_id: str) -> Optional[Fragment]:
        """Look up a resident or archived fragment."""
        return self._store.get(fragment_id)

    def add(self, content: str, priority: float = 0.5) -> Fragment:
        """
        Add a fragment and compact.

        The returned fragment may already be archived if it did not fit.
        """
        fragment = self._store.insert(content, priority)
        self.compact()
        return fragment

    def add_many(self, entries: List[Dict[str, Any]]) -> List[Fragment]:
        """Add several fragments given as {"content": ..., "priority": ...} dicts."""
        return [self.add(entry["content"], entry.get("priority", 0.5)) for entry in entries]

    def update_priority(self, fragment_id: str, priority: float) -> bool:
        """Change a resident fragment's priority (clamped to [0, 1]). Does not compact."""
        return self._store.update_priority(fragment_id, priority)

    def remove(self, fragment_id: str) -> bool:
        """Delete a resident fragment. Archived fragments are not affected."""
        return self._store.remove(fragment_id)

    def restore(self, fragment_id: str) -> bool:
        """Move an archived fragment back into the resident set and compact."""
        if not self._store.restore(fragment_id):
            return False
        self.compact()
        return True

    def archive_below(self, threshold: Optional[float] = None) -> int:
        """Archive resident fragments with priority below threshold (default: archive_threshold)."""
        if threshold is None:
            threshold = self.archive_threshold
        moved = self._store.archive_below(threshold)
        if moved:
            logger.info(f"Archived {moved} fragments below priority {threshold}")
        return moved

    def compact(self) -> CompressionResult:
        """Run a compaction pass and remember its report."""
        self.last_result = compactor.compact(
            self._store,
            self.max_size,
            pinned_size=self.pinned_size,
            critical_priority_cutoff=self.critical_priority_cutoff
        )
        return self.last_result

    def set_max_size(self, size: int) -> CompressionResult:
        """Change capacity and compact immediately."""
        _validate_capacity(size)
        self.max_size = size
        return self.compact()

    def current_size(self) -> int:
        """Total estimated size of the resident fragments."""
        return total_size(self._store.resident)

    def stats(self) -> ContextStats:
        """Snapshot of size and counts."""
        current = self.current_size()
        return ContextStats(
            current_size=current,
            max_size=self.max_size,
            item_count=len(self._store),
            archived_count=len(self._store.archived),
            utilization=current / self.max_size,
            pinned_size=self.pinned_size
        )

    def render(self) -> str:
        """Context text: pinned instructions, then resident fragments, then an archive note."""
        return renderer.render_context(
            self._store.resident,
            archived_count=len(self._store.archived),
            instructions=self._instructions if self.pinned_active else "",
            critical_priority_cutoff=self.critical_priority_cutoff
        )

    def summarize_archive(self, limit: int = 5) -> str:
        """Newest-first previews of up to `limit` archived fragments."""
        return renderer.summarize_archive(self._store.archived, limit=limit, preview_length=self.preview_length)

    def clear(self) -> None:
        """Drop all fragments, resident and archived."""
        self._store.clear()
        self.last_result = None

    def clear_archived(self) -> None:
        """Drop archived fragments only."""
        self._store.clear_archived()
