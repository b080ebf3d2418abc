"""Data models for the context compaction engine."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Any

from compaction.estimator import estimate_size


# Fragments strictly above this priority are never evicted
DEFAULT_CRITICAL_PRIORITY_CUTOFF = 0.9

# Fragments strictly above this priority render with the "important" marker
IMPORTANT_PRIORITY_CUTOFF = 0.6

DEFAULT_ARCHIVE_THRESHOLD = 0.3
DEFAULT_PREVIEW_LENGTH = 50


def clamp_priority(priority: float) -> float:
    """Clamp a priority into [0, 1]. NaN is rejected with ValueError."""
    value = float(priority)
    if math.isnan(value):
        raise ValueError("priority must be a number, got NaN")
    return max(0.0, min(1.0, value))


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass
class Fragment:
    """
    A single unit of context held by the engine.

    `id`, `content`, `created_at` and `sequence` are fixed at creation.
    Only `priority` (through the store) and `resident` change afterwards.
    """
    id: str
    content: str
    priority: float = 0.5
    created_at: datetime = field(default_factory=utcnow)
    sequence: int = 0
    resident: bool = True

    @property
    def archived(self) -> bool:
        """True once the fragment has been moved to the archive."""
        return not self.resident

    @property
    def size(self) -> int:
        """Estimated size of the content."""
        return estimate_size(self.content)

    @property
    def recency_key(self) -> int:
        """Sort key for creation order (oldest first). `created_at` is display only."""
        return self.sequence

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "content": self.content,
            "priority": self.priority,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "sequence": self.sequence,
            "resident": self.resident,
            "size": self.size,
        }


@dataclass
class CompressionResult:
    """Report produced by every compaction pass."""
    original_size: int
    compressed_size: int
    compression_ratio: float
    items: List[Fragment] = field(default_factory=list)
    archived_items: List[Fragment] = field(default_factory=list)
    evicted: List[Fragment] = field(default_factory=list)
    pinned_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "original_size": self.original_size,
            "compressed_size": self.compressed_size,
            "compression_ratio": self.compression_ratio,
            "items": [f.to_dict() for f in self.items],
            "archived_items": [f.to_dict() for f in self.archived_items],
            "evicted": [f.id for f in self.evicted],
            "pinned_size": self.pinned_size,
        }


@dataclass
class ContextStats:
    """Point-in-time statistics for a working set."""
    current_size: int
    max_size: int
    item_count: int
    archived_count: int
    utilization: float
    pinned_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "current_size": self.current_size,
            "max_size": self.max_size,
            "item_count": self.item_count,
            "archived_count": self.archived_count,
            "utilization": self.utilization,
            "pinned_size": self.pinned_size,
        }


@dataclass
class CompressionOptions:
    """Construction options for a ContextCompressionEngine."""
    max_size: int
    preserve_instructions: bool = True
    instructions: str = ""
    archive_threshold: float = DEFAULT_ARCHIVE_THRESHOLD
    critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF
    preview_length: int = DEFAULT_PREVIEW_LENGTH
