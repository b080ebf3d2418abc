"""
Greedy priority packing for the resident working set.

A pass only does work when the resident fragments exceed capacity. Then:
critical fragments (priority above the cutoff) are always kept, the pinned
instructions and the critical fragments are charged against capacity first,
and regular fragments are accepted in descending priority order until the
first one that does not fit. That fragment and everything sorted after it
is archived.
"""

import logging
from typing import List, Tuple

from compaction.estimator import estimate_size, total_size
from compaction.models import (
    Fragment,
    CompressionResult,
    DEFAULT_CRITICAL_PRIORITY_CUTOFF,
)
from compaction.store import ItemStore

logger = logging.getLogger(__name__)


def is_critical(fragment: Fragment, cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF) -> bool:
    """Critical means strictly above the cutoff; the cutoff itself is regular."""
    return fragment.priority > cutoff


def presentation_order(
    fragments: List[Fragment],
    critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF
) -> List[Fragment]:
    """Critical fragments first, then everything else; newest first within each group."""
    newest_first = sorted(fragments, key=lambda f: f.recency_key, reverse=True)
    critical = [f for f in newest_first if is_critical(f, critical_priority_cutoff)]
    regular = [f for f in newest_first if not is_critical(f, critical_priority_cutoff)]
    return critical + regular


def select_fragments(
    fragments: List[Fragment],
    max_size: int,
    pinned_size: int = 0,
    critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF
) -> Tuple[List[Fragment], List[Fragment]]:
    """
    Decide which fragments stay resident.

    Does not mutate anything. Assumes the caller already knows the set is
    over capacity.

    Args:
        fragments: Current resident fragments
        max_size: Capacity in size units
        pinned_size: Size of the pinned instructions block (0 if none)
        critical_priority_cutoff: Priority above which a fragment is never evicted

    Returns:
        (kept fragments in presentation order, evicted fragments in sort order)
    """
    critical = [f for f in fragments if is_critical(f, critical_priority_cutoff)]
    regular = [f for f in fragments if not is_critical(f, critical_priority_cutoff)]

    available = max_size - pinned_size - total_size(critical)

    # Highest priority first; earlier insertion wins ties
    candidates = sorted(regular, key=lambda f: (-f.priority, f.sequence))

    kept: List[Fragment] = []
    used = 0
    for index, fragment in enumerate(candidates):
        size = estimate_size(fragment.content)
        if used + size > available:
            evicted = candidates[index:]
            break
        kept.append(fragment)
        used += size
    else:
        evicted = []

    return presentation_order(critical + kept, critical_priority_cutoff), evicted


def compact(
    store: ItemStore,
    max_size: int,
    pinned_size: int = 0,
    critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF
) -> CompressionResult:
    """
    Run one compaction pass over the store's resident set.

    Args:
        store: Working set to compact in place
        max_size: Capacity in size units
        pinned_size: Size of the pinned instructions block (0 if none)
        critical_priority_cutoff: Priority above which a fragment is never evicted

    Returns:
        CompressionResult describing the pass
    """
    resident = store.resident
    original_size = total_size(resident)

    if original_size <= max_size:
        logger.debug(f"Within capacity ({original_size}/{max_size}), nothing to compact")
        return CompressionResult(
            original_size=original_size,
            compressed_size=original_size,
            compression_ratio=1.0,
            items=resident,
            archived_items=store.archived,
            evicted=[],
            pinned_size=pinned_size
        )

    kept, evicted = select_fragments(
        resident,
        max_size,
        pinned_size=pinned_size,
        critical_priority_cutoff=critical_priority_cutoff
    )

    store.archive(evicted)
    store.replace_resident(kept)

    compressed_size = total_size(kept)
    ratio = compressed_size / original_size if original_size > 0 else 1.0

    logger.info(
        f"Compacted context {original_size} -> {compressed_size} units "
        f"(capacity={max_size}, pinned={pinned_size}): "
        f"kept {len(kept)}, archived {len(evicted)}"
    )

    return CompressionResult(
        original_size=original_size,
        compressed_size=compressed_size,
        compression_ratio=ratio,
        items=store.resident,
        archived_items=store.archived,
        evicted=list(evicted),
        pinned_size=pinned_size
    )
