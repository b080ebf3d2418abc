"""Prompt-ready rendering of the working set and archive summaries."""

from typing import List

from compaction.compactor import presentation_order
from compaction.models import (
    Fragment,
    DEFAULT_CRITICAL_PRIORITY_CUTOFF,
    DEFAULT_PREVIEW_LENGTH,
    IMPORTANT_PRIORITY_CUTOFF,
)

INSTRUCTIONS_HEADER = "📋 INSTRUCTIONS:"
ARCHIVE_SUMMARY_HEADER = "📦 Archived Context Summary:"
EMPTY_ARCHIVE_MESSAGE = "No archived items to summarize."
ELLIPSIS = "..."

CRITICAL_MARKER = "⭐"
IMPORTANT_MARKER = "📌"
NORMAL_MARKER = "📝"


def priority_marker(
    priority: float,
    critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF
) -> str:
    """Marker for one of the three priority tiers."""
    if priority > critical_priority_cutoff:
        return CRITICAL_MARKER
    if priority > IMPORTANT_PRIORITY_CUTOFF:
        return IMPORTANT_MARKER
    return NORMAL_MARKER


def preview(content: str, length: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """First `length` characters, with an ellipsis when truncated."""
    if len(content) > length:
        return content[:length] + ELLIPSIS
    return content


def render_context(
    fragments: List[Fragment],
    archived_count: int = 0,
    instructions: str = "",
    critical_priority_cutoff: float = DEFAULT_CRITICAL_PRIORITY_CUTOFF
) -> str:
    """
    Format the resident set for inclusion in a prompt.

    Args:
        fragments: Resident fragments, in any order
        archived_count: Number of archived fragments to mention at the end
        instructions: Pinned instructions; rendered first when non-empty
        critical_priority_cutoff: Cutoff used for ordering and markers

    Returns:
        Context text
    """
    parts = []

    if instructions:
        parts.append(f"{INSTRUCTIONS_HEADER}\n{instructions}\n\n")

    ordered = presentation_order(fragments, critical_priority_cutoff)
    for i, fragment in enumerate(ordered, start=1):
        marker = priority_marker(fragment.priority, critical_priority_cutoff)
        parts.append(f"{marker} [{i}] {fragment.content}\n\n")

    if archived_count > 0:
        parts.append(f"\n--- Previous context archived ({archived_count} items) ---\n")

    return "".join(parts)


def summarize_archive(
    archived: List[Fragment],
    limit: int = 5,
    preview_length: int = DEFAULT_PREVIEW_LENGTH
) -> str:
    """Short newest-first listing of archived fragments."""
    recent = sorted(archived, key=lambda f: f.recency_key, reverse=True)[:max(limit, 0)]

    if not recent:
        return EMPTY_ARCHIVE_MESSAGE

    lines = [f"{ARCHIVE_SUMMARY_HEADER}\n"]
    for i, fragment in enumerate(recent, start=1):
        lines.append(f"{i}. [{fragment.created_at.isoformat()}] {preview(fragment.content, preview_length)}\n")

    return "".join(lines)
