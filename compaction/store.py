"""Resident and archived fragment collections."""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from compaction.models import Fragment, clamp_priority, utcnow

logger = logging.getLogger(__name__)


class ItemStore:
    """
    Ordered resident fragments plus a separate archive.

    The two collections are disjoint by id. Archived fragments are kept
    until explicitly purged so their history stays queryable.
    """

    ID_PREFIX = "ctx_"

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utcnow
        self._resident: List[Fragment] = []
        self._archived: List[Fragment] = []
        self._id_counter = 0

    @property
    def resident(self) -> List[Fragment]:
        """Copy of the resident fragments in current order."""
        return list(self._resident)

    @property
    def archived(self) -> List[Fragment]:
        """Copy of the archived fragments in archive order."""
        return list(self._archived)

    def __len__(self) -> int:
        return len(self._resident)

    def insert(self, content: str, priority: float = 0.5) -> Fragment:
        """Create a resident fragment and append it to the resident set."""
        priority = clamp_priority(priority)
        self._id_counter += 1
        fragment = Fragment(
            id=f"{self.ID_PREFIX}{self._id_counter}",
            content=content,
            priority=priority,
            created_at=self._clock(),
            sequence=self._id_counter,
            resident=True,
        )
        self._resident.append(fragment)
        logger.debug(f"Inserted {fragment.id} (priority={fragment.priority}, size={fragment.size})")
        return fragment

    def get(self, fragment_id: str) -> Optional[Fragment]:
        """Look up a fragment in either collection."""
        return self._find(self._resident, fragment_id) or self._find(self._archived, fragment_id)

    def get_resident(self, fragment_id: str) -> Optional[Fragment]:
        """Look up a resident fragment."""
        return self._find(self._resident, fragment_id)

    def get_archived(self, fragment_id: str) -> Optional[Fragment]:
        """Look up an archived fragment."""
        return self._find(self._archived, fragment_id)

    def update_priority(self, fragment_id: str, priority: float) -> bool:
        """Set a resident fragment's priority, clamped to [0, 1]."""
        fragment = self.get_resident(fragment_id)
        if fragment is None:
            return False
        fragment.priority = clamp_priority(priority)
        return True

    def remove(self, fragment_id: str) -> bool:
        """Delete a resident fragment outright."""
        fragment = self.get_resident(fragment_id)
        if fragment is None:
            return False
        self._resident.remove(fragment)
        logger.debug(f"Removed {fragment_id}")
        return True

    def restore(self, fragment_id: str) -> bool:
        """Move an archived fragment back to the end of the resident set."""
        fragment = self.get_archived(fragment_id)
        if fragment is None:
            return False
        self._archived.remove(fragment)
        fragment.resident = True
        self._resident.append(fragment)
        logger.debug(f"Restored {fragment_id}")
        return True

    def archive(self, fragments: Iterable[Fragment]) -> int:
        """Move the given resident fragments into the archive."""
        moved = 0
        for candidate in fragments:
            fragment = self.get_resident(candidate.id)
            if fragment is None:
                continue
            self._resident.remove(fragment)
            fragment.resident = False
            self._archived.append(fragment)
            moved += 1
        return moved

    def archive_below(self, threshold: float) -> int:
        """Archive every resident fragment with priority < threshold."""
        return self.archive([f for f in self._resident if f.priority < threshold])

    def replace_resident(self, fragments: List[Fragment]) -> None:
        """Install a new resident ordering; every fragment must already be resident."""
        current = {f.id for f in self._resident}
        if {f.id for f in fragments} != current or len(fragments) != len(current):
            raise ValueError("replacement must contain exactly the resident fragments")
        self._resident = list(fragments)

    def clear(self) -> None:
        """Drop every fragment. The id counter keeps running so ids are never reused."""
        self._resident = []
        self._archived = []

    def clear_archived(self) -> None:
        """Drop archived fragments only."""
        self._archived = []

    @staticmethod
    def _find(fragments: List[Fragment], fragment_id: str) -> Optional[Fragment]:
        for fragment in fragments:
            if fragment.id == fragment_id:
                return fragment
        return None
