"""Size estimation for context fragments."""

import math
from typing import Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from compaction.models import Fragment

# Roughly four characters per token for English prose
CHARS_PER_UNIT = 4


def estimate_size(text: str) -> int:
    """
    Estimate the cost of a piece of text in size units.

    Pure function of the text: ceil(len(text) / 4). Never negative and
    never decreases as the text grows.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_UNIT)


def total_size(fragments: Iterable["Fragment"]) -> int:
    """Sum of estimated sizes over fragments."""
    return sum(estimate_size(f.content) for f in fragments)
