"""Natural ordering for eTape IDs and measurement years.

Labels compare chunk by chunk, with digit runs taken as integers, so "E2"
precedes "E10". Labels without any digit go after the numbered ones. The
result fixes the level order of unit and year indices independently of row
order in the input file.
"""

import re
from typing import Iterable, List

import pandas as pd

_DIGIT_RUN = re.compile(r"(\d+)")


def natural_sort_key(text: str) -> tuple:
    """Sort key for a label with embedded numbers.

    Returns:
        (0 if text contains a digit else 1, chunk keys, text). Digit chunks
        compare as integers and come before letter chunks at the same
        position; letter chunks compare case-insensitively. The raw text is
        the final tie-breaker, so "E01" and "E1" stay distinct and ordered.
    """
    chunks = []
    for chunk in _DIGIT_RUN.split(text):
        if not chunk:
            continue
        chunks.append((0, int(chunk)) if chunk.isdigit() else (1, chunk.lower()))
    numbered = _DIGIT_RUN.search(text) is not None
    return (0 if numbered else 1, chunks, text)


def natural_sort(labels: Iterable[str]) -> List[str]:
    """Return labels as a new list in natural order ("E1", "E2", "E10")."""
    return sorted(labels, key=natural_sort_key)


def ordered_levels(values: Iterable) -> List[str]:
    """Distinct non-null values as strings, in natural order."""
    seen = {str(v) for v in values if pd.notna(v)}
    return natural_sort(seen)
