"""Helpers for basic spelling correction."""

from __future__ import annotations

import os


def almost_equal(a: str, b: str) -> bool:
    """Report whether a and b are within Damerau-Levenshtein distance 1.

    That is, whether one can be turned into the other by adding, removing
    or substituting a single character, or by swapping two adjacent ones.
    """
    shared = len(os.path.commonprefix([a, b]))
    a, b = a[shared:], b[shared:]
    if not a or not b:
        return len(a) + len(b) <= 1
    tail_a, tail_b = a[1:], b[1:]
    # Addition, deletion or substitution of the first differing character.
    if a == tail_b or tail_a == b or tail_a == tail_b:
        return True
    if not tail_a or not tail_b:
        return False
    # Swap of two adjacent characters.
    return a[0] == b[1] and a[1] == b[0] and a[2:] == b[2:]