from functools import lru_cache

import pytest
from hypothesis import given
from hypothesis import strategies as st

from gotoolkit.misspell import almost_equal

CASES = [
    ("", "", True),
    ("", "a", True),
    ("a", "a", True),
    ("a", "b", True),
    ("hello", "hell", True),
    ("hello", "jello", True),
    ("hello", "helol", True),
    ("hello", "jelol", False),
]


@pytest.mark.parametrize("a, b, want", CASES)
def test_almost_equal(a, b, want):
    assert almost_equal(a, b) is want
    assert almost_equal(b, a) is want


@lru_cache(maxsize=None)
def _edit_distance(a: str, b: str) -> int:
    if not a and not b:
        return 0
    best = float("inf")
    if a:
        best = min(best, _edit_distance(a[1:], b) + 1)
    if b:
        best = min(best, _edit_distance(a, b[1:]) + 1)
    if a and b:
        best = min(best, _edit_distance(a[1:], b[1:]) + (a[0] != b[0]))
    if len(a) > 1 and len(b) > 1 and a[0] == b[1] and a[1] == b[0]:
        best = min(best, _edit_distance(a[2:], b[2:]) + (a[0] != b[0]))
    return best


small_text = st.text(alphabet="abcé", max_size=8)


@given(small_text, small_text)
def test_matches_edit_distance(a, b):
    got = almost_equal(a, b)
    assert got == (_edit_distance(a, b) <= 1)
    assert got == almost_equal(b, a)