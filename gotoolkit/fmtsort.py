"""Stable, total ordering of mapping entries for printing."""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

# Types that can never be mapping keys and have no defined order here.
_UNORDERED = (list, dict, set, bytearray)


@dataclass
class SortedMap:
    """A mapping's keys and values, aligned by index and sorted by key."""

    keys: list[Any] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return iter(zip(self.keys, self.values))


def sort_map(mapping: Mapping[Any, Any]) -> SortedMap:
    """Return the entries of ``mapping`` in a stable order sorted by key.

    The ordering rules are more general than Python's ``<``:

    - None compares low
    - ints, floats, strings and bytes order by ``<``
    - NaN compares less than non-NaN floats
    - False sorts before True
    - complex numbers compare real, then imaginary part
    - tuples and dataclass instances compare element by element,
      then by length
    - other objects compare by identity
    - keys of different types are grouped by type first
    """
    if not isinstance(mapping, Mapping):
        raise TypeError(f"sort_map needs a mapping, got {type(mapping).__name__}")
    items = sorted(
        mapping.items(), key=cmp_to_key(lambda p, q: _compare_any(p[0], q[0]))
    )
    return SortedMap([k for k, _ in items], [v for _, v in items])


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _float_compare(a: float, b: float) -> int:
    """Compare floats; NaN compares low."""
    if math.isnan(a):
        return -1
    if math.isnan(b):
        return 1
    return _cmp(a, b)


def _nil_compare(a: Any, b: Any) -> int:
    if a is None:
        return 0 if b is None else -1
    return 1


def _type_key(kind: type) -> tuple[str, str, int]:
    return (kind.__module__, kind.__qualname__, id(kind))


def _compare_any(a: Any, b: Any) -> int:
    """Compare values of any type: by type first, then by value."""
    if a is None or b is None:
        return _nil_compare(a, b)
    if type(a) is not type(b):
        return _cmp(_type_key(type(a)), _type_key(type(b)))
    return compare(a, b)


def _compare_sequences(a: Any, b: Any) -> int:
    for x, y in zip(a, b):
        c = _compare_any(x, y)
        if c:
            return c
    return _cmp(len(a), len(b))


def compare(a: Any, b: Any) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``.

    Values of different types give -1: there is no good answer, but they
    are not equal. See :func:`sort_map` for the rules.
    """
    if a is None or b is None:
        return _nil_compare(a, b)
    if type(a) is not type(b):
        return -1
    if isinstance(a, float):
        return _float_compare(a, b)
    if isinstance(a, complex):
        return _float_compare(a.real, b.real) or _float_compare(a.imag, b.imag)
    if isinstance(a, (int, str, bytes)):
        return _cmp(a, b)
    if isinstance(a, tuple):
        return _compare_sequences(a, b)
    if dataclasses.is_dataclass(a) and not isinstance(a, type):
        names = [f.name for f in dataclasses.fields(a)]
        return _compare_sequences(
            [getattr(a, n) for n in names], [getattr(b, n) for n in names]
        )
    if isinstance(a, _UNORDERED):
        raise TypeError(f"bad type in compare: {type(a).__name__}")
    return _cmp(id(a), id(b))