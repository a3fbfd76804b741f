import math
from dataclasses import dataclass

import pytest

from gotoolkit.fmtsort import SortedMap, compare, sort_map

NAN = math.nan
INF = math.inf


@dataclass(frozen=True)
class Toy:
    a: int
    b: int


@dataclass(frozen=True)
class Pair:
    x: int
    y: int


COMPARE_TESTS = [
    [-1, 0, 1],
    [0, 1, 5],
    ["", "a", "ab"],
    [b"", b"a", b"ab"],
    [NAN, -INF, -1e10, 0.0, 1e10, INF],
    [
        complex(-1, -1), complex(-1, 0), complex(-1, 1),
        complex(0, -1), complex(0, 0), complex(0, 1),
        complex(1, -1), complex(1, 0), complex(1, 1),
    ],
    [False, True],
    [Toy(0, 1), Toy(0, 2), Toy(1, -1), Toy(1, 1)],
    [(1, 1), (1, 2), (2, 0)],
    [None, 1, 2, 3],
]


@pytest.mark.parametrize("values", COMPARE_TESTS, ids=lambda v: type(v[-1]).__name__)
def test_compare(values):
    for i, v0 in enumerate(values):
        for j, v1 in enumerate(values):
            if i == j:
                expect = -1 if isinstance(v0, float) and math.isnan(v0) else 0
            elif i < j:
                expect = -1
            else:
                expect = 1
            assert compare(v0, v1) == expect, (v0, v1)


def test_compare_different_types_is_never_equal():
    assert compare(1, "a") == -1
    assert compare("a", 1) == -1


def test_compare_objects_by_identity():
    objs = [object() for _ in range(3)]
    for a in objs:
        assert compare(a, a) == 0
        for b in objs:
            if a is not b:
                assert compare(a, b) == -compare(b, a)


def test_compare_bad_type():
    with pytest.raises(TypeError, match="bad type in compare"):
        compare([1], [2])


@pytest.mark.parametrize(
    "data, keys, values",
    [
        ({7: "bar", -3: "foo"}, [-3, 7], ["foo", "bar"]),
        ({"7": "bar", "3": "foo"}, ["3", "7"], ["foo", "bar"]),
        ({True: "true", False: "false"}, [False, True], ["false", "true"]),
        (
            {Toy(7, 2): "72", Toy(7, 1): "71", Toy(3, 4): "34"},
            [Toy(3, 4), Toy(7, 1), Toy(7, 2)],
            ["34", "71", "72"],
        ),
        (
            {(7, 2): "72", (7, 1): "71", (3, 4): "34"},
            [(3, 4), (7, 1), (7, 2)],
            ["34", "71", "72"],
        ),
    ],
)
def test_order(data, keys, values):
    result = sort_map(data)
    assert result.keys == keys
    assert result.values == values
    assert list(result) == list(zip(keys, values))


def test_order_floats():
    result = sort_map({7.0: "bar", -3.0: "foo", NAN: "nan", INF: "inf"})
    assert [repr(k) for k in result.keys] == ["nan", "-3.0", "7.0", "inf"]
    assert result.values == ["nan", "foo", "bar", "inf"]


def test_order_complex():
    data = {
        complex(7, 2): "bar2",
        complex(7, 1): "bar",
        complex(-3, 0): "foo",
        complex(NAN, 0): "nan",
        complex(INF, 0): "inf",
    }
    assert sort_map(data).values == ["nan", "foo", "bar", "bar2", "inf"]


def test_order_objects_by_identity():
    objs = [object() for _ in range(3)]
    result = sort_map({o: str(i) for i, o in enumerate(objs)})
    assert [id(k) for k in result.keys] == sorted(id(o) for o in objs)
    assert len(result) == 3


def test_interface_groups():
    data = {
        (1, 0): "", (0, 1): "",
        True: "", False: "",
        3.1: "", 2.1: "", 1.1: "", NAN: "",
        4: "", 3: "", 2: "",
        "c": "", "b": "", "a": "",
        Pair(1, 0): "", Pair(0, 1): "",
    }
    keys = sort_map(data).keys
    groups = [
        (float, [NAN, 1.1, 2.1, 3.1]),
        (bool, [False, True]),
        (int, [2, 3, 4]),
        (str, ["a", "b", "c"]),
        (tuple, [(0, 1), (1, 0)]),
        (Pair, [Pair(0, 1), Pair(1, 0)]),
    ]
    for kind, expected in groups:
        positions = [i for i, k in enumerate(keys) if type(k) is kind]
        assert positions == list(range(positions[0], positions[0] + len(positions)))
        assert [repr(keys[i]) for i in positions] == [repr(e) for e in expected]


def test_none_key_sorts_first():
    result = sort_map({"x": 1, None: 0, 5: 2})
    assert result.keys[0] is None


def test_sort_map_rejects_non_mapping():
    with pytest.raises(TypeError):
        sort_map([1, 2, 3])


def test_sorted_map_default_is_empty():
    assert len(SortedMap()) == 0
    assert sort_map({}).keys == []