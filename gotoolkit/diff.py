"""Anchored unified diffs of two texts."""

from __future__ import annotations

from bisect import bisect_left

_CONTEXT = 3
_NO_NEWLINE = b"\n\\ No newline at end of file\n"


def diff(old_name: str, old: bytes, new_name: str, new: bytes) -> bytes:
    """Return an anchored diff of ``old`` and ``new`` in unified format.

    The diff minimises the number of inserted and removed lines that are
    unique in both texts, which runs in O(n log n) time. Identical inputs
    give empty output.
    """
    if old == new:
        return b""
    x = _lines(old)
    y = _lines(new)

    out = [
        f"diff {old_name} {new_name}\n".encode(),
        f"--- {old_name}\n".encode(),
        f"+++ {new_name}\n".encode(),
    ]

    done_x = done_y = 0  # printed up to x[:done_x] and y[:done_y]
    chunk_x = chunk_y = 0  # start lines of the current chunk
    count_x = count_y = 0  # lines from each side in the current chunk
    ctext: list[bytes] = []

    for match_x, match_y in _tgs(x, y):
        if match_x < done_x:
            continue

        start_x, start_y = match_x, match_y
        while start_x > done_x and start_y > done_y and x[start_x - 1] == y[start_y - 1]:
            start_x -= 1
            start_y -= 1
        end_x, end_y = match_x, match_y
        while end_x < len(x) and end_y < len(y) and x[end_x] == y[end_y]:
            end_x += 1
            end_y += 1

        removed = x[done_x:start_x]
        added = y[done_y:start_y]
        ctext.extend(b"-" + line for line in removed)
        ctext.extend(b"+" + line for line in added)
        count_x += len(removed)
        count_y += len(added)

        common = end_x - start_x
        at_eof = end_x >= len(x) and end_y >= len(y)
        if not at_eof and (common < _CONTEXT or (ctext and common < 2 * _CONTEXT)):
            ctext.extend(b" " + line for line in x[start_x:end_x])
            count_x += common
            count_y += common
            done_x, done_y = end_x, end_y
            continue

        if ctext:
            n = min(common, _CONTEXT)
            ctext.extend(b" " + line for line in x[start_x:start_x + n])
            count_x += n
            count_y += n
            done_x, done_y = start_x + n, start_y + n

            # Line numbers are 1-based, except that an empty side shows as 0,0.
            if count_x > 0:
                chunk_x += 1
            if count_y > 0:
                chunk_y += 1
            out.append(f"@@ -{chunk_x},{count_x} +{chunk_y},{count_y} @@\n".encode())
            out.extend(ctext)
            count_x = count_y = 0
            ctext = []

        if at_eof:
            break

        chunk_x, chunk_y = end_x - _CONTEXT, end_y - _CONTEXT
        context = x[chunk_x:end_x]
        ctext.extend(b" " + line for line in context)
        count_x += len(context)
        count_y += len(context)
        done_x, done_y = end_x, end_y

    return b"".join(out)


def _lines(data: bytes) -> list[bytes]:
    """Split ``data`` into lines that keep their newlines.

    A final line without a newline gets the standard marker attached.
    """
    parts = data.split(b"\n")
    lines = [part + b"\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1] + _NO_NEWLINE)
    return lines


def _tgs(x: list[bytes], y: list[bytes]) -> list[tuple[int, int]]:
    """Return index pairs of the longest common subsequence of unique lines.

    A unique line appears exactly once in x and once in y. The result starts
    with (0, 0) and ends with (len(x), len(y)) as sentinels.
    """
    # Occurrences are tracked as 0, 1, many: 0, -1, -2 for x and 0, -4, -8
    # for y, so that line numbers stored later stay distinguishable.
    counts: dict[bytes, int] = {}
    for line in x:
        current = counts.get(line, 0)
        if current > -2:
            counts[line] = current - 1
    for line in y:
        current = counts.get(line, 0)
        if current > -8:
            counts[line] = current - 4

    yi: list[int] = []
    for index, line in enumerate(y):
        if counts.get(line) == -1 + -4:
            counts[line] = len(yi)
            yi.append(index)
    xi: list[int] = []
    inv: list[int] = []
    for index, line in enumerate(x):
        j = counts.get(line, -1)
        if j >= 0:
            xi.append(index)
            inv.append(j)

    # Szymanski's Algorithm A with A = J = inv and B = [0, n).
    n = len(xi)
    tails = [n + 1] * n
    lengths: list[int] = []
    for j in inv:
        k = bisect_left(tails, j)
        tails[k] = j
        lengths.append(k + 1)

    k = max(lengths, default=0)
    seq: list[tuple[int, int]] = [(0, 0)] * (2 + k)
    seq[1 + k] = (len(x), len(y))
    last_j = n
    for x_index, j, length in reversed(list(zip(xi, inv, lengths))):
        if length == k and j < last_j:
            seq[k] = (x_index, yi[j])
            k -= 1
    seq[0] = (0, 0)
    return seq