"""Collect the imports of the Go files in a directory."""

from __future__ import annotations

import ast
import os
import re
from collections.abc import Iterable, Mapping

from .buildtags import match_file, should_build
from .importreader import NulInInputError, read_imports

_GO_ESCAPE = re.compile(
    r'\\(?:[abfnrtv\\"]|x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3})'
)

Tags = Mapping[str, bool] | Iterable[str] | None


class NoGoFilesError(ValueError):
    """No usable Go source files were found."""

    def __init__(self, message: str = "no Go source files") -> None:
        super().__init__(message)


def _tag_set(tags: Tags) -> frozenset[str]:
    if tags is None:
        return frozenset()
    if isinstance(tags, Mapping):
        return frozenset(name for name, on in tags.items() if on)
    return frozenset(tags)


def _unquote(text: str) -> str | None:
    """Decode a Go string literal, or return None if it is not one."""
    if len(text) < 2:
        return None
    if text[0] == text[-1] == "`":
        inner = text[1:-1]
        return None if "`" in inner else inner.replace("\r", "")
    if text[0] == text[-1] == '"':
        inner = text[1:-1]
        if "\n" in inner:
            return None
        stripped = _GO_ESCAPE.sub("", inner)
        if "\\" in stripped or '"' in stripped:
            return None
        try:
            value = ast.literal_eval(text)
        except (ValueError, SyntaxError):
            return None
        return value if isinstance(value, str) else None
    return None


def scan_dir(
    directory: str | os.PathLike[str], tags: Tags = None
) -> tuple[list[str], list[str]]:
    """Return the sorted imports and test imports of the Go files in ``directory``.

    Files starting with ``_``, and files whose name or build lines exclude
    them under ``tags``, are skipped.
    """
    enabled = _tag_set(tags)
    root = os.fspath(directory)
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    files = [
        os.path.join(root, entry.name)
        for entry in entries
        if entry.is_file(follow_symlinks=False)
        and not entry.name.startswith("_")
        and entry.name.endswith(".go")
        and match_file(entry.name, enabled)
    ]
    return _scan(files, enabled, explicit=False)


def scan_files(
    files: Iterable[str | os.PathLike[str]], tags: Tags = None
) -> tuple[list[str], list[str]]:
    """Like :func:`scan_dir` for named files; build lines are not applied."""
    return _scan([os.fspath(f) for f in files], _tag_set(tags), explicit=True)


def _scan(
    files: list[str], enabled: frozenset[str], explicit: bool
) -> tuple[list[str], list[str]]:
    imports: set[str] = set()
    test_imports: set[str] = set()
    used = 0
    for name in files:
        with open(name, "rb") as stream:
            try:
                data, found = read_imports(stream, False)
            except NulInInputError as err:
                raise ValueError(f"reading {name}: {err}") from err

        # import "C" requires cgo, even for files named explicitly.
        if '"C"' in found and not ({"cgo", "*"} & enabled):
            continue
        if not explicit and not should_build(data, enabled):
            continue
        used += 1
        target = test_imports if name.endswith("_test.go") else imports
        for literal in found:
            path = _unquote(literal)
            if path is not None:
                target.add(path)
    if not used:
        raise NoGoFilesError()
    return sorted(imports), sorted(test_imports)