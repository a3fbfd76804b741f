"""Executable lookup along a search path, per platform convention."""

from __future__ import annotations

import errno
import json
import os
import stat
import sys
from collections.abc import Callable, Iterator

Getenv = Callable[[str], str]

NOT_FOUND_MESSAGE = "executable file not found in $PATH"

_WINDOWS_DEFAULT_EXTS = [".com", ".exe", ".bat", ".cmd"]
_PLAN9_DIRECT_PREFIXES = ("/", "#", "./", "../")


class ExecError(Exception):
    """An executable named ``name`` could not be used; ``err`` says why."""

    def __init__(self, name: str, err: BaseException | str) -> None:
        super().__init__(name, err)
        self.name = name
        self.err = err

    def __str__(self) -> str:
        return f"exec: {json.dumps(self.name, ensure_ascii=False)}: {self.err}"


class ExecutableNotFoundError(ExecError):
    """A search of the path found no executable of the given name."""

    def __init__(self, name: str) -> None:
        super().__init__(name, NOT_FOUND_MESSAGE)


def _environ_getenv(key: str) -> str:
    return os.environ.get(key, "")


def _join(directory: str, file: str) -> str:
    return os.path.normpath(os.path.join(directory, file))


def _permission_denied(file: str) -> PermissionError:
    return PermissionError(errno.EACCES, "permission denied", file)


def _check_executable(file: str) -> None:
    """Raise unless ``file`` is a non-directory with an execute bit."""
    mode = os.stat(file).st_mode
    if not stat.S_ISDIR(mode) and mode & 0o111:
        return
    raise _permission_denied(file)


def _search(file: str, directories: Iterator[str] | list[str]) -> str:
    for directory in directories:
        candidate = _join(directory, file)
        try:
            _check_executable(candidate)
        except (OSError, ValueError):
            continue
        return candidate
    raise ExecutableNotFoundError(file)


def _split_list(path: str, separator: str) -> list[str]:
    return path.split(separator) if path else []


def _split_windows_list(path: str) -> list[str]:
    """Split a ';'-separated list, honouring double-quoted elements."""
    if not path:
        return []
    parts: list[str] = []
    current: list[str] = []
    quoted = False
    for char in path:
        if char == '"':
            quoted = not quoted
            current.append(char)
        elif char == ";" and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.replace('"', "") for part in parts]


def look_unix(file: str, getenv: Getenv | None = None) -> str:
    """Find ``file`` on PATH with Unix shell rules.

    A name containing a slash is checked directly and PATH is not read.
    """
    if "/" in file:
        try:
            _check_executable(file)
        except (OSError, ValueError) as err:
            raise ExecError(file, err) from err
        return file
    getenv = getenv or _environ_getenv
    # An empty PATH element means the current directory.
    directories = (d or "." for d in _split_list(getenv("PATH"), ":"))
    return _search(file, directories)


def look_plan9(file: str, getenv: Getenv | None = None) -> str:
    """Find ``file`` on $path with Plan 9 rules."""
    if file.startswith(_PLAN9_DIRECT_PREFIXES):
        try:
            _check_executable(file)
        except (OSError, ValueError) as err:
            raise ExecError(file, err) from err
        return file
    getenv = getenv or _environ_getenv
    return _search(file, _split_list(getenv("path"), "\0"))


def _check_windows(file: str) -> None:
    if stat.S_ISDIR(os.stat(file).st_mode):
        raise _permission_denied(file)


def _has_ext(file: str) -> bool:
    dot = file.rfind(".")
    if dot < 0:
        return False
    return max(file.rfind(sep) for sep in ":\\/") < dot


def _find_windows(file: str, exts: list[str]) -> str:
    if not exts:
        _check_windows(file)
        return file
    if _has_ext(file):
        try:
            _check_windows(file)
        except (OSError, ValueError):
            pass
        else:
            return file
    for ext in exts:
        candidate = file + ext
        try:
            _check_windows(candidate)
        except (OSError, ValueError):
            continue
        return candidate
    raise FileNotFoundError(errno.ENOENT, "file does not exist", file)


def _path_exts(getenv: Getenv) -> list[str]:
    value = getenv("PATHEXT")
    if not value:
        return list(_WINDOWS_DEFAULT_EXTS)
    return [
        ext if ext.startswith(".") else "." + ext
        for ext in value.lower().split(";")
        if ext
    ]


def look_windows(file: str, getenv: Getenv | None = None) -> str:
    """Find ``file`` with Windows rules, trying each PATHEXT extension."""
    getenv = getenv or _environ_getenv
    exts = _path_exts(getenv)

    if any(sep in file for sep in ":\\/"):
        try:
            return _find_windows(file, exts)
        except (OSError, ValueError) as err:
            raise ExecError(file, err) from err

    try:
        return _find_windows(_join(".", file), exts)
    except (OSError, ValueError):
        pass
    for directory in _split_windows_list(getenv("path")):
        try:
            return _find_windows(_join(directory, file), exts)
        except (OSError, ValueError):
            continue
    raise ExecutableNotFoundError(file)


def look(file: str, getenv: Getenv | None = None) -> str:
    """Find an executable named ``file`` using the host platform's rules.

    ``getenv`` looks up environment variables and defaults to the process
    environment. The result may be absolute or relative to the current
    directory.
    """
    if sys.platform in ("emscripten", "wasi"):
        # These platforms cannot start processes at all.
        raise ExecutableNotFoundError(file)
    if os.name == "nt":
        return look_windows(file, getenv)
    return look_unix(file, getenv)