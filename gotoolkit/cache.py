"""Build artifact cache backed by a directory tree."""

from __future__ import annotations

import hashlib
import math
import os
import re
import sys
import threading
import time
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import partial
from io import BytesIO
from typing import BinaryIO, Mapping

import portalocker

from .cachehash import DEBUG, HASH_SIZE, reverse_hash

HEX_SIZE = HASH_SIZE * 2
# "v1 <hex id> <hex out> <size padded to 20> <unixnano padded to 20>\n"
ENTRY_SIZE = 2 + 1 + HEX_SIZE + 1 + HEX_SIZE + 1 + 20 + 1 + 20 + 1

# mtimes are refreshed at most once per MTIME_INTERVAL; the cache is scanned
# at most once per TRIM_INTERVAL; entries unused for TRIM_LIMIT are removed.
MTIME_INTERVAL = 3600.0
TRIM_INTERVAL = 24 * 3600.0
TRIM_LIMIT = 5 * 24 * 3600.0

_BLOCK = 1 << 16
_O_BINARY = getattr(os, "O_BINARY", 0)
_HEX_RE = re.compile(rb"[0-9a-fA-F]{%d}" % HEX_SIZE)
_INT_RE = re.compile(rb"[+-]?[0-9]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_CACHE_README = """\
This directory holds cached build artifacts.
Delete its contents if the directory is getting too large.
The "fuzz" subdirectory holds the fuzz cache.
"""


@dataclass(frozen=True)
class Entry:
    """An action's recorded output id, output size and write time."""

    output_id: bytes
    size: int
    time: datetime


class EntryNotFoundError(LookupError):
    """A cache entry was not found, with an optional underlying reason."""

    def __init__(self, err: BaseException | str | None = None) -> None:
        super().__init__(err)
        self.err = err

    def __str__(self) -> str:
        if self.err is None:
            return "cache entry not found"
        return f"cache entry not found: {self.err}"


class CacheVerifyError(Exception):
    """Verify mode found that an action produced a different output."""


def _as_id(value: bytes) -> bytes:
    data = bytes(value)
    if len(data) != HASH_SIZE:
        raise ValueError(f"cache id must be {HASH_SIZE} bytes, got {len(data)}")
    return data


def _parse_int(field: bytes, what: str) -> int:
    text = field.lstrip(b" ")
    if not _INT_RE.fullmatch(text):
        raise EntryNotFoundError(
            f"parsing {what}: invalid syntax {text.decode('latin-1')!r}"
        )
    return int(text)


def _sha256_of_path(path: str) -> bytes:
    h = hashlib.sha256()
    with open(path, "rb") as stream:
        for block in iter(partial(stream.read, _BLOCK), b""):
            h.update(block)
    return h.digest()


def _locked_read(path: str) -> bytes:
    with open(path, "rb") as stream:
        portalocker.lock(stream, portalocker.LOCK_SH)
        try:
            return stream.read()
        finally:
            portalocker.unlock(stream)


def _locked_write(path: str, data: bytes) -> None:
    fd = os.open(path, os.O_RDWR | os.O_CREAT | _O_BINARY, 0o666)
    with os.fdopen(fd, "r+b") as stream:
        portalocker.lock(stream, portalocker.LOCK_EX)
        try:
            stream.seek(0)
            stream.truncate()
            stream.write(data)
            stream.flush()
        finally:
            portalocker.unlock(stream)


class Cache:
    """A package cache stored in a directory tree.

    Several processes on one machine may share the directory safely; they
    coordinate with file locks. Network file systems are not supported.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        now: Callable[[], float] | None = None,
    ) -> None:
        path = os.fspath(directory)
        if not os.path.isdir(path):
            os.stat(path)  # raises FileNotFoundError and the like
            raise NotADirectoryError(f"open {path}: not a directory")
        for i in range(256):
            os.makedirs(os.path.join(path, f"{i:02x}"), exist_ok=True)
        self.directory = path
        self._now: Callable[[], float] = now or time.time

    def _file_name(self, digest: bytes, key: str) -> str:
        return os.path.join(self.directory, f"{digest[0]:02x}", f"{digest.hex()}-{key}")

    def get(self, action_id: bytes) -> Entry:
        """Look up an action id and return its entry.

        Finding an entry does not guarantee its output file still exists.
        """
        if DEBUG.verify:
            raise EntryNotFoundError("gocacheverify=1")
        return self._get(action_id)

    def _get(self, action_id: bytes) -> Entry:
        action_id = _as_id(action_id)
        path = self._file_name(action_id, "a")
        try:
            with open(path, "rb") as stream:
                data = stream.read(ENTRY_SIZE + 1)
        except OSError as err:
            raise EntryNotFoundError(err) from err
        if len(data) > ENTRY_SIZE:
            raise EntryNotFoundError("too long")
        if not data:
            raise EntryNotFoundError("file is empty")
        if len(data) < ENTRY_SIZE:
            raise EntryNotFoundError("entry file incomplete")

        out_at = 3 + HEX_SIZE + 1
        size_at = out_at + HEX_SIZE + 1
        time_at = size_at + 20 + 1
        if (
            data[:3] != b"v1 "
            or data[out_at - 1] != ord(" ")
            or data[size_at - 1] != ord(" ")
            or data[time_at - 1] != ord(" ")
            or data[-1] != ord("\n")
        ):
            raise EntryNotFoundError("invalid header")

        eid = data[3:3 + HEX_SIZE]
        eout = data[out_at:out_at + HEX_SIZE]
        if not _HEX_RE.fullmatch(eid):
            raise EntryNotFoundError("decoding ID: invalid byte")
        if bytes.fromhex(eid.decode("ascii")) != action_id:
            raise EntryNotFoundError("mismatched ID")
        if not _HEX_RE.fullmatch(eout):
            raise EntryNotFoundError("decoding output ID: invalid byte")
        output_id = bytes.fromhex(eout.decode("ascii"))

        size = _parse_int(data[size_at:size_at + 20], "size")
        if size < 0:
            raise EntryNotFoundError("negative size")
        stamp = _parse_int(data[time_at:time_at + 20], "timestamp")
        if stamp < 0:
            raise EntryNotFoundError("negative timestamp")

        self._used(path)
        return Entry(output_id, size, _EPOCH + timedelta(microseconds=stamp // 1000))

    def get_file(self, action_id: bytes) -> tuple[str, Entry]:
        """Look up an action id and return its data file name and entry."""
        entry = self.get(action_id)
        path = self.output_file(entry.output_id)
        try:
            actual = os.stat(path).st_size
        except OSError as err:
            raise EntryNotFoundError(err) from err
        if actual != entry.size:
            raise EntryNotFoundError("file incomplete")
        return path, entry

    def get_bytes(self, action_id: bytes) -> tuple[bytes, Entry]:
        """Look up an action id and return its output bytes and entry."""
        entry = self.get(action_id)
        try:
            with open(self.output_file(entry.output_id), "rb") as stream:
                data = stream.read()
        except OSError:
            data = b""
        if hashlib.sha256(data).digest() != entry.output_id:
            raise EntryNotFoundError("bad checksum")
        return data, entry

    def output_file(self, output_id: bytes) -> str:
        """Return the name of the file storing the given output."""
        path = self._file_name(_as_id(output_id), "d")
        self._used(path)
        return path

    def _used(self, path: str) -> None:
        """Refresh the mtime of ``path`` if it is more than an hour old."""
        now = self._now()
        with suppress(OSError):
            if now - os.stat(path).st_mtime < MTIME_INTERVAL:
                return
        with suppress(OSError):
            os.utime(path, (now, now))

    def trim(self) -> None:
        """Remove old cache entries that are unlikely to be reused."""
        now = self._now()
        trim_path = os.path.join(self.directory, "trim.txt")
        # A corrupt or far-future trim stamp leads to a trim anyway.
        try:
            data = _locked_read(trim_path).strip()
        except OSError:
            data = b""
        if _INT_RE.fullmatch(data):
            elapsed = now - int(data)
            if -MTIME_INTERVAL < elapsed < TRIM_INTERVAL:
                return

        cutoff = now - TRIM_LIMIT - MTIME_INTERVAL
        for i in range(256):
            self._trim_subdir(os.path.join(self.directory, f"{i:02x}"), cutoff)

        _locked_write(trim_path, str(math.floor(now)).encode())

    @staticmethod
    def _trim_subdir(subdir: str, cutoff: float) -> None:
        try:
            names = os.listdir(subdir)
        except OSError:
            return
        for name in names:
            if not name.endswith(("-a", "-d")):
                continue
            path = os.path.join(subdir, name)
            with suppress(OSError):
                if os.stat(path).st_mtime < cutoff:
                    os.remove(path)

    def _put_index_entry(
        self, action_id: bytes, output_id: bytes, size: int, allow_verify: bool
    ) -> None:
        action_id = _as_id(action_id)
        output_id = _as_id(output_id)
        line = (
            f"v1 {action_id.hex()} {output_id.hex()} {size:20d} {time.time_ns():20d}\n"
        ).encode()
        if DEBUG.verify and allow_verify:
            try:
                old = self._get(action_id)
            except EntryNotFoundError:
                old = None
            if old is not None and (old.output_id != output_id or old.size != size):
                raise CacheVerifyError(
                    "internal cache error: cache verify failed: "
                    f"id={action_id.hex()} changed:<<<\n{reverse_hash(action_id)}\n>>>\n"
                    f"old: {output_id.hex()} {size}\n"
                    f"new: {old.output_id.hex()} {old.size}"
                )
        path = self._file_name(action_id, "a")
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | _O_BINARY, 0o666)
        try:
            # Truncate only after writing, so rewriting identical content
            # never undoes an earlier write, even briefly.
            with os.fdopen(fd, "wb") as stream:
                stream.write(line)
                stream.flush()
                stream.truncate(len(line))
        except OSError:
            with suppress(OSError):
                os.remove(path)
            raise
        now = self._now()
        with suppress(OSError):
            os.utime(path, (now, now))

    def put(self, action_id: bytes, file: BinaryIO) -> tuple[bytes, int]:
        """Store the seekable binary ``file`` as the action's output.

        The file is read twice and must not change in between. Returns the
        output id and size.
        """
        return self._put(action_id, file, True)

    def put_no_verify(self, action_id: bytes, file: BinaryIO) -> tuple[bytes, int]:
        """Like :meth:`put`, but never checked in verify mode."""
        return self._put(action_id, file, False)

    def _put(self, action_id: bytes, file: BinaryIO, allow_verify: bool) -> tuple[bytes, int]:
        action_id = _as_id(action_id)
        file.seek(0)
        h = hashlib.sha256()
        size = 0
        for block in iter(partial(file.read, _BLOCK), b""):
            h.update(block)
            size += len(block)
        output_id = h.digest()
        self._copy_file(file, output_id, size)
        self._put_index_entry(action_id, output_id, size, allow_verify)
        return output_id, size

    def put_bytes(self, action_id: bytes, data: bytes) -> None:
        """Store ``data`` as the output of the action."""
        self.put(action_id, BytesIO(bytes(data)))

    def _copy_file(self, file: BinaryIO, output_id: bytes, size: int) -> None:
        """Copy ``file`` into the cache unless an intact copy is present."""
        name = self._file_name(output_id, "d")
        try:
            existing: int | None = os.stat(name).st_size
        except OSError:
            existing = None
        if existing == size:
            with suppress(OSError):
                if _sha256_of_path(name) == output_id:
                    return

        flags = os.O_RDWR | os.O_CREAT | _O_BINARY
        if existing is not None and existing > size:
            flags |= os.O_TRUNC
        fd = os.open(name, flags, 0o666)
        with os.fdopen(fd, "r+b") as target:
            if size == 0:
                # The only possible empty file already has the right content.
                return
            try:
                self._fill(file, target, output_id, size)
            except Exception:
                with suppress(OSError):
                    target.seek(0)
                    target.truncate(0)
                raise
            try:
                target.close()
            except OSError:
                with suppress(OSError):
                    os.remove(name)
                raise
        now = self._now()
        with suppress(OSError):
            os.utime(name, (now, now))

    @staticmethod
    def _fill(file: BinaryIO, target: BinaryIO, output_id: bytes, size: int) -> None:
        file.seek(0)
        h = hashlib.sha256()
        remaining = size - 1
        while remaining:
            block = file.read(min(remaining, _BLOCK))
            if not block:
                raise EOFError("unexpected EOF")
            target.write(block)
            h.update(block)
            remaining -= len(block)
        # Check the last byte before writing it: once the size matches,
        # other processes may start using the file.
        last = file.read(1)
        if not last:
            raise EOFError("EOF")
        h.update(last)
        if h.digest() != output_id:
            raise OSError("file content changed underfoot")
        target.write(last)

    def fuzz_dir(self) -> str:
        """Return the subdirectory for fuzzing data; it may not exist."""
        return os.path.join(self.directory, "fuzz")


def open_cache(directory: str | os.PathLike[str]) -> Cache:
    """Open the cache in an existing directory."""
    return Cache(directory)


def _user_cache_dir(environ: Mapping[str, str]) -> str:
    if os.name == "nt":
        base = environ.get("LocalAppData", "") or environ.get("LOCALAPPDATA", "")
        if not base:
            raise OSError("%LocalAppData% is not defined")
        return base
    if sys.platform == "darwin":
        home = environ.get("HOME", "")
        if not home:
            raise OSError("$HOME is not defined")
        return os.path.join(home, "Library", "Caches")
    xdg = environ.get("XDG_CACHE_HOME", "")
    if not xdg:
        home = environ.get("HOME", "")
        if not home:
            raise OSError("neither $XDG_CACHE_HOME nor $HOME are defined")
        return os.path.join(home, ".cache")
    if not os.path.isabs(xdg):
        raise OSError("path in $XDG_CACHE_HOME is relative")
    return xdg


def _resolve_default_dir(environ: Mapping[str, str]) -> tuple[str, str | None]:
    """Return the effective GOCACHE directory and why it is off, if it is."""
    value = environ.get("GOCACHE", "")
    if value == "off" or os.path.isabs(value):
        return value, None
    if value:
        return "off", "GOCACHE is not an absolute path"
    try:
        base = _user_cache_dir(environ)
    except OSError as err:
        return "off", f"GOCACHE is not defined and {err}"
    return os.path.join(base, "go-build"), None


_dir_lock = threading.Lock()
_default_dir: tuple[str, str | None] | None = None
_cache_lock = threading.Lock()
_default_cache: Cache | None = None


def _default_dir_and_error() -> tuple[str, str | None]:
    global _default_dir
    with _dir_lock:
        if _default_dir is None:
            _default_dir = _resolve_default_dir(os.environ)
        return _default_dir


def default_dir() -> str:
    """Return the effective GOCACHE setting, or "off" if it is disabled."""
    return _default_dir_and_error()[0]


def default_cache() -> Cache:
    """Return the default cache, creating it on first use."""
    global _default_cache
    with _cache_lock:
        if _default_cache is not None:
            return _default_cache
        directory, reason = _default_dir_and_error()
        if directory == "off":
            if reason is not None:
                raise RuntimeError(
                    f"build cache is required, but could not be located: {reason}"
                )
            raise RuntimeError("build cache is disabled by GOCACHE=off, but required")
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as err:
            raise RuntimeError(f"failed to initialize build cache at {directory}: {err}") from err
        readme = os.path.join(directory, "README")
        if not os.path.exists(readme):
            with suppress(OSError):
                with open(readme, "w", encoding="utf-8") as stream:
                    stream.write(_CACHE_README)
        try:
            _default_cache = Cache(directory)
        except OSError as err:
            raise RuntimeError(f"failed to initialize build cache at {directory}: {err}") from err
        return _default_cache