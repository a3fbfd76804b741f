"""Salted SHA-256 hashing used to key build cache entries."""

from __future__ import annotations

import hashlib
import json
import os
import platform
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial

HASH_SIZE = 32


def _strip_experiment(version: str) -> str:
    """Drop any experiment configuration suffix from a version string."""
    head, _, _ = version.partition(" X:")
    return head


# Salt mixed into every Hash so that different toolchain versions never
# address the same action entries.
HASH_SALT: bytes = _strip_experiment(
    f"{platform.python_implementation().lower()}{platform.python_version()}"
).encode()


@dataclass
class DebugFlags:
    """Debug switches read from the GODEBUG environment variable."""

    verify: bool = False
    debug_hash: bool = False
    debug_test: bool = False


DEBUG = DebugFlags()


def load_debug_env(environ: Mapping[str, str] | None = None) -> DebugFlags:
    """Refresh the shared debug flags from GODEBUG in ``environ``."""
    if environ is None:
        environ = os.environ
    settings = environ.get("GODEBUG", "").split(",")
    DEBUG.verify = "gocacheverify=1" in settings
    DEBUG.debug_hash = "gocachehash=1" in settings
    if "gocachetest=1" in settings:
        DEBUG.debug_test = True
    return DEBUG


load_debug_env()

_hash_debug_lock = threading.Lock()
_hash_debug: dict[bytes, str] = {}

_file_hash_lock = threading.Lock()
_file_hashes: dict[str, bytes] = {}


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _as_text(data: bytes) -> str:
    return data.decode("utf-8", "backslashreplace")


def _log(message: str) -> None:
    print(message, file=sys.stderr)


class Hash:
    """Running salted hash whose digest indexes the cache."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._hash = hashlib.sha256()
        self._buf: bytearray | None = None
        if DEBUG.debug_hash:
            _log(f"HASH[{self.name}]")
        self.write(HASH_SALT)
        if DEBUG.verify:
            self._buf = bytearray()

    def write(self, data: bytes) -> int:
        """Feed ``data`` into the hash and return its length."""
        if DEBUG.debug_hash:
            _log(f"HASH[{self.name}]: {_quote(_as_text(data))}")
        if self._buf is not None:
            self._buf += data
        self._hash.update(data)
        return len(data)

    def sum(self) -> bytes:
        """Return the digest of everything written so far."""
        out = self._hash.digest()
        if DEBUG.debug_hash:
            _log(f"HASH[{self.name}]: {out.hex()}")
        if self._buf is not None:
            with _hash_debug_lock:
                _hash_debug[out] = _as_text(bytes(self._buf))
        return out


def subkey(parent: bytes, desc: str) -> bytes:
    """Derive an action id by mixing ``parent`` with a subkey description."""
    h = hashlib.sha256()
    h.update(b"subkey:")
    h.update(bytes(parent))
    h.update(desc.encode())
    out = h.digest()
    if DEBUG.debug_hash:
        _log(f"HASH subkey {bytes(parent).hex()} {_quote(desc)} = {out.hex()}")
    if DEBUG.verify:
        with _hash_debug_lock:
            _hash_debug[out] = f"subkey {bytes(parent).hex()} {_quote(desc)}"
    return out


def reverse_hash(digest: bytes) -> str:
    """Return the recorded input of ``digest``, or "" if none was recorded."""
    with _hash_debug_lock:
        return _hash_debug.get(bytes(digest), "")


def file_hash(file: str | os.PathLike[str]) -> bytes:
    """Return the unsalted SHA-256 of a file, caching repeated lookups."""
    key = os.fspath(file)
    with _file_hash_lock:
        cached = _file_hashes.get(key)
    if cached is not None:
        return cached

    h = hashlib.sha256()
    try:
        with open(key, "rb") as stream:
            for block in iter(partial(stream.read, 1 << 16), b""):
                h.update(block)
    except OSError as err:
        if DEBUG.debug_hash:
            _log(f"HASH {key}: {err}")
        raise
    out = h.digest()
    if DEBUG.debug_hash:
        _log(f"HASH {key}: {out.hex()}")
    set_file_hash(key, out)
    return out


def set_file_hash(file: str | os.PathLike[str], digest: bytes) -> None:
    """Set the digest that :func:`file_hash` returns for ``file``."""
    with _file_hash_lock:
        _file_hashes[os.fspath(file)] = bytes(digest)