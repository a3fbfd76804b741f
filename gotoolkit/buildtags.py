"""Build constraint evaluation from file contents and file names."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

_GOOS_LIST = (
    "aix android darwin dragonfly freebsd hurd illumos ios js linux nacl netbsd "
    "openbsd plan9 solaris windows zos"
)
_UNIX_LIST = (
    "aix android darwin dragonfly freebsd hurd illumos ios linux netbsd openbsd solaris"
)
_GOARCH_LIST = (
    "386 amd64 amd64p32 arm armbe arm64 arm64be loong64 mips mipsle mips64 mips64le "
    "mips64p32 mips64p32le ppc ppc64 ppc64le riscv riscv64 s390 s390x sparc sparc64 wasm"
)

KNOWN_OS = frozenset(_GOOS_LIST.split())
UNIX_OS = frozenset(_UNIX_LIST.split())
KNOWN_ARCH = frozenset(_GOARCH_LIST.split())

Tags = Mapping[str, bool] | Iterable[str] | None


def _enabled(tags: Tags) -> frozenset[str]:
    """Return the set of tags that are switched on."""
    if tags is None:
        return frozenset()
    if isinstance(tags, Mapping):
        return frozenset(name for name, on in tags.items() if on)
    return frozenset(tags)


def should_build(content: bytes | str, tags: Tags = None) -> bool:
    """Report whether a file's ``// +build`` lines accept ``tags``.

    Only the leading run of ``//`` comments and blank lines counts, and it
    must end in a blank line, so a package doc comment is never read. If
    the tag ``*`` is on, every tag but ``ignore`` counts as both present
    and absent.
    """
    if isinstance(content, str):
        content = content.encode()
    enabled = _enabled(tags)

    end = 0
    pos = 0
    while pos < len(content):
        newline = content.find(b"\n", pos)
        if newline < 0:
            line, pos = content[pos:], len(content)
        else:
            line, pos = content[pos:newline], newline + 1
        line = line.strip()
        if not line:
            end = pos
            continue
        if not line.startswith(b"//"):
            break

    allok = True
    for raw in content[:end].split(b"\n"):
        line = raw.strip()
        if not line.startswith(b"//"):
            continue
        line = line[2:].strip()
        if not line.startswith(b"+"):
            continue
        fields = line.decode("utf-8", "replace").split()
        if fields[0] == "+build":
            if not any(_match_tags(tok, enabled) for tok in fields[1:]):
                allok = False
    return allok


def _match_tags(name: str, enabled: frozenset[str]) -> bool:
    """Match ``tag``, ``!tag`` or a comma-separated list of them."""
    if not name:
        return False
    if "," in name:
        first, rest = name.split(",", 1)
        ok1 = _match_tags(first, enabled)
        ok2 = _match_tags(rest, enabled)
        return ok1 and ok2
    if name.startswith("!!"):
        return False
    if name.startswith("!"):
        return len(name) > 1 and _match_tag(name[1:], enabled, False)
    return _match_tag(name, enabled, True)


def _match_tag(name: str, enabled: frozenset[str], want: bool) -> bool:
    if not all(c.isalpha() or c.isdecimal() or c in "_." for c in name):
        return False
    if "*" in enabled and name not in ("", "ignore"):
        return True
    have = name in enabled
    if name == "linux":
        have = have or "android" in enabled
    return have == want


def match_file(name: str, tags: Tags = None) -> bool:
    """Report whether an OS or architecture suffix in ``name`` matches ``tags``.

    Recognised forms are ``name_OS.*``, ``name_ARCH.*``, ``name_OS_ARCH.*``
    and the same with ``_test`` before the extension. With the tag ``*``
    on, every name matches.
    """
    enabled = _enabled(tags)
    if "*" in enabled:
        return True
    name = name.split(".", 1)[0]
    underscore = name.find("_")
    if underscore < 0:
        return True
    parts = name[underscore:].split("_")
    if parts[-1] == "test":
        parts = parts[:-1]
    n = len(parts)
    if n >= 2 and parts[-2] in KNOWN_OS and parts[-1] in KNOWN_ARCH:
        return parts[-2] in enabled and parts[-1] in enabled
    if n >= 1 and (parts[-1] in KNOWN_OS or parts[-1] in KNOWN_ARCH):
        return parts[-1] in enabled
    return True