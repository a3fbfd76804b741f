# gotoolkit

Library helpers for writing build tools. It has no command-line entry
points; everything is used from Python.

| Module | What it provides |
| --- | --- |
| `gotoolkit.cache` | `Cache`, `open_cache`, `Entry`, `EntryNotFoundError`, `CacheVerifyError`, `default_dir`, `default_cache` |
| `gotoolkit.cachehash` | `Hash`, `subkey`, `file_hash`, `set_file_hash`, `reverse_hash`, `DebugFlags`, `load_debug_env` |
| `gotoolkit.diff` | `diff` |
| `gotoolkit.buildtags` | `should_build`, `match_file`, `KNOWN_OS`, `KNOWN_ARCH`, `UNIX_OS` |
| `gotoolkit.importreader` | `read_comments`, `read_imports`, `ImportSyntaxError`, `NulInInputError` |
| `gotoolkit.scan` | `scan_dir`, `scan_files`, `NoGoFilesError` |
| `gotoolkit.fmtsort` | `sort_map`, `compare`, `SortedMap` |
| `gotoolkit.execpath` | `look`, `look_unix`, `look_windows`, `look_plan9`, `ExecError`, `ExecutableNotFoundError` |
| `gotoolkit.misspell` | `almost_equal` |

## Installation

```
pip install gotoolkit
```

The `test` extra pulls in pytest and hypothesis.

## Artifact cache

`Cache(directory, now=None)` (or `open_cache(directory)`) opens a cache in an
existing directory, creating the 256 subdirectories `00`–`ff`. Several
processes on one machine may share it.

```python
from gotoolkit.cache import open_cache
from gotoolkit.cachehash import Hash

cache = open_cache("/tmp/my-cache")   # the directory must already exist
h = Hash("compile")
h.write(b"gcc -O2 main.c")
action_id = h.sum()                   # 32 bytes

cache.put_bytes(action_id, b"compiled output")
data, entry = cache.get_bytes(action_id)
print(entry.size, entry.output_id.hex(), entry.time)
```

- `put(action_id, file)` stores a seekable binary file and returns
  `(output_id, size)`; the output id is the plain SHA-256 of the content.
  `put_no_verify` is the same but is never checked in verify mode.
- `get(action_id)` returns an `Entry`; `get_file` returns
  `(path, entry)`; `get_bytes` returns `(data, entry)` after checking the
  checksum. All raise `EntryNotFoundError` when there is no usable entry.
- `output_file(output_id)` returns the path of a stored output.
- Reading an entry refreshes its file's mtime if it is more than an hour old.
- `trim()` removes entries not used for five days plus an hour. It scans at
  most once a day, recording the time in `trim.txt`.
- `fuzz_dir()` returns the `fuzz` subdirectory path (it may not exist).

`default_dir()` returns `GOCACHE` if it is absolute or `off`; a relative
value gives `"off"`; if unset, it is `go-build` under the user cache
directory. `default_cache()` creates that directory, writes a `README` into
it and opens it, raising `RuntimeError` if the cache is off or cannot be
created.

### Debug settings

`GODEBUG` is read when `gotoolkit.cachehash` is imported;
`load_debug_env(environ)` reads it again.

- `gocacheverify=1`: `get` always raises `EntryNotFoundError`, and `put`
  raises `CacheVerifyError` if an action's recorded output changes.
- `gocachehash=1`: hashing steps are logged to standard error.
- `gocachetest=1`: sets `DEBUG.debug_test`.

`file_hash(path)` returns the unsalted SHA-256 of a file and memoises it;
`set_file_hash` presets that value. `subkey(parent, desc)` derives an action
id from a parent id.

## Diffs

```python
from gotoolkit.diff import diff

patch = diff("old.txt", b"a\nb\nc\n", "new.txt", b"a\nB\nc\n")
print(patch.decode())
```

The output is a unified diff anchored on lines that occur once in each
text, with three lines of context; identical inputs give `b""`. A missing
final newline is marked with `\ No newline at end of file`.

## Build tags and imports

`should_build(content, tags)` checks the `// +build` lines in a file's
leading comment block; `match_file(name, tags)` checks `_GOOS`, `_GOARCH`
and `_GOOS_GOARCH` name suffixes. `tags` may be a mapping of name to bool or
an iterable of names; the tag `*` counts every tag except `ignore` as both
on and off.

`read_imports(stream, report_syntax_error)` reads a binary stream up to the
end of its import clauses and returns `(bytes_read, quoted_paths)`.
`read_comments(stream)` returns only the leading comments and blank space.

```python
from gotoolkit.scan import scan_dir

imports, test_imports = scan_dir("path/to/pkg", {"linux": True, "amd64": True})
```

`scan_dir` and `scan_files` return sorted imports and test imports (from
`_test.go` files). Files importing `"C"` are skipped unless `cgo` or `*` is
set. `NoGoFilesError` is raised when no file is used.

## Ordering mapping keys

`sort_map(mapping)` returns a `SortedMap` whose `keys` and `values` are in a
stable, total order: `None` first, NaN below other floats, `False` before
`True`, complex by real then imaginary part, tuples and dataclass instances
element by element, keys of different types grouped by type, and other
objects by identity. `compare(a, b)` returns -1, 0 or 1.

## Executable lookup

```python
from gotoolkit.execpath import look

print(look("git"))
```

`look(file, getenv=None)` uses Windows rules (with `PATHEXT`) on Windows and
Unix rules elsewhere; `look_unix`, `look_windows` and `look_plan9` apply one
set of rules directly. A failure raises `ExecError`, or its subclass
`ExecutableNotFoundError` when the search path held no match.

## Spelling

`almost_equal(a, b)` reports whether two strings are at most one insertion,
deletion, substitution or adjacent swap apart.

## What this package does not do

It offers no command-line tools, no module proxy server, no text-archive
reading or writing, and no script-driven test runner. It does not run any
external toolchain.