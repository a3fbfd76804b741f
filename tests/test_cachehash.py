import pytest

from gotoolkit import cachehash

HELLO_SHA = "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"


@pytest.fixture
def reset_debug():
    yield
    cachehash.load_debug_env({})


def test_hash_without_salt(monkeypatch):
    monkeypatch.setattr(cachehash, "HASH_SALT", b"")
    h = cachehash.Hash("alice")
    assert h.write(b"hello world") == 11
    assert h.sum().hex() == HELLO_SHA


def test_salt_changes_hash():
    h = cachehash.Hash("alice")
    h.write(b"hello world")
    digest = h.sum()
    assert len(digest) == cachehash.HASH_SIZE
    assert digest.hex() != HELLO_SHA


def test_hash_is_deterministic():
    first = cachehash.Hash("a")
    first.write(b"hello ")
    first.write(b"world")
    second = cachehash.Hash("b")
    second.write(b"hello world")
    assert first.sum() == second.sum()


def test_file_hash(tmp_path):
    path = tmp_path / "hello.txt"
    path.write_bytes(b"hello world")
    assert cachehash.file_hash(path).hex() == HELLO_SHA


def test_file_hash_is_cached(tmp_path):
    path = tmp_path / "cached.txt"
    path.write_bytes(b"hello world")
    first = cachehash.file_hash(path)
    path.write_bytes(b"something else entirely")
    assert cachehash.file_hash(path) == first


def test_set_file_hash_overrides(tmp_path):
    path = tmp_path / "override.txt"
    path.write_bytes(b"hello world")
    forced = bytes(range(32))
    cachehash.set_file_hash(path, forced)
    assert cachehash.file_hash(path) == forced


def test_file_hash_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        cachehash.file_hash(tmp_path / "missing.txt")


def test_subkey_depends_on_inputs():
    parent = bytes(32)
    a = cachehash.subkey(parent, "one")
    assert a == cachehash.subkey(parent, "one")
    assert len(a) == cachehash.HASH_SIZE
    assert a != cachehash.subkey(parent, "two")
    assert a != cachehash.subkey(bytes([1]) + bytes(31), "one")


def test_load_debug_env(reset_debug):
    flags = cachehash.load_debug_env({"GODEBUG": "x=1,gocacheverify=1,gocachehash=1"})
    assert flags.verify is True
    assert flags.debug_hash is True
    flags = cachehash.load_debug_env({"GODEBUG": "gocachetest=1"})
    assert flags.verify is False
    assert flags.debug_hash is False
    assert flags.debug_test is True


def test_reverse_hash_records_writes(reset_debug):
    cachehash.load_debug_env({"GODEBUG": "gocacheverify=1"})
    h = cachehash.Hash("rev")
    h.write(b"abc")
    h.write(b"def")
    digest = h.sum()
    assert cachehash.reverse_hash(digest) == "abcdef"


def test_reverse_hash_records_subkey(reset_debug):
    cachehash.load_debug_env({"GODEBUG": "gocacheverify=1"})
    parent = bytes(32)
    out = cachehash.subkey(parent, "desc")
    assert cachehash.reverse_hash(out) == f'subkey {parent.hex()} "desc"'


def test_reverse_hash_unknown():
    assert cachehash.reverse_hash(b"\xff" * 32) == ""


def test_debug_hash_logs(reset_debug, capsys):
    cachehash.load_debug_env({"GODEBUG": "gocachehash=1"})
    h = cachehash.Hash("alice")
    h.write(b"hi")
    digest = h.sum()
    err = capsys.readouterr().err
    assert "HASH[alice]\n" in err
    assert 'HASH[alice]: "hi"' in err
    assert f"HASH[alice]: {digest.hex()}" in err