import pytest

from gotoolkit.buildtags import match_file, should_build

X1 = (
    b"//go:build blahblh && linux && !linux && windows && darwin\n"
    b"// +build blahblh,linux,!linux,windows,darwin\n"
    b"\n"
    b"package x\n"
    b"\n"
    b'import "import4"\n'
)


def test_no_constraints_always_builds():
    assert should_build(b"package x\n", {})
    assert should_build(b"", None)


def test_impossible_constraint():
    assert not should_build(X1, {})
    assert not should_build(X1, {"linux": True, "windows": True, "darwin": True})


def test_star_accepts_everything_but_ignore():
    assert should_build(X1, {"*": True})
    assert not should_build(b"// +build ignore\n\npackage x\n", {"*": True})


def test_alternatives_on_one_line():
    content = b"// +build linux darwin\n\npackage x\n"
    assert should_build(content, {"linux": True})
    assert should_build(content, {"darwin": True})
    assert not should_build(content, {"windows": True})
    assert not should_build(content, {"linux": False})


def test_android_implies_linux():
    assert should_build(b"// +build linux\n\npackage x\n", {"android": True})


def test_doc_comment_not_read():
    # No blank line before the package clause: the comment is a doc comment.
    assert should_build(b"// +build ignore\npackage x\n", {})


def test_negation():
    content = b"// +build !windows\n\npackage x\n"
    assert should_build(content, {})
    assert not should_build(content, {"windows": True})
    assert not should_build(b"// +build !!windows\n\npackage x\n", {})
    assert not should_build(b"// +build !\n\npackage x\n", {})


def test_comma_means_and():
    content = b"// +build linux,amd64\n\npackage x\n"
    assert should_build(content, {"linux", "amd64"})
    assert not should_build(content, {"linux"})


def test_several_lines_must_all_match():
    content = b"// +build linux\n// +build amd64\n\npackage x\n"
    assert should_build(content, ["linux", "amd64"])
    assert not should_build(content, ["amd64"])


def test_invalid_tag_characters():
    assert not should_build(b"// +build lin-ux\n\npackage x\n", {"*": True})


def test_accepts_text():
    assert not should_build("// +build windows\n\npackage x\n", {"linux"})


@pytest.mark.parametrize(
    "name, tags",
    [
        ("x.go", {}),
        ("linux.go", {}),
        ("x_foo.go", {}),
        ("x_windows.go", {"windows"}),
        ("x_windows_test.go", {"windows"}),
        ("x_linux_amd64.go", {"linux", "amd64"}),
        ("x_amd64.go", {"amd64": True}),
        ("x_darwin.go", {"*": True}),
    ],
)
def test_match_file_accepts(name, tags):
    assert match_file(name, tags)


@pytest.mark.parametrize(
    "name, tags",
    [
        ("x_windows.go", {"linux"}),
        ("x_darwin.go", None),
        ("x_linux_amd64_test.go", {"linux"}),
        ("x_arm64.go", {"amd64": True, "arm64": False}),
    ],
)
def test_match_file_rejects(name, tags):
    assert not match_file(name, tags)