"""Readers for the leading comments and import block of a Go source file."""

from __future__ import annotations

from typing import IO

_BLOCK = 4096
_SPACE = frozenset(b" \f\t\r\n;")
_NL = ord("\n")
_SLASH = ord("/")
_STAR = ord("*")
_BACKQUOTE = ord("`")
_DQUOTE = ord('"')
_BACKSLASH = ord("\\")


class ImportSyntaxError(ValueError):
    """The input is not a well-formed package clause and import block.

    ``data`` holds the bytes read before the error.
    """

    def __init__(self, message: str = "syntax error", data: bytes = b"") -> None:
        super().__init__(message)
        self.data = data


class NulInInputError(ValueError):
    """The input holds a NUL byte; ``data`` holds the bytes read so far."""

    def __init__(self, message: str = "unexpected NUL in input", data: bytes = b"") -> None:
        super().__init__(message)
        self.data = data


def _is_ident(c: int) -> bool:
    return (
        65 <= c <= 90 or 97 <= c <= 122 or 48 <= c <= 57 or c == 95 or c >= 0x80
    )


class _ImportReader:
    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream
        self._chunk = b""
        self._pos = 0
        self._nerr = 0
        self.buf = bytearray()
        self.peek = 0
        self.err: Exception | None = None
        self.eof = False

    def syntax_error(self) -> None:
        if self.err is None:
            self.err = ImportSyntaxError()

    def _fill(self) -> bool:
        try:
            chunk = self._stream.read(_BLOCK)
        except OSError as err:
            if self.err is None:
                self.err = err
            return False
        if isinstance(chunk, str):
            chunk = chunk.encode()
        if not chunk:
            self.eof = True
            return False
        self._chunk, self._pos = chunk, 0
        return True

    def read_byte(self) -> int:
        """Read and record the next byte; return 0 on EOF or error."""
        if self._pos >= len(self._chunk) and not self._fill():
            return 0
        c = self._chunk[self._pos]
        self._pos += 1
        self.buf.append(c)
        if c == 0 and self.err is None:
            self.err = NulInInputError()
        return c

    def peek_byte(self, skip_space: bool) -> int:
        if self.err is not None:
            self._nerr += 1
            if self._nerr > 10000:
                raise RuntimeError("import reader looping")
            return 0
        c = self.peek or self.read_byte()
        while self.err is None and not self.eof:
            if skip_space:
                if c in _SPACE:
                    c = self.read_byte()
                    continue
                if c == _SLASH:
                    c = self.read_byte()
                    if c == _SLASH:
                        while c != _NL and self.err is None and not self.eof:
                            c = self.read_byte()
                    elif c == _STAR:
                        c1 = 0
                        while (c != _STAR or c1 != _SLASH) and self.err is None:
                            if self.eof:
                                self.syntax_error()
                            c, c1 = c1, self.read_byte()
                    else:
                        self.syntax_error()
                    c = self.read_byte()
                    continue
            break
        self.peek = c
        return c

    def next_byte(self, skip_space: bool) -> int:
        c = self.peek_byte(skip_space)
        self.peek = 0
        return c

    def read_keyword(self, keyword: str) -> None:
        self.peek_byte(True)
        for expected in keyword.encode():
            if self.next_byte(False) != expected:
                self.syntax_error()
                return
        if _is_ident(self.peek_byte(False)):
            self.syntax_error()

    def read_ident(self) -> None:
        if not _is_ident(self.peek_byte(True)):
            self.syntax_error()
            return
        while _is_ident(self.peek_byte(False)):
            self.peek = 0

    def _save(self, save: list[str] | None, start: int) -> None:
        if save is not None:
            save.append(bytes(self.buf[start:]).decode("utf-8", "surrogateescape"))

    def read_string(self, save: list[str] | None) -> None:
        c = self.next_byte(True)
        if c == _BACKQUOTE:
            start = len(self.buf) - 1
            while self.err is None:
                if self.next_byte(False) == _BACKQUOTE:
                    self._save(save, start)
                    break
                if self.eof:
                    self.syntax_error()
        elif c == _DQUOTE:
            start = len(self.buf) - 1
            while self.err is None:
                c = self.next_byte(False)
                if c == _DQUOTE:
                    self._save(save, start)
                    break
                if self.eof or c == _NL:
                    self.syntax_error()
                if c == _BACKSLASH:
                    self.next_byte(False)
        else:
            self.syntax_error()

    def read_import(self, imports: list[str]) -> None:
        c = self.peek_byte(True)
        if c == ord("."):
            self.peek = 0
        elif _is_ident(c):
            self.read_ident()
        self.read_string(imports)

    def fail(self) -> None:
        if self.err is not None:
            if isinstance(self.err, (ImportSyntaxError, NulInInputError)):
                self.err.data = bytes(self.buf)
            raise self.err


def read_comments(stream: IO[bytes]) -> bytes:
    """Return only the leading block of comments and space in ``stream``."""
    reader = _ImportReader(stream)
    reader.peek_byte(True)
    if reader.err is None and not reader.eof:
        # A non-space byte ended the block; it is not part of it.
        del reader.buf[-1]
    reader.fail()
    return bytes(reader.buf)


def read_imports(
    stream: IO[bytes], report_syntax_error: bool = False
) -> tuple[bytes, list[str]]:
    """Read a Go file up to the end of its imports.

    Returns the bytes read and the quoted import paths. A syntax error is
    raised only if ``report_syntax_error`` is true; otherwise the whole
    input is returned.
    """
    reader = _ImportReader(stream)
    imports: list[str] = []

    reader.read_keyword("package")
    reader.read_ident()
    while reader.peek_byte(True) == ord("i"):
        reader.read_keyword("import")
        if reader.peek_byte(True) == ord("("):
            reader.next_byte(False)
            while reader.peek_byte(True) != ord(")") and reader.err is None:
                reader.read_import(imports)
            reader.next_byte(False)
        else:
            reader.read_import(imports)

    # Stopping before EOF means one byte too many was read.
    if reader.err is None and not reader.eof:
        return bytes(reader.buf[:-1]), imports

    if isinstance(reader.err, ImportSyntaxError) and not report_syntax_error:
        reader.err = None
        while reader.err is None and not reader.eof:
            reader.read_byte()

    reader.fail()
    return bytes(reader.buf), imports