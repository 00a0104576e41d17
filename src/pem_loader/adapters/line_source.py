"""
Line sources — adapters implementing the LineSource port.

Two inputs are supported:
  - FileLineSource: a text file opened and read one line at a time
  - TextLineSource: PEM content already held in memory

Both yield lines with surrounding whitespace stripped and skip blank lines,
so the parser never sees indentation, CRLF endings, or empty separators.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

import structlog

from pem_loader.domain.ports import LineSource
from pem_loader.markers import find_inline_begin
from pem_loader.railway import ErrorCode, Result

log = structlog.get_logger()

INLINE_SOURCE_NAME = "(inline)"
_BEGIN_TOKEN = "-----BEGIN "


def _normalize(raw: str) -> str | None:
    line = raw.strip()
    return line or None


class TextLineSource:
    """Lines of an in-memory PEM string."""

    def __init__(self, text: str, name: str = INLINE_SOURCE_NAME) -> None:
        self.name = name
        # same newline framing as a file opened in text mode; form feeds and
        # other separators stay inside the line
        self._lines: Iterator[str] = iter(io.StringIO(text, newline=None))

    def next_line(self) -> str | None:
        for raw in self._lines:
            line = _normalize(raw)
            if line is not None:
                return line
        return None

    def close(self) -> None:
        self._lines = iter(())


class FileLineSource:
    """
    Lines of a text file, read lazily.

    Characters outside ``encoding`` are replaced rather than raising, so a
    stray non-ASCII byte inside a body turns into a base64 decode failure.
    """

    def __init__(self, path: Path, encoding: str = "ascii") -> None:
        self.name = str(path)
        self._stream: TextIO | None = path.open("r", encoding=encoding, errors="replace")

    def next_line(self) -> str | None:
        if self._stream is None:
            return None
        for raw in self._stream:
            line = _normalize(raw)
            if line is not None:
                return line
        return None

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None


def iter_lines(source: LineSource) -> Iterator[str]:
    """Iterate a LineSource until it reports end of input."""
    while (line := source.next_line()) is not None:
        yield line


def describe_source(source: str | Path) -> str:
    """
    Name of ``source`` that is safe to log.

    Any string that looks like PEM content (a ``-----BEGIN `` token or a
    line break) is reported as ``(inline)``, even when its marker is not
    one the loader recognizes.
    """
    if isinstance(source, str) and (_BEGIN_TOKEN in source or "\n" in source):
        return INLINE_SOURCE_NAME
    return str(source)


def _os_error_text(error: BaseException | None) -> str | None:
    # str(OSError) embeds the filename, which may be PEM content
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return type(error).__name__ if error is not None else None


def open_source(source: str | Path, encoding: str = "ascii") -> Result[LineSource]:
    """
    Resolve ``source`` into a LineSource.

    A ``str`` that contains a recognizable begin marker is treated as the PEM
    content itself; any other ``str`` and every ``Path`` name a file.
    """
    if isinstance(source, str) and find_inline_begin(source) is not None:
        log.debug("pem.inline_source")
        return Result.success(TextLineSource(source))

    path = Path(source)
    name = describe_source(source)
    result: Result[LineSource] = Result.from_computation(
        lambda: FileLineSource(path, encoding=encoding),
        ErrorCode.SOURCE_UNAVAILABLE,
        f"{name}: cannot open PEM source",
    )
    return result.peek_failure(
        lambda err: log.warning("pem.source_unavailable", source=name, error=_os_error_text(err.exception))
    )
