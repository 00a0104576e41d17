"""
Ports — Protocol-based interfaces for the parser's collaborators.

The envelope parser only needs two things from its environment:

  LineSource     → next trimmed text line, or None at end of input
  Base64Decoder  → decode one body line into bytes, or a Failure

Adapters satisfy these contracts structurally; no inheritance required.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pem_loader.railway import Result


@runtime_checkable
class LineSource(Protocol):
    """
    Port: a finite, forward-only sequence of normalized text lines.

    Each returned line has surrounding whitespace and the line terminator
    removed and is never empty. Returns None once the input is exhausted.
    Read errors propagate as OSError.
    """

    name: str

    def next_line(self) -> str | None: ...

    def close(self) -> None: ...


@runtime_checkable
class Base64Decoder(Protocol):
    """
    Port: decode one base64 body line.

    Implementations enforce their own output bound and return
    Result.failure(DECODE_FAILURE, ...) rather than truncating.
    """

    def decode(self, data: bytes) -> Result[bytes]: ...
