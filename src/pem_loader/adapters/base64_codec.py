"""
Base64 decoder adapter — implements the Base64Decoder port.

Each PEM body line is decoded on its own into a bounded scratch size. A line
whose decoded form would exceed the bound is rejected as a decode failure,
never truncated. Standard PEM lines (64 characters, 48 bytes) are well
inside the default bound.
"""

from __future__ import annotations

import base64

from pem_loader.railway import ErrorCode, Result

MAX_DECODED_LINE_BYTES = 96


class StrictBase64Decoder:
    """Decode standard-alphabet base64, rejecting non-alphabet characters."""

    def __init__(self, max_output: int = MAX_DECODED_LINE_BYTES) -> None:
        self._max_output = max_output

    @property
    def max_output(self) -> int:
        return self._max_output

    def decode(self, data: bytes) -> Result[bytes]:
        # 4 input characters decode to at most 3 bytes
        upper_bound = (len(data) + 3) // 4 * 3
        if upper_bound > self._max_output:
            decoded_len = self._decoded_length(data)
            if decoded_len is None or decoded_len > self._max_output:
                return Result.failure(
                    ErrorCode.DECODE_FAILURE,
                    f"Base64 line of {len(data)} characters exceeds the "
                    f"{self._max_output}-byte line limit",
                )
        return Result.from_computation(
            lambda: base64.b64decode(data, validate=True),
            ErrorCode.DECODE_FAILURE,
            "Invalid base64 in PEM body",
        )

    @staticmethod
    def _decoded_length(data: bytes) -> int | None:
        if len(data) % 4:
            return None
        return len(data) // 4 * 3 - data[-2:].count(b"=")

