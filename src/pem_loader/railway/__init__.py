"""
Railway-Oriented error handling used throughout the loader.

    from pem_loader.railway import ErrorCode, Result

    def check_line(line: bytes) -> Result[bytes]:
        if not line:
            return Result.failure(ErrorCode.DECODE_FAILURE, "empty body line")
        return Result.success(line)
"""

from pem_loader.railway.assertions import ResultAssertions
from pem_loader.railway.failure import ErrorCode, FailureDescription
from pem_loader.railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]
