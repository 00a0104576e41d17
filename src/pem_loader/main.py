"""
Command-line entry point — a thin caller of the loader.

Composition root: configures structlog, loads settings, builds the filter
from the command line, runs one load and prints what was kept.

    pem-loader bundle.pem --kind certificate
    pem-loader key.pem --kind rsa-private-key --first
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import structlog
from pydantic import ValidationError

from pem_loader import __version__
from pem_loader.config import LoaderSettings
from pem_loader.domain.buffers import PemCollection
from pem_loader.domain.models import DerObject, FilterVerdict, ObjectFilter, ObjectKind
from pem_loader.loader import kind_mask_filter, load, release
from pem_loader.railway import ErrorCode, FailureDescription

KIND_NAMES: dict[str, ObjectKind] = {
    "certificate": ObjectKind.CERTIFICATE,
    "private-key": ObjectKind.PRIVATE_KEY,
    "rsa-private-key": ObjectKind.RSA_PRIVATE_KEY,
}


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console output on stderr.

    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def build_filter(kinds: Sequence[str], first_only: bool) -> ObjectFilter:
    """Kind-mask filter for the selected kinds; optionally stop at the first match."""
    mask = ObjectKind(0)
    for name in kinds or KIND_NAMES:
        mask |= KIND_NAMES[name]
    by_kind = kind_mask_filter(mask)
    if not first_only:
        return by_kind

    def _first(obj: DerObject) -> FilterVerdict:
        if by_kind(obj) is FilterVerdict.REJECT:
            return FilterVerdict.REJECT
        return FilterVerdict.ACCEPT_AND_STOP

    return _first


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pem-loader",
        description="Decode certificates and private keys from PEM text.",
    )
    parser.add_argument("source", help="PEM file path, or PEM text containing a BEGIN marker")
    parser.add_argument(
        "--kind",
        action="append",
        choices=sorted(KIND_NAMES),
        default=[],
        help="Object kind to keep (repeatable; default: all kinds)",
    )
    parser.add_argument(
        "--first",
        action="store_true",
        help="Stop after the first kept object",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _print_summary(collection: PemCollection) -> None:
    for index, obj in enumerate(collection):
        print(f"{index}\t{obj.kind.name}\t{obj.length}")  # noqa: T201
    print(f"total\t{len(collection)} objects\t{collection.total_kept_bytes} bytes")  # noqa: T201


def main(argv: Sequence[str] | None = None) -> int:
    """Run one load from the command line. Returns the process exit code."""
    args = _parse_args(argv)
    try:
        settings = LoaderSettings()
    except ValidationError as e:
        failure = FailureDescription(ErrorCode.CONFIGURATION_ERROR, "Invalid PEM_LOADER_ settings", e)
        print(f"FATAL: {failure}\n{e}", file=sys.stderr)  # noqa: T201
        return 1

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    result = load(args.source, build_filter(args.kind, args.first), settings=settings)
    if result.is_failure():
        error = result.error()
        log.error("app.load_failed", code=error.code.value, error=error.message)
        return 1

    collection = result.value()
    _print_summary(collection)
    release(collection)
    return 0


if __name__ == "__main__":
    sys.exit(main())
