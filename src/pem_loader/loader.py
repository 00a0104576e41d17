"""
Loader entry points — open a source, run the envelope parser, hand back DER.

    result = load_by_kind_mask("server.pem", ObjectKind.CERTIFICATE)
    if result.is_success():
        for obj in result.value():
            ...
        release(result.value())

The flow is a short railway:

  open_source(source) → EnvelopeParser.parse(lines) → Result[PemCollection]

The source is always closed before returning, on success or failure.
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import Any

import structlog

from pem_loader.adapters.base64_codec import StrictBase64Decoder
from pem_loader.adapters.line_source import describe_source, open_source
from pem_loader.config import LoaderSettings
from pem_loader.domain.buffers import PemCollection
from pem_loader.domain.models import DerObject, FilterVerdict, ObjectFilter, ObjectKind
from pem_loader.domain.ports import Base64Decoder, LineSource
from pem_loader.parser import EnvelopeParser
from pem_loader.railway import Result

log = structlog.get_logger()


def accept_all(obj: DerObject) -> FilterVerdict:
    return FilterVerdict.ACCEPT


def kind_mask_filter(mask: ObjectKind | int) -> ObjectFilter:
    """
    Build a filter keeping objects whose kind is set in ``mask``.

        load(path, kind_mask_filter(ObjectKind.CERTIFICATE | ObjectKind.PRIVATE_KEY))
    """

    def _by_kind(obj: DerObject) -> FilterVerdict:
        return FilterVerdict.ACCEPT if obj.kind & mask else FilterVerdict.REJECT

    return _by_kind


def load(
    source: str | Path,
    object_filter: ObjectFilter = accept_all,
    *,
    settings: LoaderSettings | None = None,
    decoder: Base64Decoder | None = None,
    logger: Any = None,
) -> Result[PemCollection]:
    """
    Load every PEM object from ``source`` that ``object_filter`` keeps.

    ``source`` is a file path, or literal PEM text when it is a ``str``
    containing a begin marker. Returns Success with a possibly empty
    collection, or a Failure carrying SOURCE_UNAVAILABLE,
    MALFORMED_ENVELOPE, DECODE_FAILURE or ALLOCATION_FAILURE.
    """
    settings = settings or LoaderSettings()
    decoder = decoder or StrictBase64Decoder(settings.max_decoded_line_bytes)
    parser = EnvelopeParser(
        object_filter,
        decoder,
        object_increment=settings.buffer.object_increment,
        collection_increment=settings.buffer.collection_increment,
        logger=logger,
    )
    log.debug("pem.load_started", source=describe_source(source))
    return open_source(source, encoding=settings.file_encoding).flat_map(
        lambda lines: _parse_and_close(parser, lines)
    )


def load_by_kind_mask(
    source: str | Path,
    mask: ObjectKind | int,
    **options: Any,
) -> Result[PemCollection]:
    """Load only objects whose kind is selected by ``mask``."""
    return load(source, kind_mask_filter(mask), **options)


def release(collection: PemCollection | None) -> None:
    """Release a collection's objects. No-op for None or an already released collection."""
    if collection is None or collection.released:
        return
    collection.release()


def _parse_and_close(parser: EnvelopeParser, lines: LineSource) -> Result[PemCollection]:
    with closing(lines):
        return parser.parse(lines)
