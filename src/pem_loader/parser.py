"""
Envelope parser — the line-driven state machine at the heart of the loader.

    SEEKING_BEGIN ──begin marker──▶ IN_BODY ──matching end marker──▶ filter
          ▲                            │                               │
          └──────── reject / accept ───┼───────────────────────────────┘
                                       │ base64 line → decode → append
                                       ▼
                          accept-and-stop: return immediately

Lines outside an envelope are ignored, which lets comments and other text
sit between objects. Anything wrong inside a body is fatal: the collection
built so far is released and a Failure is returned, because a corrupted body
leaves the framing of the remaining lines unreliable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

import structlog

from pem_loader.adapters.line_source import iter_lines
from pem_loader.domain.buffers import DER_INCREMENT, OBJ_INCREMENT, ByteAccumulator, PemCollection
from pem_loader.domain.models import FilterVerdict, ObjectFilter, ObjectKind
from pem_loader.domain.ports import Base64Decoder, LineSource
from pem_loader.markers import is_any_end, recognize_begin, recognize_end
from pem_loader.railway import ErrorCode, Result

log = structlog.get_logger()


class ParserState(Enum):
    SEEKING_BEGIN = auto()
    IN_BODY = auto()


@dataclass(slots=True)
class _OpenObject:
    """The single object currently being filled."""

    slot: int
    kind: ObjectKind
    accumulator: ByteAccumulator


class EnvelopeParser:
    """
    Drive a LineSource through the envelope state machine.

    One parser may be reused for several sources; every call to ``parse``
    owns its own collection and in-progress object.
    """

    def __init__(
        self,
        object_filter: ObjectFilter,
        decoder: Base64Decoder,
        *,
        object_increment: int = DER_INCREMENT,
        collection_increment: int = OBJ_INCREMENT,
        logger: Any = None,
    ) -> None:
        self._filter = object_filter
        self._decoder = decoder
        self._object_increment = object_increment
        self._collection_increment = collection_increment
        self._log = logger if logger is not None else log

    def parse(self, source: LineSource) -> Result[PemCollection]:
        """
        Parse every envelope in ``source``.

        Returns Success(collection) when the input ends outside a body or the
        filter asks to stop; an empty collection is a valid result. Returns
        Failure(SOURCE_UNAVAILABLE | MALFORMED_ENVELOPE | DECODE_FAILURE |
        ALLOCATION_FAILURE) otherwise, after releasing everything loaded.
        """
        bound_log = self._log.bind(source=source.name)
        collection = PemCollection(self._collection_increment)
        try:
            result = self._consume(source, collection, bound_log)
        except OSError as e:
            bound_log.error("pem.read_failed", error=str(e))
            result = Result.failure(ErrorCode.SOURCE_UNAVAILABLE, f"{source.name}: read failed", e)
        except Exception:
            collection.release()
            raise
        return result.peek_failure(lambda _: collection.release())

    def _consume(
        self,
        source: LineSource,
        collection: PemCollection,
        bound_log: Any,
    ) -> Result[PemCollection]:
        state = ParserState.SEEKING_BEGIN
        current: _OpenObject | None = None

        for line in iter_lines(source):
            match state:
                case ParserState.SEEKING_BEGIN:
                    kind = recognize_begin(line)
                    if kind is None:
                        continue
                    reserved = collection.reserve_next()
                    if reserved.is_failure():
                        bound_log.error("pem.collection_alloc_failed", error=reserved.error().message)
                        return Result.failure_from(reserved.error())
                    current = _OpenObject(
                        slot=reserved.value(),
                        kind=kind,
                        accumulator=ByteAccumulator(self._object_increment),
                    )
                    state = ParserState.IN_BODY

                case ParserState.IN_BODY:
                    assert current is not None
                    if recognize_end(line, current.kind):
                        verdict = self._close(collection, current, bound_log)
                        current = None
                        state = ParserState.SEEKING_BEGIN
                        if verdict is FilterVerdict.ACCEPT_AND_STOP:
                            bound_log.info("pem.stopped_by_filter", objects=len(collection))
                            return Result.success(collection)
                        continue

                    if recognize_begin(line) is not None or is_any_end(line):
                        bound_log.error("pem.unexpected_marker", expected=current.kind.name, line=line)
                        return Result.failure(
                            ErrorCode.MALFORMED_ENVELOPE,
                            f"{source.name}: unexpected marker {line!r} inside "
                            f"{current.kind.name} body",
                        )

                    encoded = line.encode("ascii", errors="replace")
                    appended = self._decoder.decode(encoded).flat_map(current.accumulator.append)
                    if appended.is_failure():
                        bound_log.error(
                            "pem.corrupted_body",
                            kind=current.kind.name,
                            error=appended.error().message,
                        )
                        current.accumulator.discard()
                        return Result.failure_from(appended.error())

        if state is ParserState.IN_BODY:
            bound_log.error("pem.no_end_marker", kind=current.kind.name if current else None)
            return Result.failure(
                ErrorCode.MALFORMED_ENVELOPE,
                f"{source.name}: no end marker before end of input",
            )

        if collection.is_empty():
            bound_log.warning("pem.no_objects")
        else:
            bound_log.info(
                "pem.load_complete",
                objects=len(collection),
                total_kept_bytes=collection.total_kept_bytes,
            )
        return Result.success(collection)

    def _close(self, collection: PemCollection, current: _OpenObject, bound_log: Any) -> FilterVerdict:
        """Hand a finished object to the filter and commit it if kept."""
        obj = current.accumulator.to_object(current.kind)
        current.accumulator.discard()
        verdict = self._filter(obj)
        if not isinstance(verdict, FilterVerdict):
            raise TypeError(f"Object filter must return a FilterVerdict, got {verdict!r}")

        if verdict.keeps:
            collection.commit(current.slot, obj)
            bound_log.debug("pem.object_loaded", kind=obj.kind.name, length=obj.length)
        else:
            bound_log.debug("pem.object_rejected", kind=obj.kind.name, length=obj.length)
        return verdict


def parse_envelopes(
    source: LineSource,
    object_filter: ObjectFilter,
    decoder: Base64Decoder,
    **options: Any,
) -> Result[PemCollection]:
    """Convenience wrapper: build an EnvelopeParser and parse one source."""
    return EnvelopeParser(object_filter, decoder, **options).parse(source)
