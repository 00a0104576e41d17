"""
Growable buffers — the in-progress DER byte buffer and the object collection.

Both containers grow in fixed increments and never shrink while in use.
Growth goes through Result.from_computation, so a MemoryError surfaces as an
ALLOCATION_FAILURE on the failure track instead of an exception.
"""

from __future__ import annotations

from collections.abc import Iterator

from pem_loader.domain.models import DerObject, ObjectKind
from pem_loader.railway import ErrorCode, Result

DER_INCREMENT = 1024
OBJ_INCREMENT = 4


class ByteAccumulator:
    """
    Byte buffer for the object currently being decoded.

    ``length`` is the number of payload bytes written; ``capacity`` is the
    allocated size, always a multiple of the increment and >= ``length``.
    """

    def __init__(self, increment: int = DER_INCREMENT) -> None:
        if increment < 1:
            raise ValueError(f"increment must be positive, got {increment}")
        self._increment = increment
        self._buffer = bytearray()
        self._length = 0

    @property
    def length(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    def append(self, chunk: bytes) -> Result[int]:
        """
        Copy ``chunk`` after the bytes already written.

        Returns the new length, or ALLOCATION_FAILURE when the buffer cannot
        grow. On failure nothing is written.
        """
        needed = self._length + len(chunk)
        return self._ensure_capacity(needed).map(lambda _: self._write(chunk, needed))

    def to_object(self, kind: ObjectKind) -> DerObject:
        """Snapshot the written bytes as an immutable DerObject."""
        return DerObject(kind=kind, payload=bytes(self._buffer[: self._length]))

    def discard(self) -> None:
        self._buffer = bytearray()
        self._length = 0

    def _ensure_capacity(self, needed: int) -> Result[int]:
        if needed <= self.capacity:
            return Result.success(self.capacity)
        return Result.from_computation(
            lambda: self._grow(needed),
            ErrorCode.ALLOCATION_FAILURE,
            f"Cannot grow object buffer to {needed} bytes",
        )

    def _grow(self, needed: int) -> int:
        capacity = self.capacity
        while capacity < needed:
            capacity += self._increment
        self._buffer.extend(bytes(capacity - len(self._buffer)))
        return capacity

    def _write(self, chunk: bytes, end: int) -> int:
        self._buffer[self._length : end] = chunk
        self._length = end
        return end


class PemCollection:
    """
    Ordered set of accepted DER objects plus the total of their payload sizes.

    Only committed objects are visible through ``objects``; a slot reserved
    for an object still being decoded stays hidden until ``commit``.
    """

    def __init__(self, increment: int = OBJ_INCREMENT) -> None:
        if increment < 1:
            raise ValueError(f"increment must be positive, got {increment}")
        self._increment = increment
        self._slots: list[DerObject | None] = []
        self._count = 0
        self._total_kept_bytes = 0
        self._released = False

    @property
    def objects(self) -> tuple[DerObject, ...]:
        # slots below _count are always committed
        return tuple(self._slots[: self._count])  # type: ignore[arg-type]

    @property
    def total_kept_bytes(self) -> int:
        return self._total_kept_bytes

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def released(self) -> bool:
        return self._released

    def is_empty(self) -> bool:
        return self._count == 0

    def reserve_next(self) -> Result[int]:
        """Make room for one more object and return the index of its slot."""
        if self._released:
            raise RuntimeError("Cannot reserve a slot in a released collection")
        if self._count < self.capacity:
            return Result.success(self._count)
        return Result.from_computation(
            self._grow,
            ErrorCode.ALLOCATION_FAILURE,
            f"Cannot grow object collection beyond {self.capacity} slots",
        )

    def commit(self, index: int, obj: DerObject) -> None:
        """Store an accepted object in the slot returned by reserve_next."""
        if index != self._count or index >= self.capacity:
            raise ValueError(f"Slot {index} was not reserved (next free slot is {self._count})")
        self._slots[index] = obj
        self._count += 1
        self._total_kept_bytes += obj.length

    def release(self) -> None:
        """Drop every object and the slot array. Safe to call more than once."""
        self._slots = []
        self._count = 0
        self._total_kept_bytes = 0
        self._released = True

    def _grow(self) -> int:
        self._slots.extend([None] * self._increment)
        return self._count

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[DerObject]:
        return iter(self.objects)

    def __repr__(self) -> str:
        return (
            f"PemCollection(objects={self._count}, "
            f"total_kept_bytes={self._total_kept_bytes}, released={self._released})"
        )
