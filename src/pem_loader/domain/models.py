"""
Domain models — object kinds, filter verdicts, and decoded DER objects.

A DerObject is the binary payload of one PEM envelope, tagged only with the
coarse kind declared by its begin marker. The payload is opaque: nothing in
this package interprets its ASN.1 structure.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, IntFlag, unique


class ObjectKind(IntFlag):
    """
    Declared type of a PEM object.

    Members are bit flags so that several kinds can be combined into a
    selection mask, e.g. ``ObjectKind.CERTIFICATE | ObjectKind.PRIVATE_KEY``.
    A decoded object always carries exactly one flag.
    """

    CERTIFICATE = 1
    PRIVATE_KEY = 2
    RSA_PRIVATE_KEY = 4

    @classmethod
    def all(cls) -> ObjectKind:
        return cls.CERTIFICATE | cls.PRIVATE_KEY | cls.RSA_PRIVATE_KEY


@unique
class FilterVerdict(Enum):
    """Decision taken by an object filter for one completed object."""

    REJECT = "reject"
    ACCEPT = "accept"
    ACCEPT_AND_STOP = "accept_and_stop"

    @property
    def keeps(self) -> bool:
        return self is not FilterVerdict.REJECT


@dataclass(frozen=True, slots=True)
class DerObject:
    """One decoded PEM object: its kind and raw DER bytes."""

    kind: ObjectKind
    payload: bytes = field(repr=False)

    @property
    def length(self) -> int:
        return len(self.payload)


type ObjectFilter = Callable[[DerObject], FilterVerdict]
"""Per-object decision function; caller context is captured by closure."""
