"""
Shared test fixtures and helpers for the pem-loader test suite.

Provides fixture path resolution and a builder for PEM envelopes so tests
can wrap arbitrary payloads in BEGIN/END markers.
"""

from __future__ import annotations

import base64
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from pem_loader.domain.models import ObjectKind

FIXTURES_DIR = Path(__file__).parent / "fixtures"

LABELS: dict[ObjectKind, str] = {
    ObjectKind.CERTIFICATE: "CERTIFICATE",
    ObjectKind.PRIVATE_KEY: "PRIVATE KEY",
    ObjectKind.RSA_PRIVATE_KEY: "RSA PRIVATE KEY",
}


@pytest.fixture()
def fixtures_dir() -> Path:
    """Return the absolute path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()


def fixture_path(filename: str) -> Path:
    """
    Resolve the absolute path to a test fixture file.

    Raises FileNotFoundError if the fixture does not exist.
    """
    path = FIXTURES_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Test fixture not found: {path}")
    return path


def envelope(kind: ObjectKind, payload: bytes, width: int = 64) -> str:
    """Wrap ``payload`` in the PEM markers for ``kind`` with ``width``-char body lines."""
    label = LABELS[kind]
    body = base64.b64encode(payload).decode("ascii")
    lines = [body[i : i + width] for i in range(0, len(body), width)]
    return "\n".join([f"-----BEGIN {label}-----", *lines, f"-----END {label}-----"]) + "\n"
