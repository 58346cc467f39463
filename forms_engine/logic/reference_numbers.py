"""Submission reference numbers."""

from __future__ import annotations

import secrets
from typing import Optional

SEGMENT_LENGTH = 3


def generate_unique_reference(prefix: Optional[str] = None) -> str:
    """Return ``XXX-XXX-XXX`` or ``PREFIX-XXX-XXX`` in uppercase hex.

    Collisions are possible; the number identifies a submission to a person,
    it is not a database key.
    """
    segment_count = 2 if prefix else 3
    segments = [secrets.token_hex(SEGMENT_LENGTH)[:SEGMENT_LENGTH] for _ in range(segment_count)]
    lead = f"{prefix}-" if prefix else ""
    return f"{lead}{'-'.join(segments)}".upper()


__all__ = ["generate_unique_reference"]
