"""Vector similarity helpers."""

from __future__ import annotations

from collections.abc import Sequence


def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of two equal-length vectors.

    Hosted embedding models return unit-length vectors, so this equals the
    cosine similarity for them.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    return float(sum(x * y for x, y in zip(a, b)))
