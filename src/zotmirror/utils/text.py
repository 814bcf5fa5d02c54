"""Text helpers."""

from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")


def strip_control_chars(value: str) -> str:
    """Keep only printable ASCII characters (code points 32-126)."""
    return "".join(ch for ch in value if 32 <= ord(ch) < 127)


def iter_batches(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


__all__ = ["strip_control_chars", "iter_batches"]
