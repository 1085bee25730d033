"""Deterministic recency ordering."""

from typing import Iterable, List, Tuple

from .models import TimestampedEntry


def sort_key(item: TimestampedEntry) -> Tuple[int, str]:
    """Newest first; equal timestamps fall back to ascending path."""
    return (-item.timestamp, item.entry.path)


def sort_entries(items: Iterable[TimestampedEntry]) -> List[TimestampedEntry]:
    return sorted(items, key=sort_key)
