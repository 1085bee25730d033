"""Timestamp lookup for walked entries."""

import logging
import os
import time
from typing import Callable

from .models import Entry, SortAttribute, TimestampedEntry

logger = logging.getLogger(__name__)

FALLBACK_NOW = "now"
FALLBACK_EPOCH = "epoch"


class MetadataResolver:
    """Stats entries for the timestamp they are sorted by.
    
    Any failure (the entry vanished, permission denied, the platform has no
    creation time, a pre-epoch value) yields one fallback value that is fixed
    when the resolver is built, so every failed entry in a run shares it.
    """
    
    def __init__(
        self,
        attribute: SortAttribute = SortAttribute.MODIFIED,
        fallback: str = FALLBACK_NOW,
        follow_symlinks: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        if fallback not in (FALLBACK_NOW, FALLBACK_EPOCH):
            raise ValueError(f"unknown fallback policy: {fallback!r}")
        self.attribute = attribute
        self.follow_symlinks = follow_symlinks
        self.fallback_value = int(clock()) if fallback == FALLBACK_NOW else 0
    
    def _extract(self, stat_result: os.stat_result) -> int:
        if self.attribute is SortAttribute.CREATED:
            value = getattr(stat_result, "st_birthtime", None)
            if value is None and os.name == "nt":
                value = stat_result.st_ctime
            if value is None:
                raise AttributeError("creation time is not available on this platform")
            seconds = int(value)
        else:
            seconds = stat_result.st_mtime_ns // 1_000_000_000
        
        if seconds < 0:
            raise ValueError(f"timestamp before the epoch: {seconds}")
        return seconds
    
    def timestamped(self, entry: Entry) -> TimestampedEntry:
        """Pair ``entry`` with its timestamp, or the fallback."""
        # The root is always resolved through symlinks, like the walk itself
        follow = self.follow_symlinks or entry.depth == 0
        try:
            stat_result = os.stat(entry.path, follow_symlinks=follow)
            return TimestampedEntry(entry, self._extract(stat_result))
        except (OSError, AttributeError, ValueError) as e:
            logger.debug(f"Using fallback timestamp for {entry.path}: {e}")
            return TimestampedEntry(entry, self.fallback_value, fallback=True)
    
    def resolve(self, entry: Entry) -> int:
        return self.timestamped(entry).timestamp
